"""
Tests for read-side queries.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from consignman import consignment
from consignman.models import DocumentStatus


pytestmark = pytest.mark.django_db


class TestListDocuments:
    """Tests for consignment.list_documents()."""

    def test_newest_first(self, agreement, counter, count_and_finalize):
        first = count_and_finalize(agreement, counter)
        second = count_and_finalize(agreement, counter)

        assert list(consignment.list_documents()) == [second, first]

    def test_filter_by_status(self, agreement, counter, approver, count_and_finalize):
        first = count_and_finalize(agreement, counter)
        second = count_and_finalize(agreement, counter)
        consignment.submit(second, approver, erp_movement_id='MV-1')

        pending = consignment.list_documents(statuses=[DocumentStatus.PENDING])
        open_ones = consignment.list_documents(statuses=[DocumentStatus.REVIEW, DocumentStatus.PENDING])

        assert list(pending) == [second]
        assert set(open_ones) == {first, second}

    def test_filter_by_agreement(self, agreement, other_agreement, counter, count_and_finalize):
        count_and_finalize(agreement, counter)
        beta = count_and_finalize(other_agreement, counter)

        assert list(consignment.list_documents(agreement=other_agreement)) == [beta]

    def test_filter_by_dates(self, agreement, counter, count_and_finalize):
        document = count_and_finalize(agreement, counter)
        today = timezone.localdate()

        assert list(consignment.list_documents(date_from=today, date_to=today)) == [document]
        assert not consignment.list_documents(date_from=today + timedelta(days=1)).exists()
        assert not consignment.list_documents(date_to=today - timedelta(days=1)).exists()


class TestListActiveSessions:
    """Tests for consignment.list_active_sessions()."""

    def test_lists_held_locks(self, session, counter, other_agreement, other_counter):
        consignment.record_count(session, 'P1', Decimal('1'), counter)
        consignment.record_count(session, 'P2', Decimal('2'), counter)
        consignment.acquire_session(other_agreement, other_counter)

        sessions = consignment.list_active_sessions()

        assert [(s.client_id, s.user_name, s.lines) for s in sessions] == [
            ('ACME', 'Ana Souza', 2),
            ('BETA', 'Bruno Lima', 0),
        ]

    def test_empty(self, db):
        assert consignment.list_active_sessions() == []
