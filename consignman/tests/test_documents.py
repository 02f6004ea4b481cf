"""
Tests for restock documents: finalization, recomputation and line edits.
"""

from decimal import Decimal

import pytest

from consignman import consignment
from consignman.exceptions import NotFound, NotOwner, ValidationError
from consignman.models import (
    ConsignmentAgreement,
    CountingSession,
    DocumentLine,
    DocumentStatus,
    HistoryEntry,
    RestockDocument,
)
from consignman.protocols.events import DOCUMENT
from consignman.tests.fakes import ACME_RULES


pytestmark = pytest.mark.django_db


def _lines(document):
    return {line.product_id: line for line in DocumentLine.objects.filter(document=document)}


def _rules_with(**changes):
    """ACME rules with per-product overrides; a None override drops the rule."""
    rules = []
    for rule in ACME_RULES:
        change = changes.get(rule['product_id'], {})
        if change is None:
            continue
        rules.append({**rule, **change})
    return rules


class TestFinalizeSession:
    """Tests for consignment.finalize_session()."""

    def test_creates_document_in_review(self, document, agreement, counter):
        assert document.status == DocumentStatus.REVIEW
        assert document.consecutive == 'ACME-0001'
        assert document.agreement_id == agreement.pk
        assert document.created_by_id == counter.pk

    def test_replenish_formula(self, document):
        """max(0, max - counted) when max > 0, else 0."""
        lines = _lines(document)

        assert lines['P1'].replenish_quantity == Decimal('30')
        assert lines['P2'].replenish_quantity == Decimal('0')   # counted over max
        assert lines['P3'].replenish_quantity == Decimal('0')   # max 0
        assert not any(line.is_manually_edited for line in lines.values())

    def test_products_without_rule_are_dropped(self, document, sink):
        assert set(_lines(document)) == {'P1', 'P2', 'P3'}
        assert sink.events[-1].details['dropped_products'] == ['X9']

    def test_line_snapshots(self, document):
        line = _lines(document)['P1']

        assert line.product_description == 'Parafuso sextavado 3mm'
        assert line.client_product_code == 'AC-001'
        assert line.counted_quantity == Decimal('20')
        assert line.max_stock == Decimal('50')
        assert line.price == Decimal('2.50')

    def test_session_is_deleted(self, document):
        assert not CountingSession.objects.exists()

    def test_counter_advances(self, document, agreement):
        agreement.refresh_from_db()

        assert agreement.next_document_number == 2

    def test_creation_history_and_event(self, document, counter, sink):
        history = list(HistoryEntry.objects.filter(document=document))

        assert len(history) == 1
        assert history[0].status == DocumentStatus.REVIEW
        assert history[0].user_id == counter.pk

        event = sink.events[-1]
        assert event.entity == DOCUMENT
        assert event.action == 'create'
        assert event.entity_id == 'ACME-0001'
        assert event.details['created_by'] == 'ana'

    def test_empty_session_still_creates_document(self, session, counter):
        document = consignment.finalize_session(session, counter)

        assert document.consecutive == 'ACME-0001'
        assert not document.lines.exists()

    def test_only_owner_can_finalize(self, session, counter, other_counter):
        consignment.record_count(session, 'P1', Decimal('1'), counter)

        with pytest.raises(NotOwner):
            consignment.finalize_session(session, other_counter)

        assert CountingSession.objects.filter(pk=session.pk).exists()
        assert not RestockDocument.objects.exists()
        assert ConsignmentAgreement.objects.get(client_id='ACME').next_document_number == 1

    def test_failed_finalize_rolls_back(self, session, counter, sink, monkeypatch):
        """A collaborator failure leaves the session, counter and documents untouched."""
        consignment.record_count(session, 'P1', Decimal('1'), counter)

        def broken(event):
            raise RuntimeError('sink down')

        monkeypatch.setattr(sink, 'emit', broken)

        with pytest.raises(RuntimeError):
            consignment.finalize_session(session, counter)

        assert CountingSession.objects.filter(pk=session.pk).exists()
        assert not RestockDocument.objects.exists()
        assert not HistoryEntry.objects.exists()
        assert ConsignmentAgreement.objects.get(client_id='ACME').next_document_number == 1


class TestNumbering:
    """Consecutives are per agreement, sequential and never reused."""

    def test_sequential_consecutives(self, agreement, counter, count_and_finalize):
        codes = [count_and_finalize(agreement, counter).consecutive for _ in range(3)]

        assert codes == ['ACME-0001', 'ACME-0002', 'ACME-0003']

    def test_canceled_numbers_are_not_reused(self, agreement, counter, approver, count_and_finalize):
        first = count_and_finalize(agreement, counter)
        consignment.cancel(first, approver, notes='Contagem errada')

        second = count_and_finalize(agreement, counter)

        assert second.consecutive == 'ACME-0002'

    def test_numbering_is_per_agreement(self, agreement, other_agreement, counter, count_and_finalize):
        count_and_finalize(agreement, counter)
        beta = count_and_finalize(other_agreement, counter)

        assert beta.consecutive == 'BETA-0001'


class TestGetRecomputedDocument:
    """Tests for consignment.get_recomputed_document()."""

    def test_follows_rule_changes_while_editable(self, document, agreement):
        consignment.save_agreement(
            'ACME', agreement.client_name, pk=agreement.pk,
            rules=_rules_with(P1={'max_stock': Decimal('80'), 'price': Decimal('3')}),
        )

        details = consignment.get_recomputed_document(document)
        line = {line.product_id: line for line in details.lines}['P1']

        assert line.max_stock == Decimal('80')
        assert line.price == Decimal('3')
        assert line.replenish_quantity == Decimal('60')

    def test_recompute_does_not_persist(self, document, agreement):
        consignment.save_agreement(
            'ACME', agreement.client_name, pk=agreement.pk,
            rules=_rules_with(P1={'max_stock': Decimal('80')}),
        )

        consignment.get_recomputed_document(document)

        stored = _lines(document)['P1']
        assert stored.max_stock == Decimal('50')
        assert stored.replenish_quantity == Decimal('30')

    def test_removed_rule_keeps_stale_snapshot(self, document, agreement):
        consignment.save_agreement('ACME', agreement.client_name, pk=agreement.pk, rules=_rules_with(P2=None))

        details = consignment.get_recomputed_document(document)
        line = {line.product_id: line for line in details.lines}['P2']

        assert line.max_stock == Decimal('10')
        assert line.replenish_quantity == Decimal('0')

    def test_manual_edit_survives_recompute(self, document, agreement):
        line_id = _lines(document)['P1'].pk
        consignment.edit_line(document, line_id, Decimal('5'))
        consignment.save_agreement(
            'ACME', agreement.client_name, pk=agreement.pk,
            rules=_rules_with(P1={'max_stock': Decimal('80')}),
        )

        details = consignment.get_recomputed_document(document)
        line = {line.product_id: line for line in details.lines}['P1']

        assert line.max_stock == Decimal('80')
        assert line.replenish_quantity == Decimal('5')
        assert line.is_manually_edited

    def test_frozen_after_approval(self, document, agreement, approver):
        consignment.submit(document, approver, erp_movement_id='MV-1')
        consignment.approve(document, approver)
        consignment.save_agreement(
            'ACME', agreement.client_name, pk=agreement.pk,
            rules=_rules_with(P1={'max_stock': Decimal('80')}),
        )

        details = consignment.get_recomputed_document(document)
        line = {line.product_id: line for line in details.lines}['P1']

        assert details.document.status == DocumentStatus.APPROVED
        assert line.max_stock == Decimal('50')
        assert line.replenish_quantity == Decimal('30')

    def test_pending_still_follows_rules(self, document, agreement, approver):
        consignment.submit(document, approver, erp_movement_id='MV-1')
        consignment.save_agreement(
            'ACME', agreement.client_name, pk=agreement.pk,
            rules=_rules_with(P1={'max_stock': Decimal('25')}),
        )

        details = consignment.get_recomputed_document(document)
        line = {line.product_id: line for line in details.lines}['P1']

        assert line.replenish_quantity == Decimal('5')

    def test_cleared_client_code_follows_rule(self, document, agreement):
        assert _lines(document)['P1'].client_product_code == 'AC-001'
        consignment.save_agreement(
            'ACME', agreement.client_name, pk=agreement.pk,
            rules=_rules_with(P1={'client_product_code': ''}),
        )

        details = consignment.get_recomputed_document(document)
        line = {line.product_id: line for line in details.lines}['P1']

        assert line.client_product_code == ''

    def test_includes_history(self, document, approver):
        consignment.submit(document, approver, erp_movement_id='MV-1')

        details = consignment.get_recomputed_document(document.pk)

        assert [entry.status for entry in details.history] == ['review', 'pending']

    def test_missing_document(self):
        with pytest.raises(NotFound) as exc:
            consignment.get_recomputed_document(987654)

        assert exc.value.code == 'DOCUMENT_NOT_FOUND'


class TestLineEdits:
    """Tests for edit_line(), reset_line() and save_document()."""

    def test_edit_line_marks_manual(self, document, counter):
        line_id = _lines(document)['P2'].pk

        line = consignment.edit_line(document, line_id, Decimal('4'), counter)

        line.refresh_from_db()
        assert line.replenish_quantity == Decimal('4')
        assert line.is_manually_edited

    def test_edit_line_rejects_negative(self, document):
        line_id = _lines(document)['P1'].pk

        with pytest.raises(ValidationError) as exc:
            consignment.edit_line(document, line_id, Decimal('-2'))

        assert exc.value.code == 'INVALID_QUANTITY'

    @pytest.mark.parametrize('quantity', ['NaN', 'Infinity', 'muitos', None])
    def test_edit_line_rejects_unreadable_quantity(self, document, quantity):
        line = _lines(document)['P1']

        with pytest.raises(ValidationError) as exc:
            consignment.edit_line(document, line.pk, quantity)

        assert exc.value.code == 'INVALID_QUANTITY'
        line.refresh_from_db()
        assert line.replenish_quantity == Decimal('30')

    def test_save_document_requires_quantity(self, document):
        p1 = _lines(document)['P1']

        with pytest.raises(ValidationError) as exc:
            consignment.save_document(document, 'n', [{'id': p1.pk}])

        assert exc.value.code == 'FIELD_REQUIRED'
        assert exc.value.field == 'replenish_quantity'
        p1.refresh_from_db()
        assert p1.replenish_quantity == Decimal('30')
        assert not p1.is_manually_edited
        document.refresh_from_db()
        assert document.notes == ''

    def test_edit_line_of_other_document(self, document, agreement, counter, count_and_finalize):
        other = count_and_finalize(agreement, counter, {'P1': Decimal('1')})
        foreign_line = _lines(other)['P1'].pk

        with pytest.raises(NotFound) as exc:
            consignment.edit_line(document, foreign_line, Decimal('1'))

        assert exc.value.code == 'LINE_NOT_FOUND'

    def test_reset_line_recomputes_from_current_rule(self, document, agreement):
        line_id = _lines(document)['P1'].pk
        consignment.edit_line(document, line_id, Decimal('5'))
        consignment.save_agreement(
            'ACME', agreement.client_name, pk=agreement.pk,
            rules=_rules_with(P1={'max_stock': Decimal('70')}),
        )

        line = consignment.reset_line(document, line_id)

        line.refresh_from_db()
        assert not line.is_manually_edited
        assert line.max_stock == Decimal('70')
        assert line.replenish_quantity == Decimal('50')

    def test_edits_rejected_once_approved(self, document, approver):
        line_id = _lines(document)['P1'].pk
        consignment.submit(document, approver, erp_movement_id='MV-1')
        consignment.approve(document, approver)

        with pytest.raises(ValidationError) as exc:
            consignment.edit_line(document, line_id, Decimal('1'))
        assert exc.value.code == 'DOCUMENT_NOT_EDITABLE'

        with pytest.raises(ValidationError):
            consignment.reset_line(document, line_id)

        with pytest.raises(ValidationError):
            consignment.save_document(document, 'x', [])

    def test_save_document_persists_lines_and_notes(self, document, counter):
        lines = _lines(document)

        consignment.save_document(
            document,
            'Cliente pediu reforço de P2',
            [
                {'id': lines['P1'].pk, 'replenish_quantity': Decimal('30')},
                {'id': lines['P2'].pk, 'replenish_quantity': Decimal('6')},
                {'id': lines['P3'].pk, 'replenish_quantity': Decimal('0'), 'is_manually_edited': True},
            ],
            counter,
        )

        document.refresh_from_db()
        saved = _lines(document)
        assert document.notes == 'Cliente pediu reforço de P2'
        assert not saved['P1'].is_manually_edited   # equals computed value
        assert saved['P2'].is_manually_edited       # differs from computed value
        assert saved['P2'].replenish_quantity == Decimal('6')
        assert saved['P3'].is_manually_edited       # explicit flag

    def test_save_document_writes_one_history_entry(self, document, counter):
        lines = _lines(document)

        consignment.save_document(
            document,
            None,
            [{'id': line.pk, 'replenish_quantity': Decimal('1')} for line in lines.values()],
            counter,
        )

        history = list(HistoryEntry.objects.filter(document=document).order_by('timestamp'))
        assert len(history) == 2
        assert history[-1].status == DocumentStatus.REVIEW
        assert history[-1].user_id == counter.pk

    def test_save_document_unknown_line(self, document):
        with pytest.raises(NotFound) as exc:
            consignment.save_document(document, '', [{'id': 0, 'replenish_quantity': 1}])

        assert exc.value.code == 'LINE_NOT_FOUND'

    def test_concurrent_saves_last_write_wins(self, document, counter, other_counter):
        """Two editors saving the same line: the later save is what remains."""
        line_id = _lines(document)['P1'].pk

        consignment.save_document(document, 'primeiro', [{'id': line_id, 'replenish_quantity': 12}], counter)
        consignment.save_document(document, 'segundo', [{'id': line_id, 'replenish_quantity': 18}], other_counter)

        document.refresh_from_db()
        assert document.notes == 'segundo'
        assert _lines(document)['P1'].replenish_quantity == Decimal('18')
