"""
Pytest fixtures for Consignman tests.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from consignman import consignment
from consignman.adapters import get_event_sink, reset_adapters
from consignman.tests.fakes import ACME_RULES


User = get_user_model()


@pytest.fixture(autouse=True)
def fresh_adapters():
    """Adapters are cached per process; start every test with new instances."""
    reset_adapters()
    yield
    reset_adapters()


@pytest.fixture
def sink():
    """The recording event sink configured in tests.settings."""
    return get_event_sink()


@pytest.fixture
def counter(db):
    """User doing the physical count."""
    return User.objects.create_user(
        username='ana',
        password='testpass123',
        first_name='Ana',
        last_name='Souza',
    )


@pytest.fixture
def other_counter(db):
    """A second counter."""
    return User.objects.create_user(
        username='bruno',
        password='testpass123',
        first_name='Bruno',
        last_name='Lima',
    )


@pytest.fixture
def approver(db):
    """User approving and invoicing documents."""
    return User.objects.create_user(
        username='carla',
        password='testpass123',
    )


@pytest.fixture
def agreement(db):
    """ACME agreement: P1 max 50, P2 max 10, P3 max 0 (no auto replenishment)."""
    return consignment.save_agreement('ACME', 'Acme Industrial Ltda', rules=ACME_RULES)


@pytest.fixture
def other_agreement(db):
    """A second agreement, for the one-session-per-user rule."""
    return consignment.save_agreement(
        'BETA',
        'Beta Comércio',
        rules=[{'product_id': 'P1', 'max_stock': Decimal('5'), 'price': Decimal('3')}],
    )


@pytest.fixture
def session(agreement, counter):
    """Counting session held by counter on ACME."""
    return consignment.acquire_session(agreement, counter)


@pytest.fixture
def document(session, counter):
    """
    Document finalized from a count of P1=20, P2=15, P3=5, X9=3.

    Expected lines: P1 → 30, P2 → 0 (over max), P3 → 0 (max 0); X9 dropped.
    """
    consignment.record_count(session, 'P1', Decimal('20'), counter)
    consignment.record_count(session, 'P2', Decimal('15'), counter)
    consignment.record_count(session, 'P3', Decimal('5'), counter)
    consignment.record_count(session, 'X9', Decimal('3'), counter)
    return consignment.finalize_session(session, counter)


@pytest.fixture
def count_and_finalize(db):
    """Factory running a whole count → document cycle."""

    def _run(agreement, user, counts=None):
        session = consignment.acquire_session(agreement, user)
        for product_id, quantity in (counts or {}).items():
            consignment.record_count(session, product_id, quantity, user)
        return consignment.finalize_session(session, user)

    return _run


@pytest.fixture
def permission_checks(settings):
    """Switch the authorizer to django.contrib.auth permissions."""
    settings.CONSIGNMAN = {
        **settings.CONSIGNMAN,
        'AUTHORIZER': 'consignman.adapters.django_auth.DjangoPermissionAuthorizer',
    }
    return settings
