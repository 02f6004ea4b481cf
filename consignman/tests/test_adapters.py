"""
Tests for adapters, the event sink, errors and admin registration.
"""

import logging
from decimal import Decimal

import pytest
from django.contrib import admin
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from consignman.adapters import get_authorizer, get_product_catalog, get_user_directory
from consignman.adapters.django_auth import DjangoPermissionAuthorizer, DjangoUserDirectory
from consignman.adapters.log_sink import LoggingEventSink
from consignman.adapters.noop import AllowAllAuthorizer, NoopProductCatalog
from consignman.exceptions import ConsignmentError, Locked, ValidationError
from consignman.models import ConsignmentAgreement, CountingSession, RestockDocument
from consignman.protocols import Authorizer, ConsignmentEvent, EventSink, ProductCatalog, UserDirectory
from consignman.tests.fakes import FakeProductCatalog, RecordingEventSink


pytestmark = pytest.mark.django_db


class TestLoader:

    def test_configured_adapters(self):
        assert isinstance(get_product_catalog(), FakeProductCatalog)
        assert isinstance(get_user_directory(), DjangoUserDirectory)
        assert isinstance(get_authorizer(), AllowAllAuthorizer)

    def test_instances_are_cached(self):
        assert get_product_catalog() is get_product_catalog()

    def test_setting_change_picks_new_adapter(self, settings):
        settings.CONSIGNMAN = {**settings.CONSIGNMAN, 'PRODUCT_CATALOG': 'consignman.adapters.noop.NoopProductCatalog'}

        assert isinstance(get_product_catalog(), NoopProductCatalog)

    def test_bad_path(self, settings):
        settings.CONSIGNMAN = {**settings.CONSIGNMAN, 'EVENT_SINK': 'consignman.nowhere.Sink'}

        with pytest.raises(ImproperlyConfigured):
            from consignman.adapters import get_event_sink
            get_event_sink()

    def test_adapters_satisfy_protocols(self):
        assert isinstance(NoopProductCatalog(), ProductCatalog)
        assert isinstance(FakeProductCatalog(), ProductCatalog)
        assert isinstance(DjangoUserDirectory(), UserDirectory)
        assert isinstance(AllowAllAuthorizer(), Authorizer)
        assert isinstance(DjangoPermissionAuthorizer(), Authorizer)
        assert isinstance(LoggingEventSink(), EventSink)
        assert isinstance(RecordingEventSink(), EventSink)


class TestDjangoAdapters:

    def test_user_name_prefers_full_name(self, counter, approver):
        directory = DjangoUserDirectory()

        assert directory.resolve_user_name(counter) == 'Ana Souza'
        assert directory.resolve_user_name(approver) == 'carla'
        assert directory.resolve_user_name(None) == ''

    def test_inactive_user_has_no_permission(self, approver):
        approver.is_superuser = True
        approver.is_active = False

        assert not DjangoPermissionAuthorizer().has_permission(approver, 'consignman.approve_restockdocument')

    def test_superuser_has_permission(self, approver):
        approver.is_superuser = True

        assert DjangoPermissionAuthorizer().has_permission(approver, 'consignman.approve_restockdocument')


class TestLoggingEventSink:

    def test_emits_structured_record(self, caplog):
        event = ConsignmentEvent(
            entity='restock_document',
            entity_id='ACME-0001',
            action='approve',
            actor='carla',
            timestamp=timezone.now(),
            details={'from_status': 'pending', 'to_status': 'approved'},
        )

        with caplog.at_level(logging.INFO, logger='consignman.events'):
            LoggingEventSink().emit(event)

        record = caplog.records[-1]
        assert record.getMessage() == 'restock_document.approve'
        assert record.entity_id == 'ACME-0001'
        assert record.details['to_status'] == 'approved'


class TestErrors:

    def test_message_interpolation(self):
        err = Locked(user_name='Ana Souza', agreement_id=1)

        assert err.code == 'LOCKED'
        assert err.message == 'Sessão de contagem em uso por Ana Souza'
        assert str(err) == err.message

    def test_field_required_names_field(self):
        err = ValidationError('FIELD_REQUIRED', field='erp_movement_id')

        assert err.field == 'erp_movement_id'
        assert 'erp_movement_id' in err.message

    def test_as_dict_serializes_decimals(self):
        err = ValidationError('INVALID_QUANTITY', requested=Decimal('-1.5'))

        assert err.as_dict() == {
            'kind': 'validation_error',
            'code': 'INVALID_QUANTITY',
            'message': 'Quantidade inválida (informe um número não negativo)',
            'data': {'requested': '-1.5'},
        }

    def test_missing_placeholder_keeps_template(self):
        err = ConsignmentError('FIELD_REQUIRED')

        assert err.message == 'Campo obrigatório ausente: {field}'


class TestAdmin:

    def test_models_registered(self):
        assert admin.site.is_registered(ConsignmentAgreement)
        assert admin.site.is_registered(CountingSession)
        assert admin.site.is_registered(RestockDocument)

    def test_unfold_formatters(self):
        pytest.importorskip('unfold')
        from consignman.contrib.admin_unfold.base import format_quantity

        assert format_quantity(Decimal('12.000')) == '12'
        assert format_quantity(Decimal('2.500')) == '2.5'
        assert format_quantity(None) == '-'
