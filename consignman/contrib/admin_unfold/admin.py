"""
Consignman Admin with Unfold theme.

This module provides Unfold-styled admin classes for Consignman models.
To use, add 'consignman.contrib.admin_unfold' to INSTALLED_APPS after 'consignman'.

The admins will automatically register the Unfold versions.
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from unfold.decorators import display

from consignman.contrib.admin_unfold.base import (
    BaseModelAdmin,
    BaseTabularInline,
    ReadOnlyTabularInline,
    format_date,
    format_datetime,
    format_money,
    format_quantity,
)
from consignman.exceptions import ConsignmentError
from consignman.models import (
    ConsignmentAgreement,
    CountingSession,
    DocumentLine,
    DocumentStatus,
    HistoryEntry,
    ProductRule,
    RestockDocument,
)

logger = logging.getLogger(__name__)


STATUS_COLORS = {
    DocumentStatus.REVIEW: 'info',
    DocumentStatus.PENDING: 'warning',
    DocumentStatus.APPROVED: 'info',
    DocumentStatus.SENT: 'success',
    DocumentStatus.INVOICED: 'success',
    DocumentStatus.CANCELED: 'danger',
}


# =============================================================================
# ACORDO (AGREEMENT) ADMIN
# =============================================================================


class ProductRuleInline(BaseTabularInline):
    model = ProductRule
    extra = 0
    fields = ['product_id', 'client_product_code', 'max_stock', 'price']


@admin.register(ConsignmentAgreement)
class ConsignmentAgreementAdmin(BaseModelAdmin):
    """Admin for ConsignmentAgreement. The document counter is read-only."""

    list_display = ['client_id', 'client_name', 'erp_warehouse_id',
                    'next_document_number', 'is_active_display']
    list_filter = ['is_active']
    search_fields = ['client_id', 'client_name']
    readonly_fields = ['next_document_number', 'created_at', 'updated_at']
    inlines = [ProductRuleInline]

    # Unfold options
    compressed_fields = True
    warn_unsaved_form = True

    @display(description=_('Ativo'), label={True: 'success', False: 'danger'})
    def is_active_display(self, obj):
        return obj.is_active, _('ATIVO') if obj.is_active else _('INATIVO')


# =============================================================================
# SESSÃO DE CONTAGEM (COUNTING SESSION) ADMIN
# =============================================================================


@admin.register(CountingSession)
class CountingSessionAdmin(BaseModelAdmin):
    """Admin for CountingSession (read-only).

    Sessions are created and finished by the counting screens. The only
    admin action is the forced release of a stuck session.
    """

    list_display = ['id', 'agreement', 'user', 'created_at_display', 'line_count']
    list_filter = ['created_at']
    search_fields = ['agreement__client_id', 'agreement__client_name', 'user__username']
    readonly_fields = ['agreement', 'user', 'created_at']
    actions = ['force_release_sessions']

    compressed_fields = True

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @display(description=_('Iniciada em'))
    def created_at_display(self, obj):
        return format_datetime(obj.created_at)

    @display(description=_('Linhas'))
    def line_count(self, obj):
        return obj.lines.count()

    @admin.action(description=_('Liberar sessões selecionadas'))
    def force_release_sessions(self, request, queryset):
        from consignman import consignment

        count = 0
        for session in queryset:
            try:
                consignment.force_release_session(session.pk, request.user, reason='Liberada via admin')
                count += 1
            except ConsignmentError as exc:
                logger.warning("force_release_sessions: failed to release %s: %s", session.pk, exc)

        self.message_user(request, _('{count} sessão(ões) liberada(s).').format(count=count))


# =============================================================================
# BOLETA (RESTOCK DOCUMENT) ADMIN
# =============================================================================


class DocumentLineInline(ReadOnlyTabularInline):
    model = DocumentLine
    fields = ['product_id', 'product_description', 'client_product_code',
              'counted_display', 'max_stock_display', 'price_display',
              'replenish_display', 'is_manually_edited']
    readonly_fields = fields

    @display(description=_('Inventário Físico'))
    def counted_display(self, obj):
        return format_quantity(obj.counted_quantity)

    @display(description=_('Máximo'))
    def max_stock_display(self, obj):
        return format_quantity(obj.max_stock)

    @display(description=_('Preço'))
    def price_display(self, obj):
        return format_money(obj.price)

    @display(description=_('A Repor'))
    def replenish_display(self, obj):
        return format_quantity(obj.replenish_quantity)


class HistoryEntryInline(ReadOnlyTabularInline):
    model = HistoryEntry
    fields = ['timestamp_display', 'status', 'user', 'notes']
    readonly_fields = fields

    @display(description=_('Data/Hora'))
    def timestamp_display(self, obj):
        return format_datetime(obj.timestamp)


@admin.register(RestockDocument)
class RestockDocumentAdmin(BaseModelAdmin):
    """Admin for RestockDocument (read-only).

    Status only changes via consignment.transition() so every change
    leaves a history entry and an event.
    """

    list_display = ['consecutive', 'agreement', 'status_display', 'created_by',
                    'created_at_display', 'delivery_date_display', 'erp_invoice_number']
    list_filter = ['status', 'agreement']
    search_fields = ['consecutive', 'erp_movement_id', 'erp_invoice_number']
    readonly_fields = ['consecutive', 'agreement', 'status', 'created_by', 'created_at',
                       'submitted_by', 'submitted_at', 'approved_by', 'approved_at',
                       'erp_movement_id', 'erp_invoice_number', 'delivery_date',
                       'notes', 'updated_at']
    date_hierarchy = 'created_at'
    inlines = [DocumentLineInline, HistoryEntryInline]

    compressed_fields = True

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @display(description=_('Status'), label=STATUS_COLORS)
    def status_display(self, obj):
        return obj.status, obj.get_status_display().upper()

    @display(description=_('Criada em'))
    def created_at_display(self, obj):
        return format_datetime(obj.created_at)

    @display(description=_('Entrega'))
    def delivery_date_display(self, obj):
        return format_date(obj.delivery_date)
