"""
Consignman Admin — basic fallback (works without Unfold).

For the Unfold-styled version, add 'consignman.contrib.admin_unfold' to INSTALLED_APPS.
When the Unfold contrib is loaded, this module does nothing (avoids double registration).

- ConsignmentAgreement: list + edit, product rules inline
- CountingSession: read-only with "force release" action
- RestockDocument: read-only, lines and history inline
"""

import logging

from django.apps import apps
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)

# Skip registration if the Unfold contrib is installed (it will register its own admins)
if not apps.is_installed('consignman.contrib.admin_unfold'):
    from consignman.exceptions import ConsignmentError
    from consignman.models import (
        ConsignmentAgreement,
        CountingSession,
        DocumentLine,
        HistoryEntry,
        ProductRule,
        RestockDocument,
    )

    # =========================================================================
    # AGREEMENT ADMIN
    # =========================================================================

    class ProductRuleInline(admin.TabularInline):
        model = ProductRule
        extra = 0
        fields = ['product_id', 'client_product_code', 'max_stock', 'price']

    @admin.register(ConsignmentAgreement)
    class ConsignmentAgreementAdmin(admin.ModelAdmin):
        """Agreement admin — editable. The counter is read-only here."""

        list_display = ['client_id', 'client_name', 'erp_warehouse_id',
                        'next_document_number', 'is_active']
        list_filter = ['is_active']
        search_fields = ['client_id', 'client_name']
        readonly_fields = ['next_document_number', 'created_at', 'updated_at']
        inlines = [ProductRuleInline]

    # =========================================================================
    # COUNTING SESSION ADMIN (read-only with force release)
    # =========================================================================

    @admin.register(CountingSession)
    class CountingSessionAdmin(admin.ModelAdmin):
        """Counting session admin — read-only with force release action."""

        list_display = ['id', 'agreement', 'user', 'created_at', 'line_count']
        list_filter = ['created_at']
        search_fields = ['agreement__client_id', 'agreement__client_name', 'user__username']
        readonly_fields = ['agreement', 'user', 'created_at']
        actions = ['force_release_sessions']

        def has_add_permission(self, request):
            return False

        def has_change_permission(self, request, obj=None):
            return False

        def has_delete_permission(self, request, obj=None):
            return False

        @admin.display(description=_('Linhas'))
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

    # =========================================================================
    # RESTOCK DOCUMENT ADMIN (read-only)
    # =========================================================================

    class DocumentLineInline(admin.TabularInline):
        model = DocumentLine
        extra = 0
        fields = ['product_id', 'product_description', 'client_product_code',
                  'counted_quantity', 'max_stock', 'price', 'replenish_quantity',
                  'is_manually_edited']
        readonly_fields = fields
        can_delete = False

        def has_add_permission(self, request, obj=None):
            return False

    class HistoryEntryInline(admin.TabularInline):
        model = HistoryEntry
        extra = 0
        fields = ['timestamp', 'status', 'user', 'notes']
        readonly_fields = fields
        can_delete = False

        def has_add_permission(self, request, obj=None):
            return False

    @admin.register(RestockDocument)
    class RestockDocumentAdmin(admin.ModelAdmin):
        """Document admin — read-only. Status only changes via consignment.transition()."""

        list_display = ['consecutive', 'agreement', 'status', 'created_by',
                        'created_at', 'delivery_date', 'erp_invoice_number']
        list_filter = ['status', 'agreement']
        search_fields = ['consecutive', 'erp_movement_id', 'erp_invoice_number']
        readonly_fields = ['consecutive', 'agreement', 'status', 'created_by', 'created_at',
                           'submitted_by', 'submitted_at', 'approved_by', 'approved_at',
                           'erp_movement_id', 'erp_invoice_number', 'delivery_date',
                           'notes', 'updated_at']
        date_hierarchy = 'created_at'
        inlines = [DocumentLineInline, HistoryEntryInline]

        def has_add_permission(self, request):
            return False

        def has_change_permission(self, request, obj=None):
            return False

        def has_delete_permission(self, request, obj=None):
            return False
