"""
RestockDocument model — the boleta generated from a finished count.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from consignman.exceptions import ValidationError
from consignman.models.enums import EDITABLE_STATUSES, DocumentStatus


class DocumentQuerySet(models.QuerySet):
    """Queryset that refuses bulk status writes."""

    def update(self, **kwargs):
        if 'status' in kwargs:
            raise ValidationError('DIRECT_STATUS_WRITE')
        return super().update(**kwargs)

    def bulk_update(self, objs, fields, *args, **kwargs):
        if 'status' in fields:
            raise ValidationError('DIRECT_STATUS_WRITE')
        return super().bulk_update(objs, fields, *args, **kwargs)

    def editable(self):
        """Documents whose lines still follow agreement rule changes."""
        return self.filter(status__in=EDITABLE_STATUSES)

    def for_agreement(self, agreement):
        return self.filter(agreement=agreement)


class RestockDocument(models.Model):
    """
    Restock document (boleta).

    LIFECYCLE (see models.enums.TRANSITIONS):

        REVIEW → PENDING → APPROVED → SENT ⇄ INVOICED
           └────────┴──────────┴───────┴──→ CANCELED

    Rules:
    - Created only by finalizing a counting session, always in REVIEW
    - NEVER deleted; cancellation is a status
    - status changes only through services.transitions; save() and
      queryset update() reject any other status write
    """

    consecutive = models.CharField(
        max_length=80,
        unique=True,
        verbose_name=_('Consecutivo'),
        help_text=_('{cliente}-{0000}, sequencial por acordo'),
    )
    agreement = models.ForeignKey(
        'consignman.ConsignmentAgreement',
        on_delete=models.PROTECT,
        related_name='documents',
        verbose_name=_('Acordo'),
    )
    status = models.CharField(
        max_length=20,
        choices=DocumentStatus.choices,
        default=DocumentStatus.REVIEW,
        db_index=True,
        editable=False,
        verbose_name=_('Status'),
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Criada por'),
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Criada em'))
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Enviada por'),
    )
    submitted_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Enviada em'))
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Aprovada por'),
    )
    approved_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Aprovada em'))

    erp_movement_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Movimento ERP'),
    )
    erp_invoice_number = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Fatura ERP'),
    )
    delivery_date = models.DateField(null=True, blank=True, verbose_name=_('Data de Entrega'))
    notes = models.TextField(blank=True, default='', verbose_name=_('Observações'))
    updated_at = models.DateTimeField(auto_now=True)

    objects = DocumentQuerySet.as_manager()

    class Meta:
        verbose_name = _('Boleta de Reposição')
        verbose_name_plural = _('Boletas de Reposição')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['agreement', 'status'], name='consig_doc_agreement_status'),
            models.Index(fields=['status', 'created_at'], name='consig_doc_status_created'),
        ]
        permissions = [
            ('submit_restockdocument', _('Pode enviar boletas para aprovação')),
            ('approve_restockdocument', _('Pode aprovar boletas')),
            ('dispatch_restockdocument', _('Pode marcar boletas como enviadas')),
            ('invoice_restockdocument', _('Pode faturar boletas')),
            ('revert_restockdocument', _('Pode reverter o faturamento de boletas')),
            ('cancel_restockdocument', _('Pode cancelar boletas')),
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._persisted_status = None if self._state.adding else self.__dict__.get('status')
        self._status_transition = False

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._persisted_status = instance.__dict__.get('status')
        return instance

    def refresh_from_db(self, using=None, fields=None, **kwargs):
        super().refresh_from_db(using=using, fields=fields, **kwargs)
        if fields is None or 'status' in fields:
            self._persisted_status = self.__dict__.get('status')
            self._status_transition = False

    def _stored_status(self):
        # Loaded with status deferred: read what the row holds.
        if self._persisted_status is None:
            self._persisted_status = (
                type(self)._base_manager
                .filter(pk=self.pk)
                .values_list('status', flat=True)
                .first()
            )
        return self._persisted_status

    def save(self, *args, **kwargs):
        """Save, rejecting status writes that bypass the transition service."""
        if self._state.adding:
            if self.status != DocumentStatus.REVIEW:
                raise ValidationError('DIRECT_STATUS_WRITE')
        elif 'status' in self.__dict__ and not self._status_transition:
            stored = self._stored_status()
            if stored is not None and self.status != stored:
                raise ValidationError('DIRECT_STATUS_WRITE')

        super().save(*args, **kwargs)
        self._persisted_status = self.__dict__.get('status', self._persisted_status)
        self._status_transition = False

    def delete(self, *args, **kwargs):
        """Prevent deletion — documents are canceled, never removed."""
        raise ValueError(
            "Boletas não são excluídas. "
            "Para anular, use a transição para 'canceled'."
        )

    def _apply_status(self, status: str) -> None:
        """Set a new status. Reserved for services.transitions."""
        self.status = status
        self._status_transition = True

    @property
    def is_editable(self) -> bool:
        """Lines can be edited and follow rule changes."""
        return self.status in EDITABLE_STATUSES

    def __str__(self) -> str:
        return f"{self.consecutive} ({self.get_status_display()})"


class DocumentLine(models.Model):
    """
    One product on a restock document.

    counted_quantity is copied from the count and never changes.
    max_stock/price are snapshots refreshed by recomputation while the
    document is editable. is_manually_edited freezes replenish_quantity.
    """

    document = models.ForeignKey(
        RestockDocument,
        on_delete=models.PROTECT,
        related_name='lines',
        verbose_name=_('Boleta'),
    )
    product_id = models.CharField(max_length=64, verbose_name=_('Produto'))
    product_description = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Descrição'))
    client_product_code = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Código do Cliente'))
    counted_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Inventário Físico'),
    )
    max_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Máximo'),
    )
    price = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal('0'),
        verbose_name=_('Preço'),
    )
    replenish_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('A Repor'),
    )
    is_manually_edited = models.BooleanField(default=False, verbose_name=_('Editada manualmente'))

    class Meta:
        verbose_name = _('Linha da Boleta')
        verbose_name_plural = _('Linhas da Boleta')
        ordering = ['product_id']
        constraints = [
            models.UniqueConstraint(
                fields=['document', 'product_id'],
                name='unique_line_per_document_product',
            ),
        ]

    def __str__(self) -> str:
        flag = ' ✎' if self.is_manually_edited else ''
        return f"{self.product_id}: {self.counted_quantity} → +{self.replenish_quantity}{flag}"
