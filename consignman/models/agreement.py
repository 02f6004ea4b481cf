"""
Agreement models — consignment contract and its per-product rules.
"""

from decimal import Decimal

from django.db import models, transaction
from django.db.models import F
from django.utils.translation import gettext_lazy as _


class AgreementManager(models.Manager):
    """Manager with the document-number sequence."""

    def active(self):
        """Only agreements open for counting."""
        return self.filter(is_active=True)

    def allocate_number(self, agreement_id: int) -> int:
        """
        Consume the next document number for an agreement.

        The increment is a single UPDATE ... SET n = n + 1, so two callers
        can never read the same value. The prior value is returned.
        Must run inside the caller's transaction when the number is tied
        to a document being created.

        Returns:
            The number assigned (value before the increment)

        Raises:
            ConsignmentAgreement.DoesNotExist: If agreement_id is unknown
        """
        with transaction.atomic():
            updated = self.filter(pk=agreement_id).update(
                next_document_number=F('next_document_number') + 1,
            )
            if not updated:
                raise self.model.DoesNotExist(f"agreement {agreement_id}")
            current = self.filter(pk=agreement_id).values_list(
                'next_document_number', flat=True,
            ).get()
        return current - 1


class ConsignmentAgreement(models.Model):
    """
    Consignment contract with one client.

    next_document_number only moves forward. A number consumed by a
    document that is later canceled is never handed out again.
    """

    client_id = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Código do Cliente'),
    )
    client_name = models.CharField(
        max_length=200,
        verbose_name=_('Cliente'),
    )
    erp_warehouse_id = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Bodega ERP'),
    )
    next_document_number = models.PositiveIntegerField(
        default=1,
        verbose_name=_('Próximo Consecutivo'),
    )
    notes = models.TextField(blank=True, default='', verbose_name=_('Observações'))
    is_active = models.BooleanField(default=True, verbose_name=_('Ativo'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AgreementManager()

    class Meta:
        verbose_name = _('Acordo de Consignação')
        verbose_name_plural = _('Acordos de Consignação')
        ordering = ['client_name']

    def __str__(self) -> str:
        return f"[{self.client_id}] {self.client_name}"


class ProductRule(models.Model):
    """
    Per-product terms of an agreement.

    Rules may change while documents are still in review; those documents
    pick up the new max_stock/price on the next recomputation.
    """

    agreement = models.ForeignKey(
        ConsignmentAgreement,
        on_delete=models.CASCADE,
        related_name='rules',
        verbose_name=_('Acordo'),
    )
    product_id = models.CharField(max_length=64, verbose_name=_('Produto'))
    max_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Estoque Máximo'),
        help_text=_('0 = sem reposição automática'),
    )
    price = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        default=Decimal('0'),
        verbose_name=_('Preço'),
    )
    client_product_code = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Código do Cliente'),
    )

    class Meta:
        verbose_name = _('Produto em Consignação')
        verbose_name_plural = _('Produtos em Consignação')
        ordering = ['product_id']
        constraints = [
            models.UniqueConstraint(
                fields=['agreement', 'product_id'],
                name='unique_rule_per_agreement_product',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} ≤ {self.max_stock}"
