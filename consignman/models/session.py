"""
CountingSession model — the per-agreement counting lock.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class CountingSession(models.Model):
    """
    In-progress physical count of one agreement's stock.

    The row IS the lock: it exists only while the count is in progress
    and is deleted on finalize, abandon or force release. The two unique
    constraints hold the invariants under concurrent inserts:

    - at most one session per agreement
    - at most one session per user
    """

    agreement = models.ForeignKey(
        'consignman.ConsignmentAgreement',
        on_delete=models.CASCADE,
        related_name='counting_sessions',
        verbose_name=_('Acordo'),
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='consignment_counting_sessions',
        verbose_name=_('Usuário'),
    )
    created_at = models.DateTimeField(default=timezone.now, verbose_name=_('Iniciada em'))

    class Meta:
        verbose_name = _('Sessão de Contagem')
        verbose_name_plural = _('Sessões de Contagem')
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['agreement'], name='one_counting_session_per_agreement'),
            models.UniqueConstraint(fields=['user'], name='one_counting_session_per_user'),
        ]
        permissions = [
            ('force_release_countingsession', _('Pode liberar sessões de contagem de outros usuários')),
        ]

    def __str__(self) -> str:
        return f"Contagem #{self.pk} · {self.agreement.client_id}"


class CountingLine(models.Model):
    """Counted quantity for one product. Re-counting overwrites."""

    session = models.ForeignKey(
        CountingSession,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Sessão'),
    )
    product_id = models.CharField(max_length=64, verbose_name=_('Produto'))
    counted_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantidade Contada'),
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Linha de Contagem')
        verbose_name_plural = _('Linhas de Contagem')
        ordering = ['product_id']
        constraints = [
            models.UniqueConstraint(
                fields=['session', 'product_id'],
                name='unique_count_per_session_product',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} = {self.counted_quantity}"
