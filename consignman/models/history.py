"""
HistoryEntry model — append-only audit trail of a restock document.
"""

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class HistoryManager(models.Manager):
    """Manager that appends entries with per-document increasing timestamps."""

    def append(self, document, status: str, notes: str = '', user=None):
        """
        Append an entry for document.

        Timestamps are strictly increasing per document: if the clock has
        not advanced past the last entry, the new one is placed 1µs after it.
        """
        now = timezone.now()
        last = (
            self.filter(document=document)
            .order_by('-timestamp')
            .values_list('timestamp', flat=True)
            .first()
        )
        if last is not None and now <= last:
            now = last + timedelta(microseconds=1)

        return self.create(
            document=document,
            timestamp=now,
            status=status,
            notes=notes or '',
            user=user,
        )


class HistoryEntry(models.Model):
    """
    Immutable record of a document status or bulk edit.

    Rules:
    - NEVER update() or delete()
    - Written in the same transaction as the change it records
    """

    document = models.ForeignKey(
        'consignman.RestockDocument',
        on_delete=models.PROTECT,
        related_name='history',
        verbose_name=_('Boleta'),
    )
    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Data/Hora'))
    status = models.CharField(max_length=20, verbose_name=_('Status'))
    notes = models.TextField(blank=True, default='', verbose_name=_('Observações'))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Usuário'),
    )

    objects = HistoryManager()

    class Meta:
        verbose_name = _('Histórico da Boleta')
        verbose_name_plural = _('Histórico das Boletas')
        ordering = ['timestamp']
        indexes = [
            models.Index(fields=['document', 'timestamp'], name='consig_history_doc_ts'),
        ]

    def save(self, *args, **kwargs):
        """Insert only."""
        if self.pk:
            raise ValueError("Histórico é imutável.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — history is append-only."""
        raise ValueError("Histórico é imutável.")

    def __str__(self) -> str:
        return f"{self.timestamp:%d/%m/%y %H:%M} · {self.status}"
