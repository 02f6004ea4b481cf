"""
Enums for Consignman models.

The TRANSITIONS table is the single source of truth for the restock
document lifecycle. services.transitions is the only code allowed to
change RestockDocument.status, and it only follows edges listed here.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class DocumentStatus(models.TextChoices):
    """Restock document (boleta) lifecycle status."""
    REVIEW = 'review', _('Em Revisão')        # Created from a count, lines editable
    PENDING = 'pending', _('Pendente')        # Submitted with ERP movement, awaiting approval
    APPROVED = 'approved', _('Aprovada')      # Approved for dispatch
    SENT = 'sent', _('Enviada')               # Dispatched to the client site
    INVOICED = 'invoiced', _('Faturada')      # ERP invoice attached
    CANCELED = 'canceled', _('Cancelada')     # Terminal


class DocumentAction(models.TextChoices):
    """Named edges of the document lifecycle."""
    CREATE = 'create', _('Criar')
    SUBMIT = 'submit', _('Enviar para aprovação')
    APPROVE = 'approve', _('Aprovar')
    DISPATCH = 'dispatch', _('Despachar')
    INVOICE = 'invoice', _('Faturar')
    REVERT = 'revert', _('Reverter faturamento')
    CANCEL = 'cancel', _('Cancelar')


#   ┌────────┐ submit ┌─────────┐ approve ┌──────────┐ dispatch ┌──────┐ invoice ┌──────────┐
#   │ REVIEW │ ─────► │ PENDING │ ──────► │ APPROVED │ ───────► │ SENT │ ──────► │ INVOICED │
#   └────────┘        └─────────┘         └──────────┘          └──────┘ ◄────── └──────────┘
#       │                  │                    │                   │     revert
#       └──────────────────┴──── cancel ────────┴───────────────────┴──► CANCELED
TRANSITIONS: dict[str, dict[str, str]] = {
    DocumentStatus.REVIEW: {
        DocumentStatus.PENDING: DocumentAction.SUBMIT,
        DocumentStatus.CANCELED: DocumentAction.CANCEL,
    },
    DocumentStatus.PENDING: {
        DocumentStatus.APPROVED: DocumentAction.APPROVE,
        DocumentStatus.CANCELED: DocumentAction.CANCEL,
    },
    DocumentStatus.APPROVED: {
        DocumentStatus.SENT: DocumentAction.DISPATCH,
        DocumentStatus.CANCELED: DocumentAction.CANCEL,
    },
    DocumentStatus.SENT: {
        DocumentStatus.INVOICED: DocumentAction.INVOICE,
        DocumentStatus.CANCELED: DocumentAction.CANCEL,
    },
    DocumentStatus.INVOICED: {
        DocumentStatus.SENT: DocumentAction.REVERT,
    },
    DocumentStatus.CANCELED: {},
}

# Field the caller must supply for an action
REQUIRED_FIELDS: dict[str, str] = {
    DocumentAction.SUBMIT: 'erp_movement_id',
    DocumentAction.INVOICE: 'erp_invoice_number',
}

# Django permission checked by the configured Authorizer
ACTION_PERMISSIONS: dict[str, str] = {
    DocumentAction.SUBMIT: 'consignman.submit_restockdocument',
    DocumentAction.APPROVE: 'consignman.approve_restockdocument',
    DocumentAction.DISPATCH: 'consignman.dispatch_restockdocument',
    DocumentAction.INVOICE: 'consignman.invoice_restockdocument',
    DocumentAction.REVERT: 'consignman.revert_restockdocument',
    DocumentAction.CANCEL: 'consignman.cancel_restockdocument',
}

FORCE_RELEASE_PERMISSION = 'consignman.force_release_countingsession'
DELETE_AGREEMENT_PERMISSION = 'consignman.delete_consignmentagreement'

# Lines follow agreement rule changes only while the document is in these states
EDITABLE_STATUSES = frozenset({DocumentStatus.REVIEW, DocumentStatus.PENDING})


def action_for(current: str, target: str) -> str | None:
    """Return the action for current → target, or None if no such edge."""
    return TRANSITIONS.get(current, {}).get(target)
