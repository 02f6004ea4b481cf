"""
Document transitions — the only path that changes RestockDocument.status.

Every call follows one edge of models.enums.TRANSITIONS, checks the
actor's permission for that edge, applies its side effects, appends one
history entry and emits one event, all in a single transaction.
"""

import logging
from datetime import date

from django.db import transaction
from django.utils import timezone

from consignman.exceptions import ValidationError
from consignman.models.document import RestockDocument
from consignman.models.enums import (
    ACTION_PERMISSIONS,
    REQUIRED_FIELDS,
    DocumentAction,
    DocumentStatus,
    action_for,
)
from consignman.protocols.events import DOCUMENT
from consignman.services.audit import AuditLog, actor_name, require_permission
from consignman.services.documents import _get_document

logger = logging.getLogger('consignman')


class DocumentTransitions:
    """Status transition methods."""

    @classmethod
    def transition(cls, document, target_status: str, user, notes: str = '',
                   erp_movement_id: str | None = None,
                   erp_invoice_number: str | None = None,
                   delivery_date: date | None = None) -> RestockDocument:
        """
        Move a document along one edge of the lifecycle.

        Side effects per action:
            submit   → submitted_by/at, erp_movement_id (required)
            approve  → approved_by/at
            dispatch → delivery_date (today when not given)
            invoice  → erp_invoice_number (required)
            revert   → erp_invoice_number cleared
            cancel   → none

        Raises:
            ValidationError('INVALID_STATUS'): Unknown target status
            ValidationError('INVALID_TRANSITION'): No edge current → target
            ValidationError('FIELD_REQUIRED'): Required field missing (data['field'])
            NotOwner('PERMISSION_DENIED'): Actor lacks the action's permission
            NotFound('DOCUMENT_NOT_FOUND')

        Concurrency:
            - transaction.atomic() with select_for_update() on the document
            - The edge is validated against the locked row, so two callers
              racing the same edge cannot both pass
        """
        if target_status not in DocumentStatus.values:
            raise ValidationError('INVALID_STATUS', status=target_status)
        target = DocumentStatus(target_status)

        with transaction.atomic():
            doc = _get_document(document, for_update=True)
            current = doc.status

            action = action_for(current, target)
            if action is None:
                raise ValidationError(
                    'INVALID_TRANSITION',
                    current=current,
                    target=target.value,
                    document_id=doc.pk,
                )

            require_permission(user, ACTION_PERMISSIONS[action])

            supplied = {
                'erp_movement_id': (erp_movement_id or '').strip(),
                'erp_invoice_number': (erp_invoice_number or '').strip(),
            }
            required = REQUIRED_FIELDS.get(action)
            if required and not supplied[required]:
                raise ValidationError('FIELD_REQUIRED', field=required, action=action.value)

            now = timezone.now()
            update_fields = ['status', 'updated_at']

            if action == DocumentAction.SUBMIT:
                doc.submitted_by = user
                doc.submitted_at = now
                doc.erp_movement_id = supplied['erp_movement_id']
                update_fields += ['submitted_by', 'submitted_at', 'erp_movement_id']
            elif action == DocumentAction.APPROVE:
                doc.approved_by = user
                doc.approved_at = now
                update_fields += ['approved_by', 'approved_at']
            elif action == DocumentAction.DISPATCH:
                doc.delivery_date = delivery_date or timezone.localdate()
                update_fields.append('delivery_date')
            elif action == DocumentAction.INVOICE:
                doc.erp_invoice_number = supplied['erp_invoice_number']
                update_fields.append('erp_invoice_number')
            elif action == DocumentAction.REVERT:
                doc.erp_invoice_number = ''
                update_fields.append('erp_invoice_number')

            doc._apply_status(target)
            doc.save(update_fields=update_fields)

            AuditLog.record(doc, target, notes=notes, user=user)
            AuditLog.emit(
                DOCUMENT,
                doc.consecutive,
                action,
                user,
                document_id=doc.pk,
                agreement_id=doc.agreement_id,
                from_status=current,
                to_status=target.value,
                notes=notes or '',
                created_by=doc.created_by_id,
            )

        logger.info(
            "consignman.document.transitioned",
            extra={
                "document_id": doc.pk,
                "consecutive": doc.consecutive,
                "from_status": current,
                "to_status": target.value,
                "actor": actor_name(user),
            },
        )
        return doc

    @classmethod
    def submit(cls, document, user, erp_movement_id: str, notes: str = '') -> RestockDocument:
        """Review → pending, recording the ERP movement."""
        return cls.transition(document, DocumentStatus.PENDING, user, notes=notes,
                              erp_movement_id=erp_movement_id)

    @classmethod
    def approve(cls, document, user, notes: str = '') -> RestockDocument:
        return cls.transition(document, DocumentStatus.APPROVED, user, notes=notes)

    @classmethod
    def dispatch(cls, document, user, delivery_date: date | None = None, notes: str = '') -> RestockDocument:
        return cls.transition(document, DocumentStatus.SENT, user, notes=notes,
                              delivery_date=delivery_date)

    @classmethod
    def invoice(cls, document, user, erp_invoice_number: str, notes: str = '') -> RestockDocument:
        """Sent → invoiced, recording the ERP invoice."""
        return cls.transition(document, DocumentStatus.INVOICED, user, notes=notes,
                              erp_invoice_number=erp_invoice_number)

    @classmethod
    def revert_invoice(cls, document, user, notes: str = '') -> RestockDocument:
        """Invoiced → sent. The invoice number is cleared."""
        return cls.transition(document, DocumentStatus.SENT, user, notes=notes)

    @classmethod
    def cancel(cls, document, user, notes: str = '') -> RestockDocument:
        return cls.transition(document, DocumentStatus.CANCELED, user, notes=notes)
