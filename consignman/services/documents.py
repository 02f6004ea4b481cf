"""
Restock documents — creation from a finished count, recomputation and line edits.

Status changes live in services.transitions. Everything here either
creates a document in REVIEW or edits lines while the document is
still editable (REVIEW/PENDING).
"""

import logging
from dataclasses import dataclass, field

from django.db import transaction

from consignman.adapters import get_product_catalog
from consignman.exceptions import NotFound, ValidationError
from consignman.models.agreement import ConsignmentAgreement
from consignman.models.document import DocumentLine, RestockDocument
from consignman.models.enums import DocumentAction, DocumentStatus
from consignman.models.history import HistoryEntry
from consignman.models.session import CountingLine
from consignman.protocols.events import DOCUMENT
from consignman.replenishment import (
    as_decimal,
    compute_replenish_quantity,
    format_consecutive,
    refresh_line,
)
from consignman.services.agreements import AgreementRules, _get_agreement
from consignman.services.audit import AuditLog, actor_name
from consignman.services.sessions import _check_owner, _delete_session, _get_session

logger = logging.getLogger('consignman')


@dataclass
class DocumentDetails:
    """A document with its lines and history, as shown for review."""

    document: RestockDocument
    lines: list[DocumentLine] = field(default_factory=list)
    history: list[HistoryEntry] = field(default_factory=list)


def _get_document(document, for_update: bool = False) -> RestockDocument:
    """Resolve a document instance or pk, optionally row-locked."""
    pk = document.pk if isinstance(document, RestockDocument) else document
    qs = RestockDocument.objects.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=pk)
    except RestockDocument.DoesNotExist:
        raise NotFound('DOCUMENT_NOT_FOUND', document_id=pk) from None


def _get_line(document: RestockDocument, line_id: int) -> DocumentLine:
    try:
        return DocumentLine.objects.select_for_update().get(pk=line_id, document=document)
    except (DocumentLine.DoesNotExist, ValueError, TypeError):
        raise NotFound('LINE_NOT_FOUND', line_id=line_id, document_id=document.pk) from None


def _require_editable(document: RestockDocument) -> None:
    if not document.is_editable:
        raise ValidationError('DOCUMENT_NOT_EDITABLE', status=document.status, document_id=document.pk)


def _non_negative(value, **context):
    quantity = as_decimal(value)
    if quantity < 0:
        raise ValidationError('INVALID_QUANTITY', requested=quantity, **context)
    return quantity


class RestockDocuments:
    """Document creation and editing methods."""

    @classmethod
    def finalize_session(cls, session, user, notes: str = '') -> RestockDocument:
        """
        Turn a finished counting session into a restock document.

        1. Loads the counted lines and the agreement's current rules
        2. Drops counted products without a rule (not part of the agreement)
        3. Consumes the agreement's next number → consecutive
        4. Creates the document in REVIEW with one line per ruled product
        5. Deletes the session (releases the lock)

        A session with no lines still yields a document, with no lines.

        Raises:
            NotOwner: If user does not own the session
            NotFound('SESSION_NOT_FOUND')

        Concurrency:
            - Single transaction.atomic(): number, document, history and
              session deletion commit or roll back together
            - select_for_update() on session and agreement
        """
        with transaction.atomic():
            locked = _get_session(session, for_update=True)
            _check_owner(locked, user)
            session_id = locked.pk

            agreement = _get_agreement(locked.agreement_id, for_update=True)
            rules = AgreementRules.get_product_rules(agreement)
            counted = list(CountingLine.objects.filter(session=locked).order_by('product_id'))

            number = ConsignmentAgreement.objects.allocate_number(agreement.pk)
            document = RestockDocument.objects.create(
                consecutive=format_consecutive(agreement.client_id, number),
                agreement=agreement,
                created_by=user,
                notes=notes or '',
            )

            catalog = get_product_catalog()
            lines = []
            dropped = []
            for count in counted:
                rule = rules.get(count.product_id)
                if rule is None:
                    dropped.append(count.product_id)
                    continue
                description = catalog.get_product_description(count.product_id) or ''
                lines.append(DocumentLine(
                    document=document,
                    product_id=count.product_id,
                    product_description=description[:255],
                    client_product_code=rule.client_product_code,
                    counted_quantity=count.counted_quantity,
                    max_stock=rule.max_stock,
                    price=rule.price,
                    replenish_quantity=compute_replenish_quantity(rule.max_stock, count.counted_quantity),
                    is_manually_edited=False,
                ))
            DocumentLine.objects.bulk_create(lines)

            _delete_session(locked)

            AuditLog.record(
                document,
                DocumentStatus.REVIEW,
                notes=f"Boleta criada a partir da contagem #{session_id}",
                user=user,
            )
            AuditLog.emit(
                DOCUMENT,
                document.consecutive,
                DocumentAction.CREATE,
                user,
                document_id=document.pk,
                agreement_id=agreement.pk,
                status=DocumentStatus.REVIEW.value,
                lines=len(lines),
                dropped_products=dropped,
                created_by=actor_name(user),
            )

        logger.info(
            "consignman.document.created",
            extra={
                "document_id": document.pk,
                "consecutive": document.consecutive,
                "session_id": session_id,
                "lines": len(lines),
                "dropped": len(dropped),
            },
        )
        return document

    @classmethod
    def get_recomputed_document(cls, document) -> DocumentDetails:
        """
        Document, lines and history for display.

        While editable (REVIEW/PENDING) each line picks up the agreement's
        current rule and its replenish quantity is recomputed, unless the
        line was edited manually. A product whose rule was removed keeps
        its stale snapshot. In any other status stored values are returned
        verbatim. Nothing is written.
        """
        doc = _get_document(document)
        lines = list(DocumentLine.objects.filter(document=doc).order_by('product_id'))

        if doc.is_editable:
            rules = AgreementRules.get_product_rules(doc.agreement_id)
            for line in lines:
                refresh_line(line, rules.get(line.product_id))

        return DocumentDetails(
            document=doc,
            lines=lines,
            history=list(AuditLog.history(doc)),
        )

    @classmethod
    def edit_line(cls, document, line_id: int, replenish_quantity, user=None) -> DocumentLine:
        """
        Override a line's replenish quantity; recomputation leaves it alone from now on.

        Raises:
            ValidationError('INVALID_QUANTITY' | 'DOCUMENT_NOT_EDITABLE')
            NotFound('DOCUMENT_NOT_FOUND' | 'LINE_NOT_FOUND')
        """
        quantity = _non_negative(replenish_quantity, line_id=line_id)

        with transaction.atomic():
            doc = _get_document(document, for_update=True)
            _require_editable(doc)
            line = _get_line(doc, line_id)
            line.replenish_quantity = quantity
            line.is_manually_edited = True
            line.save(update_fields=['replenish_quantity', 'is_manually_edited'])
            AuditLog.record(
                doc,
                doc.status,
                notes=f"{line.product_id}: reposição ajustada manualmente para {quantity}",
                user=user,
            )

        logger.info(
            "consignman.document.line_edited",
            extra={"document_id": doc.pk, "line_id": line.pk, "qty": str(quantity)},
        )
        return line

    @classmethod
    def reset_line(cls, document, line_id: int, user=None) -> DocumentLine:
        """
        Drop a manual override: refresh from the current rule and recompute.

        Raises:
            ValidationError('DOCUMENT_NOT_EDITABLE')
            NotFound('DOCUMENT_NOT_FOUND' | 'LINE_NOT_FOUND')
        """
        with transaction.atomic():
            doc = _get_document(document, for_update=True)
            _require_editable(doc)
            line = _get_line(doc, line_id)
            rule = AgreementRules.get_product_rules(doc.agreement_id).get(line.product_id)
            line.is_manually_edited = False
            refresh_line(line, rule)
            line.save(update_fields=[
                'max_stock', 'price', 'client_product_code',
                'replenish_quantity', 'is_manually_edited',
            ])
            AuditLog.record(
                doc,
                doc.status,
                notes=f"{line.product_id}: reposição recalculada ({line.replenish_quantity})",
                user=user,
            )

        logger.info(
            "consignman.document.line_reset",
            extra={"document_id": doc.pk, "line_id": line.pk, "qty": str(line.replenish_quantity)},
        )
        return line

    @classmethod
    def save_document(cls, document, notes: str | None, lines, user=None) -> RestockDocument:
        """
        Persist notes and a batch of line edits, with one history entry.

        Args:
            notes: New notes (None keeps the current ones)
            lines: Iterable of dicts:
                - id (required)
                - replenish_quantity (required)
                - max_stock, price (optional refreshed snapshots)
                - is_manually_edited (optional; when absent, a quantity that
                  differs from the computed one marks the line as manual)

        Concurrent saves of the same document are last-write-wins per line.

        Raises:
            ValidationError('FIELD_REQUIRED' | 'INVALID_QUANTITY' | 'DOCUMENT_NOT_EDITABLE')
            NotFound('DOCUMENT_NOT_FOUND' | 'LINE_NOT_FOUND')
        """
        items = list(lines)
        for item in items:
            if item.get('replenish_quantity') is None:
                raise ValidationError('FIELD_REQUIRED', field='replenish_quantity', line_id=item.get('id'))
            _non_negative(item['replenish_quantity'], line_id=item.get('id'))

        with transaction.atomic():
            doc = _get_document(document, for_update=True)
            _require_editable(doc)

            by_id = {
                line.pk: line
                for line in DocumentLine.objects.select_for_update().filter(document=doc)
            }
            changed = []
            for item in items:
                try:
                    line = by_id[int(item['id'])]
                except (KeyError, TypeError, ValueError):
                    raise NotFound('LINE_NOT_FOUND', line_id=item.get('id'), document_id=doc.pk) from None

                if item.get('max_stock') is not None:
                    line.max_stock = _non_negative(item['max_stock'], line_id=line.pk)
                if item.get('price') is not None:
                    line.price = _non_negative(item['price'], line_id=line.pk)
                line.replenish_quantity = as_decimal(item['replenish_quantity'])

                manual = item.get('is_manually_edited')
                if manual is None:
                    manual = line.replenish_quantity != compute_replenish_quantity(
                        line.max_stock, line.counted_quantity,
                    )
                line.is_manually_edited = bool(manual)
                changed.append(line)

            if changed:
                DocumentLine.objects.bulk_update(
                    changed, ['max_stock', 'price', 'replenish_quantity', 'is_manually_edited'],
                )

            if notes is not None:
                doc.notes = notes
            doc.save(update_fields=['notes', 'updated_at'])

            AuditLog.record(
                doc,
                doc.status,
                notes=f"Boleta editada: {len(changed)} linha(s) atualizada(s)",
                user=user,
            )

        logger.info(
            "consignman.document.saved",
            extra={"document_id": doc.pk, "lines": len(changed), "actor": actor_name(user)},
        )
        return doc
