"""
Agreement access — read glue for sessions and documents, plus agreement upkeep.
"""

import logging

from django.db import transaction
from django.db.models import Count

from consignman.exceptions import NotFound, ValidationError
from consignman.models.agreement import ConsignmentAgreement, ProductRule
from consignman.models.enums import DELETE_AGREEMENT_PERMISSION
from consignman.models.session import CountingLine, CountingSession
from consignman.replenishment import as_decimal
from consignman.services.audit import actor_name, require_permission

logger = logging.getLogger('consignman')


def _get_agreement(agreement, for_update: bool = False) -> ConsignmentAgreement:
    """Resolve an agreement instance or pk, optionally row-locked."""
    pk = agreement.pk if isinstance(agreement, ConsignmentAgreement) else agreement
    qs = ConsignmentAgreement.objects.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=pk)
    except ConsignmentAgreement.DoesNotExist:
        raise NotFound('AGREEMENT_NOT_FOUND', agreement_id=pk) from None


class AgreementRules:
    """Agreement and product-rule methods."""

    @classmethod
    def get_agreement(cls, agreement) -> ConsignmentAgreement:
        """
        Agreement by instance or pk.

        Raises:
            NotFound('AGREEMENT_NOT_FOUND')
        """
        return _get_agreement(agreement)

    @classmethod
    def get_product_rules(cls, agreement) -> dict[str, ProductRule]:
        """Current rules keyed by product_id (latest committed state)."""
        pk = agreement.pk if isinstance(agreement, ConsignmentAgreement) else agreement
        return {
            rule.product_id: rule
            for rule in ProductRule.objects.filter(agreement_id=pk)
        }

    @classmethod
    def save_agreement(cls, client_id: str, client_name: str, rules=(),
                       pk: int | None = None, erp_warehouse_id: str = '',
                       notes: str = '', is_active: bool = True) -> ConsignmentAgreement:
        """
        Create or update an agreement and replace its rule set.

        Args:
            rules: Iterable of dicts with product_id, max_stock, price and
                optional client_product_code. Products absent from the list
                lose their rule; present ones are upserted.

        The document counter is never touched here.
        """
        rules = list(rules)
        for rule in rules:
            if as_decimal(rule.get('max_stock', 0)) < 0 or as_decimal(rule.get('price', 0)) < 0:
                raise ValidationError('INVALID_QUANTITY', product_id=rule.get('product_id'))

        with transaction.atomic():
            if pk is None:
                agreement = ConsignmentAgreement.objects.create(
                    client_id=client_id,
                    client_name=client_name,
                    erp_warehouse_id=erp_warehouse_id,
                    notes=notes,
                    is_active=is_active,
                )
            else:
                agreement = _get_agreement(pk, for_update=True)
                agreement.client_id = client_id
                agreement.client_name = client_name
                agreement.erp_warehouse_id = erp_warehouse_id
                agreement.notes = notes
                agreement.is_active = is_active
                agreement.save(update_fields=[
                    'client_id', 'client_name', 'erp_warehouse_id',
                    'notes', 'is_active', 'updated_at',
                ])

            keep = [rule['product_id'] for rule in rules]
            ProductRule.objects.filter(agreement=agreement).exclude(product_id__in=keep).delete()
            for rule in rules:
                ProductRule.objects.update_or_create(
                    agreement=agreement,
                    product_id=rule['product_id'],
                    defaults={
                        'max_stock': as_decimal(rule.get('max_stock', 0)),
                        'price': as_decimal(rule.get('price', 0)),
                        'client_product_code': rule.get('client_product_code') or '',
                    },
                )

        logger.info(
            "consignman.agreement.saved",
            extra={"agreement_id": agreement.pk, "client_id": client_id, "rules": len(rules)},
        )
        return agreement

    @classmethod
    def list_agreements(cls, active_only: bool = False):
        """Agreements by client_id, each annotated with product_count (rules on file)."""
        qs = ConsignmentAgreement.objects.active() if active_only else ConsignmentAgreement.objects.all()
        return qs.annotate(product_count=Count('rules')).order_by('client_id')

    @classmethod
    def delete_agreement(cls, agreement, user) -> None:
        """
        Delete an agreement that never produced a document.

        Its product rules and any open counting session go with it.
        Agreements with documents are kept; deactivate them instead.

        Raises:
            NotOwner('PERMISSION_DENIED'): Without the delete permission
            ValidationError('AGREEMENT_HAS_DOCUMENTS')
            NotFound('AGREEMENT_NOT_FOUND')
        """
        require_permission(user, DELETE_AGREEMENT_PERMISSION)

        with transaction.atomic():
            locked = _get_agreement(agreement, for_update=True)
            documents = locked.documents.count()
            if documents:
                raise ValidationError(
                    'AGREEMENT_HAS_DOCUMENTS',
                    agreement_id=locked.pk,
                    documents=documents,
                )

            sessions = CountingSession.objects.filter(agreement=locked)
            released = sessions.count()
            CountingLine.objects.filter(session__in=sessions).delete()
            sessions.delete()
            rules, _ = ProductRule.objects.filter(agreement=locked).delete()
            agreement_id = locked.pk
            locked.delete()

        logger.info(
            "consignman.agreement.deleted",
            extra={
                "agreement_id": agreement_id,
                "client_id": locked.client_id,
                "rules": rules,
                "sessions": released,
                "actor": actor_name(user),
            },
        )

    @classmethod
    def set_next_document_number(cls, agreement, number: int) -> ConsignmentAgreement:
        """
        Move an agreement's counter forward (administrative upkeep).

        Raises:
            ValidationError('COUNTER_DECREASE'): If number is below the current value
        """
        with transaction.atomic():
            locked = _get_agreement(agreement, for_update=True)
            if number < locked.next_document_number:
                raise ValidationError(
                    'COUNTER_DECREASE',
                    current=locked.next_document_number,
                    requested=number,
                )
            locked.next_document_number = number
            locked.save(update_fields=['next_document_number', 'updated_at'])
        return locked
