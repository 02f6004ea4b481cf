"""
Counting sessions — exclusive per-agreement counting lock and staged counts.

The lock is the CountingSession row. Acquisition runs under
transaction.atomic() with the agreement row locked, and the unique
constraints on (agreement) and (user) catch any insert that still races.
"""

import logging

from django.db import IntegrityError, transaction

from consignman.adapters import get_user_directory
from consignman.exceptions import Locked, NotFound, NotOwner, ValidationError
from consignman.models.enums import FORCE_RELEASE_PERMISSION
from consignman.models.session import CountingLine, CountingSession
from consignman.protocols.events import COUNTING_SESSION
from consignman.replenishment import as_decimal
from consignman.services.agreements import _get_agreement
from consignman.services.audit import AuditLog, actor_name, require_permission

logger = logging.getLogger('consignman')


def _get_session(session, for_update: bool = False) -> CountingSession:
    """Resolve a session instance or pk, optionally row-locked."""
    pk = session.pk if isinstance(session, CountingSession) else session
    qs = CountingSession.objects.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=pk)
    except CountingSession.DoesNotExist:
        raise NotFound('SESSION_NOT_FOUND', session_id=pk) from None


def _check_owner(session: CountingSession, user) -> None:
    if user is None or session.user_id != user.pk:
        raise NotOwner('NOT_OWNER', session_id=session.pk)


def _delete_session(session: CountingSession) -> int:
    """Delete lines and session. Returns number of lines removed."""
    lines, _ = CountingLine.objects.filter(session=session).delete()
    session.delete()
    return lines


def _locked_error(session: CountingSession) -> Locked:
    return Locked(
        user_name=get_user_directory().resolve_user_name(session.user),
        agreement_id=session.agreement_id,
        session_id=session.pk,
    )


class CountingSessions:
    """Counting session lifecycle methods."""

    @classmethod
    def acquire_session(cls, agreement, user) -> CountingSession:
        """
        Resume the user's session on agreement, or start one.

        Raises:
            Locked: Another user is counting this agreement (names that user)
            ValidationError('SESSION_IN_PROGRESS'): User is counting another agreement
            ValidationError('AGREEMENT_INACTIVE'): Agreement closed for counting
            NotFound('AGREEMENT_NOT_FOUND')

        Concurrency:
            - Runs under transaction.atomic()
            - select_for_update() on the agreement serializes acquirers
            - IntegrityError from the unique constraints becomes Locked
        """
        with transaction.atomic():
            locked_agreement = _get_agreement(agreement, for_update=True)
            if not locked_agreement.is_active:
                raise ValidationError('AGREEMENT_INACTIVE', agreement_id=locked_agreement.pk)

            existing = (
                CountingSession.objects
                .select_related('user')
                .filter(agreement=locked_agreement)
                .first()
            )
            if existing is not None:
                if existing.user_id == user.pk:
                    logger.info(
                        "consignman.session.resumed",
                        extra={"session_id": existing.pk, "agreement_id": locked_agreement.pk},
                    )
                    return existing
                raise _locked_error(existing)

            elsewhere = CountingSession.objects.filter(user=user).first()
            if elsewhere is not None:
                raise ValidationError(
                    'SESSION_IN_PROGRESS',
                    session_id=elsewhere.pk,
                    agreement_id=elsewhere.agreement_id,
                )

            try:
                with transaction.atomic():
                    session = CountingSession.objects.create(agreement=locked_agreement, user=user)
            except IntegrityError:
                holder = (
                    CountingSession.objects
                    .select_related('user')
                    .filter(agreement=locked_agreement)
                    .first()
                )
                if holder is not None and holder.user_id != user.pk:
                    raise _locked_error(holder) from None
                raise ValidationError('SESSION_IN_PROGRESS', agreement_id=locked_agreement.pk) from None

        logger.info(
            "consignman.session.acquired",
            extra={
                "session_id": session.pk,
                "agreement_id": locked_agreement.pk,
                "actor": actor_name(user),
            },
        )
        return session

    @classmethod
    def record_count(cls, session, product_id: str, quantity, user=None) -> CountingLine:
        """
        Record the counted quantity of a product (last write wins).

        No check against the agreement's rules: products without a rule
        can be counted and are dropped at finalization.

        Raises:
            ValidationError('INVALID_QUANTITY'): If quantity is negative or not a finite number
            NotOwner: If user is given and does not own the session
            NotFound('SESSION_NOT_FOUND')
        """
        quantity = as_decimal(quantity)
        if quantity < 0:
            raise ValidationError('INVALID_QUANTITY', product_id=product_id, requested=quantity)

        with transaction.atomic():
            locked = _get_session(session, for_update=True)
            if user is not None:
                _check_owner(locked, user)

            line, _ = CountingLine.objects.update_or_create(
                session=locked,
                product_id=product_id,
                defaults={'counted_quantity': quantity},
            )

        logger.debug(
            "consignman.session.counted",
            extra={"session_id": locked.pk, "product_id": product_id, "qty": str(quantity)},
        )
        return line

    @classmethod
    def abandon_session(cls, session, user) -> None:
        """
        Discard a session and its counts.

        Raises:
            NotOwner: If user does not own the session
            NotFound('SESSION_NOT_FOUND')
        """
        with transaction.atomic():
            locked = _get_session(session, for_update=True)
            _check_owner(locked, user)
            session_id = locked.pk
            lines = _delete_session(locked)

        logger.info(
            "consignman.session.abandoned",
            extra={"session_id": session_id, "agreement_id": locked.agreement_id, "lines": lines},
        )

    @classmethod
    def get_active_session(cls, user) -> CountingSession | None:
        """The user's in-progress session with lines prefetched, or None."""
        if user is None:
            return None
        return (
            CountingSession.objects
            .filter(user=user)
            .select_related('agreement')
            .prefetch_related('lines')
            .first()
        )

    @classmethod
    def force_release_session(cls, session, user, reason: str = '') -> None:
        """
        Administrative release of someone else's session.

        Deletes the session and its lines without an ownership check and
        always emits a counting_session/force_release event.

        Raises:
            NotOwner('PERMISSION_DENIED'): Without force_release_countingsession
            NotFound('SESSION_NOT_FOUND')
        """
        require_permission(user, FORCE_RELEASE_PERMISSION)

        with transaction.atomic():
            locked = _get_session(session, for_update=True)
            owner_name = get_user_directory().resolve_user_name(locked.user)
            client_id = locked.agreement.client_id
            session_id = locked.pk
            lines = _delete_session(locked)
            AuditLog.emit(
                COUNTING_SESSION,
                session_id,
                'force_release',
                user,
                agreement_id=locked.agreement_id,
                client_id=client_id,
                owner=owner_name,
                lines=lines,
                reason=reason,
            )

        logger.warning(
            "consignman.session.force_released",
            extra={
                "session_id": session_id,
                "agreement_id": locked.agreement_id,
                "owner": owner_name,
                "actor": actor_name(user),
            },
        )
