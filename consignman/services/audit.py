"""
Audit — document history entries and collaborator events.

Both are written inside the caller's transaction: if either fails, the
change they describe is rolled back with them.
"""

import logging

from django.utils import timezone

from consignman.adapters import get_authorizer, get_event_sink
from consignman.conf import consignman_settings
from consignman.exceptions import NotOwner
from consignman.models.history import HistoryEntry
from consignman.protocols.events import ConsignmentEvent

logger = logging.getLogger('consignman')


def actor_name(user) -> str:
    """Username recorded as the event actor."""
    if user is None:
        return consignman_settings.DEFAULT_ACTOR_NAME
    return user.get_username()


def require_permission(user, permission: str) -> None:
    """
    Raise NotOwner('PERMISSION_DENIED') unless the configured authorizer allows it.
    """
    if not get_authorizer().has_permission(user, permission):
        logger.warning(
            "consignman.permission.denied",
            extra={"actor": actor_name(user), "permission": permission},
        )
        raise NotOwner('PERMISSION_DENIED', permission=permission)


class AuditLog:
    """History and event methods."""

    @classmethod
    def record(cls, document, status: str, notes: str = '', user=None) -> HistoryEntry:
        """Append one history entry for document."""
        return HistoryEntry.objects.append(document, status=status, notes=notes, user=user)

    @classmethod
    def history(cls, document):
        """Entries for document, oldest first."""
        return HistoryEntry.objects.filter(document=document).select_related('user').order_by('timestamp')

    @classmethod
    def emit(cls, entity: str, entity_id, action: str, user=None, **details) -> ConsignmentEvent:
        """Build and deliver one event to the configured sink."""
        event = ConsignmentEvent(
            entity=entity,
            entity_id=str(entity_id),
            action=str(action),
            actor=actor_name(user),
            timestamp=timezone.now(),
            details=details,
        )
        get_event_sink().emit(event)
        return event
