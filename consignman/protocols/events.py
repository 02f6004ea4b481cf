"""
Event Sink Protocol — audit/notification events emitted by Consignman.

Every document transition (creation included) and every forced session
release produces one ConsignmentEvent. The sink decides how to persist,
format and notify (e.g. approvers when a document reaches PENDING, the
creator when it reaches APPROVED or INVOICED).

Events are emitted synchronously inside the transaction that applies the
change. A sink that raises aborts that change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


# Entities
DOCUMENT = "restock_document"
COUNTING_SESSION = "counting_session"


@dataclass(frozen=True)
class ConsignmentEvent:
    """Structured audit event."""

    entity: str  # DOCUMENT or COUNTING_SESSION
    entity_id: str
    action: str  # DocumentAction value or "force_release"
    actor: str
    timestamp: datetime
    details: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class EventSink(Protocol):
    """Receiver for ConsignmentEvent."""

    def emit(self, event: ConsignmentEvent) -> None:
        """
        Accept one event.

        Args:
            event: The event to persist/notify
        """
        ...
