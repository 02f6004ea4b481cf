"""
Logging event sink — default EventSink writing to the 'consignman.events' logger.

Hosts that need email/notifications configure their own sink and can
chain to this one for the log record.
"""

from __future__ import annotations

import logging

from consignman.protocols.events import ConsignmentEvent

logger = logging.getLogger('consignman.events')


class LoggingEventSink:
    """Emit each event as one structured log record."""

    def emit(self, event: ConsignmentEvent) -> None:
        logger.info(
            "%s.%s",
            event.entity,
            event.action,
            extra={
                "entity": event.entity,
                "entity_id": event.entity_id,
                "action": event.action,
                "actor": event.actor,
                "timestamp": event.timestamp.isoformat(),
                "details": event.details,
            },
        )
