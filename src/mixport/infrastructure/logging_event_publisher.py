"""Logging-backed implementation of the event publisher."""

from __future__ import annotations

import logging

from mixport.domain.events import DomainEvent, ExportProgressed

LOGGER = logging.getLogger("mixport.events")


class LoggingEventPublisher:
    """Emit event payload summaries to structured logs."""

    def publish(self, event: DomainEvent) -> None:
        extra = {
            "event_name": type(event).__name__,
            "correlation_id": event.correlation_id,
            "payload_summary": event.payload_summary,
            "occurred_at": event.occurred_at.isoformat(),
        }
        if isinstance(event, ExportProgressed):
            extra["percent"] = event.percent
        LOGGER.info("domain_event_emitted", extra=extra)
