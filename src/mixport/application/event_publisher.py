"""Port through which the scheduler streams export job events."""

from __future__ import annotations

from typing import Protocol

from mixport.domain.events import DomainEvent


class EventPublisher(Protocol):
    """Receives every job lifecycle event, keyed by ``correlation_id`` (the job id).

    Events for one job arrive from that job's worker thread in emission order;
    events for different jobs may interleave.
    """

    def publish(self, event: DomainEvent) -> None: ...


class NullEventPublisher:
    """Drops export events; the scheduler default when nobody subscribes."""

    def publish(self, event: DomainEvent) -> None:  # noqa: ARG002
        return None
