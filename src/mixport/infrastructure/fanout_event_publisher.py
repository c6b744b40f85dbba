"""In-process publisher that forwards every event to registered subscribers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable

from mixport.domain.events import DomainEvent

LOGGER = logging.getLogger(__name__)

EventSubscriber = Callable[[DomainEvent], None]


class FanoutEventPublisher:
    """Deliver events to each subscriber in registration order.

    A failing subscriber is logged and skipped so one client cannot stall job progress
    reporting for the others.
    """

    def __init__(self, subscribers: Iterable[EventSubscriber] = ()) -> None:
        self._lock = threading.Lock()
        self._subscribers: list[EventSubscriber] = list(subscribers)

    def subscribe(self, subscriber: EventSubscriber) -> Callable[[], None]:
        """Register ``subscriber`` and return a callable that removes it."""

        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            subscribers = tuple(self._subscribers)
        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception:
                LOGGER.exception(
                    "event_subscriber_failed",
                    extra={"event_name": type(event).__name__, "correlation_id": event.correlation_id},
                )
