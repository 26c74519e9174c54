"""
Event publishing boundary between the domain services and the hub.

Domain services collect events in an EventBatch while they work and flush
it only after the transaction committed. A publisher failure is logged and
never reaches the caller: the order mutation already succeeded.
"""

from __future__ import annotations

from typing import Iterator, Protocol

from shared.config.logging import get_logger

from .domain_event import NotificationEvent

logger = get_logger(__name__)


class EventPublisher(Protocol):
    """Anything that accepts events without blocking (the hub, a recorder)."""

    def publish(self, event: NotificationEvent) -> None: ...


class NullPublisher:
    """Publisher used outside the web app (scripts, shells). Drops events."""

    def publish(self, event: NotificationEvent) -> None:
        logger.debug(
            "Event dropped (no hub attached)",
            event_type=event.event_type.value,
            order_id=event.order_id,
        )


class EventBatch:
    """
    Events produced by one unit of work.

    Usage:
        events = EventBatch()
        with atomic(db):
            registry.assign_in_tx(table_id, order_id, events)
        events.flush(publisher)
    """

    def __init__(self) -> None:
        self._events: list[NotificationEvent] = []

    def add(self, event: NotificationEvent | None) -> None:
        if event is not None:
            self._events.append(event)

    def __iter__(self) -> Iterator[NotificationEvent]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def flush(self, publisher: EventPublisher) -> int:
        """
        Hand every event to the publisher, in order.

        Returns:
            Number of events accepted by the publisher.
        """
        published = 0
        events, self._events = self._events, []
        for event in events:
            if publish_safely(publisher, event):
                published += 1
        return published


def publish_safely(publisher: EventPublisher, event: NotificationEvent) -> bool:
    """Publish one event; log and return False on failure."""
    try:
        publisher.publish(event)
    except Exception as e:
        logger.error(
            "Failed to publish event",
            event_type=event.event_type.value,
            order_id=event.order_id,
            error=str(e),
        )
        return False
    logger.debug(
        "Event published",
        event_type=event.event_type.value,
        action=event.action,
        rooms=sorted(room.value for room in event.rooms),
        order_id=event.order_id,
    )
    return True
