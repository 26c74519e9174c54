"""
Event Services - typed notifications and the publishing boundary.
"""

from .domain_event import (
    EventType,
    NotificationEvent,
    order_status_rooms,
)

from .publisher import (
    EventBatch,
    EventPublisher,
    NullPublisher,
    publish_safely,
)

__all__ = [
    "EventType",
    "NotificationEvent",
    "order_status_rooms",
    "EventBatch",
    "EventPublisher",
    "NullPublisher",
    "publish_safely",
]
