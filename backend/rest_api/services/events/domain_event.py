"""
Notification events.

Immutable value objects built by the domain services after a successful
commit and handed to the notification hub. They are never persisted.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from shared.config.constants import OrderStatus, Room


class EventType(str, Enum):
    """Wire ``type`` tag of a notification."""

    ORDER = "order"
    ORDER_STATUS = "order_status"
    ITEM_STATUS = "item_status"
    TABLE_STATUS = "table_status"
    PAYMENT = "payment"
    KITCHEN_ORDER = "kitchen_order"
    SOUND_ALERT = "sound_alert"


NEW_ORDER_SOUND = "new_order.mp3"


def order_status_rooms(new_status: OrderStatus) -> frozenset[Room]:
    """
    Rooms an order_status event goes to.

    Always "all"; ready orders are also pushed to kitchen and waiters,
    finished orders to pos and tables.
    """
    rooms = {Room.ALL}
    if new_status == OrderStatus.READY:
        rooms |= {Room.KITCHEN, Room.WAITERS}
    elif new_status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        rooms |= {Room.POS, Room.TABLES}
    return frozenset(rooms)


@dataclass(frozen=True, slots=True)
class NotificationEvent:
    """
    A typed notification.

    Attributes:
        event_type: Wire type tag
        action: What happened ("created", "updated", "alert")
        rooms: Target rooms; Room.ALL reaches every live connection
        payload: Event data, JSON-serializable
        order_id / item_id / table_id: Related entities, if any
        user_id: Staff member who triggered the change
        timestamp: When the event was built
    """

    event_type: EventType
    action: str
    rooms: frozenset[Room]
    payload: dict[str, Any] = field(default_factory=dict)
    order_id: int | None = None
    item_id: int | None = None
    table_id: int | None = None
    user_id: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Wire format sent to WebSocket clients."""
        return {
            "type": self.event_type.value,
            "action": self.action,
            "data": self.payload,
            "order_id": self.order_id,
            "item_id": self.item_id,
            "table_id": self.table_id,
            "user_id": self.user_id,
            "rooms": sorted(room.value for room in self.rooms),
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    # ==========================================================================
    # Factory methods
    # ==========================================================================

    @classmethod
    def order_created(
        cls, order: dict[str, Any], user_id: int | None = None
    ) -> "NotificationEvent":
        return cls(
            event_type=EventType.ORDER,
            action="created",
            rooms=frozenset({Room.ALL}),
            payload=order,
            order_id=order["id"],
            table_id=order.get("table_id"),
            user_id=user_id,
        )

    @classmethod
    def kitchen_order(
        cls, order: dict[str, Any], user_id: int | None = None
    ) -> "NotificationEvent":
        return cls(
            event_type=EventType.KITCHEN_ORDER,
            action="created",
            rooms=frozenset({Room.KITCHEN}),
            payload=order,
            order_id=order["id"],
            table_id=order.get("table_id"),
            user_id=user_id,
        )

    @classmethod
    def sound_alert(cls, order_id: int, sound: str = NEW_ORDER_SOUND) -> "NotificationEvent":
        return cls(
            event_type=EventType.SOUND_ALERT,
            action="alert",
            rooms=frozenset({Room.KITCHEN}),
            payload={"sound": sound},
            order_id=order_id,
        )

    @classmethod
    def order_status_changed(
        cls,
        order: dict[str, Any],
        old_status: OrderStatus,
        new_status: OrderStatus,
        user_id: int | None = None,
    ) -> "NotificationEvent":
        return cls(
            event_type=EventType.ORDER_STATUS,
            action="updated",
            rooms=order_status_rooms(new_status),
            payload={
                "old_status": old_status.value,
                "new_status": new_status.value,
                "order": order,
            },
            order_id=order["id"],
            table_id=order.get("table_id"),
            user_id=user_id,
        )

    @classmethod
    def item_status_changed(
        cls,
        order_id: int,
        item_id: int,
        old_status: str,
        new_status: str,
        user_id: int | None = None,
    ) -> "NotificationEvent":
        return cls(
            event_type=EventType.ITEM_STATUS,
            action="updated",
            rooms=frozenset({Room.KITCHEN}),
            payload={"old_status": old_status, "new_status": new_status},
            order_id=order_id,
            item_id=item_id,
            user_id=user_id,
        )

    @classmethod
    def table_status_changed(
        cls,
        table_id: int,
        old_status: str,
        new_status: str,
        order_id: int | None = None,
    ) -> "NotificationEvent":
        return cls(
            event_type=EventType.TABLE_STATUS,
            action="updated",
            rooms=frozenset({Room.POS, Room.TABLES}),
            payload={"old_status": old_status, "new_status": new_status},
            order_id=order_id,
            table_id=table_id,
        )

    @classmethod
    def payment_created(
        cls,
        payment: dict[str, Any],
        large_amount: bool,
        user_id: int | None = None,
    ) -> "NotificationEvent":
        rooms = {Room.POS}
        if large_amount:
            rooms.add(Room.MANAGERS)
        return cls(
            event_type=EventType.PAYMENT,
            action="created",
            rooms=frozenset(rooms),
            payload=payment,
            order_id=payment["order_id"],
            user_id=user_id,
        )
