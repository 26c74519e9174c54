"""
Concrete WebSocket Endpoint Implementations.

NotificationEndpoint serves every staff role from one path; the role only
decides which rooms the connection starts in.

Client protocol (text frames):
    "ping" or {"type": "ping"}              -> {"type": "pong"}
    {"type": "subscribe", "room": "pos"}    -> {"type": "subscribed", ...}
    {"type": "unsubscribe", "room": "pos"}  -> {"type": "unsubscribed", ...}
    anything else                           -> {"type": "error", ...}
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Iterable

from fastapi import WebSocket

from shared.config.constants import DEFAULT_ROOMS_BY_ROLE, MANAGEMENT_ROLES, Roles, Room
from shared.config.logging import get_logger
from shared.security.auth import Principal
from ws_gateway.components.core.constants import MSG_PING_JSON, MSG_PING_PLAIN, MSG_PONG
from ws_gateway.components.core.context import sanitize_log_data
from ws_gateway.components.endpoints.base import JWTWebSocketEndpoint

if TYPE_CHECKING:
    from ws_gateway.connection_manager import NotificationHub

logger = get_logger(__name__)

NOTIFICATIONS_PATH = "/ws/notifications"

# Rooms carrying figures only management may see
RESTRICTED_ROOMS: dict[Room, frozenset[str]] = {
    Room.MANAGERS: MANAGEMENT_ROLES,
}


def parse_room(value: Any) -> Room | None:
    if not isinstance(value, str):
        return None
    try:
        return Room(value.strip().lower())
    except ValueError:
        return None


class NotificationEndpoint(JWTWebSocketEndpoint):
    """
    WebSocket endpoint for live notifications.

    Features:
    - JWT authentication, any staff role
    - Default rooms by role, runtime subscribe/unsubscribe
    - ping/pong heartbeat
    """

    def __init__(
        self,
        websocket: WebSocket,
        hub: "NotificationHub",
        token: str,
        **kwargs: Any,
    ):
        super().__init__(
            websocket=websocket,
            hub=hub,
            endpoint_name=NOTIFICATIONS_PATH,
            token=token,
            allowed_roles=Roles.ALL,
            **kwargs,
        )

    def initial_rooms(self, principal: Principal) -> Iterable[Room]:
        return DEFAULT_ROOMS_BY_ROLE.get(principal.role, frozenset())

    def _current_rooms(self) -> list[str]:
        return sorted(room.value for room in self.hub.rooms_of(self.connection_id))

    async def on_connected(self) -> None:
        self.reply(
            {
                "type": "connected",
                "connection_id": self.connection_id,
                "rooms": self._current_rooms(),
            }
        )

    def _error(self, code: str, message: str, **extra: Any) -> None:
        self.reply({"type": "error", "code": code, "message": message, **extra})

    async def handle_message(self, data: str) -> None:
        if data == MSG_PING_PLAIN or data == MSG_PING_JSON:
            self.reply(MSG_PONG)
            return

        try:
            message = json.loads(data)
        except ValueError:
            logger.debug(
                "Malformed message",
                identifier=self.context.identifier,
                message=sanitize_log_data(data),
            )
            self._error("invalid_json", "Message must be JSON")
            return

        if not isinstance(message, dict):
            self._error("invalid_message", "Message must be a JSON object")
            return

        message_type = message.get("type")
        if message_type == "ping":
            self.reply(MSG_PONG)
        elif message_type in ("subscribe", "unsubscribe"):
            self._handle_membership(message_type, message.get("room"))
        else:
            self._error(
                "unknown_message_type",
                "Unsupported message type",
                received=sanitize_log_data(str(message_type), max_length=32),
            )

    def _handle_membership(self, action: str, raw_room: Any) -> None:
        room = parse_room(raw_room)
        if room is None:
            self._error(
                "unknown_room",
                "Unknown room",
                room=sanitize_log_data(str(raw_room), max_length=32),
            )
            return

        allowed = RESTRICTED_ROOMS.get(room)
        if action == "subscribe" and allowed is not None and self.context.role not in allowed:
            self._error("forbidden_room", "Not allowed to join this room", room=room.value)
            return

        if action == "subscribe":
            self.hub.subscribe(self.connection_id, room)
        else:
            self.hub.unsubscribe(self.connection_id, room)

        self.reply(
            {
                "type": f"{action}d",
                "room": room.value,
                "rooms": self._current_rooms(),
            }
        )
