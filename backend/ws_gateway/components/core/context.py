"""
WebSocket Context for audit logging.

Encapsulates connection metadata so audit calls stay one-liners.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from shared.config.logging import audit_ws_connection
from shared.security.auth import Principal

if TYPE_CHECKING:
    from fastapi import WebSocket


# Control characters and Unicode direction overrides
_CONTROL_CHAR_PATTERN = re.compile(
    r"[\x00-\x1f\x7f-\x9f"
    r"\u200b-\u200f"  # Zero-width and direction marks
    r"\u202a-\u202e"  # Bidirectional overrides
    r"\u2066-\u2069"  # Isolates
    r"\ufeff]"  # BOM
)


def sanitize_log_data(data: str, max_length: int = 100) -> str:
    """
    Sanitize client-provided data before logging.

    Truncates first, then strips control characters and escapes quotes and
    backslashes so the structured log line stays well-formed.
    """
    was_truncated = len(data) > max_length
    sanitized = _CONTROL_CHAR_PATTERN.sub("", data[:max_length])
    sanitized = sanitized.replace("\\", "\\\\").replace('"', '\\"')
    return sanitized + "..." if was_truncated else sanitized


@dataclass
class WebSocketContext:
    """
    Connection metadata for audit logging.

    Usage:
        ctx = WebSocketContext.from_principal(websocket, principal, "/ws/notifications")
        ctx.audit("CONNECT")
        ctx.audit("DISCONNECT", reason="client_disconnect")
    """

    endpoint: str
    origin: str | None = None
    user_id: int | None = None
    role: str | None = None
    connection_id: str | None = None

    @classmethod
    def from_principal(
        cls,
        websocket: "WebSocket",
        principal: Principal,
        endpoint: str,
    ) -> "WebSocketContext":
        return cls(
            endpoint=endpoint,
            origin=websocket.headers.get("origin"),
            user_id=principal.user_id,
            role=principal.role,
        )

    @property
    def identifier(self) -> str:
        return f"user:{self.user_id}" if self.user_id is not None else "anonymous"

    def audit(self, event_type: str, **extra: Any) -> None:
        audit_ws_connection(
            event_type=event_type,
            endpoint=self.endpoint,
            user_id=self.user_id,
            origin=self.origin,
            role=self.role,
            connection_id=self.connection_id,
            **extra,
        )
