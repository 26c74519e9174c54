"""
WebSocket Gateway Constants.

Close codes, message literals and the compile-time defaults used when the
hub is built without explicit settings.
"""

from enum import IntEnum
from typing import Final

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "MSG_PING_PLAIN",
    "MSG_PING_JSON",
    "MSG_PONG",
]


class WSCloseCode(IntEnum):
    """
    WebSocket close codes used by the gateway.

    Standard codes (1000-1999) from RFC 6455.
    Custom codes (4000-4999) for application-specific errors.
    """

    # Standard codes (RFC 6455)
    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Server shutting down
    POLICY_VIOLATION = 1008  # Generic policy violation
    MESSAGE_TOO_BIG = 1009  # Message too large to process
    UNSUPPORTED_DATA = 1003  # Binary frame on a text-only endpoint
    SERVER_ERROR = 1011  # Unexpected server error
    SERVER_OVERLOADED = 1013  # Outbound backlog full or client too slow

    # Custom application codes (4000-4999)
    AUTH_FAILED = 4001  # JWT validation failed or expired
    FORBIDDEN = 4003  # Valid auth but insufficient permissions
    RATE_LIMITED = 4029  # Too many messages per window


class WSConstants:
    """
    Operational defaults.

    At runtime the hub and the endpoint read ``shared.config.settings`` and
    these values only apply when a caller passes nothing.
    """

    # Must exceed the client heartbeat interval (30s) with room for jitter
    WS_RECEIVE_TIMEOUT: Final[float] = 90.0

    # A single socket write slower than this drops the connection
    WS_SEND_TIMEOUT: Final[float] = 5.0

    # Per-connection backlog. A client this far behind is not keeping up
    OUTBOUND_QUEUE_SIZE: Final[int] = 256

    # Rate limiter memory bound
    MAX_TRACKED_CONNECTIONS: Final[int] = 2000


MSG_PING_PLAIN: Final[str] = "ping"
MSG_PING_JSON: Final[str] = '{"type":"ping"}'
MSG_PONG: Final[dict[str, str]] = {"type": "pong"}
