"""
WebSocket endpoint components.
"""

from ws_gateway.components.endpoints.base import (
    WebSocketEndpointBase,
    JWTWebSocketEndpoint,
)
from ws_gateway.components.endpoints.handlers import NotificationEndpoint

__all__ = [
    "WebSocketEndpointBase",
    "JWTWebSocketEndpoint",
    "NotificationEndpoint",
]
