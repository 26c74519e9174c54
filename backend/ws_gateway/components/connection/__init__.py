"""
Connection management components: room index, outbound queue, rate limiting.
"""

from ws_gateway.components.connection.index import RoomIndex
from ws_gateway.components.connection.outbound import ClientConnection
from ws_gateway.components.connection.rate_limiter import WebSocketRateLimiter

__all__ = [
    "RoomIndex",
    "ClientConnection",
    "WebSocketRateLimiter",
]
