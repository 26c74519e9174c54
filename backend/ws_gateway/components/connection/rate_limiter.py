"""
WebSocket Rate Limiter.

Per-connection rate limiting of inbound client messages using a sliding
window of timestamps.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from shared.config.logging import get_logger
from ws_gateway.components.core.constants import WSConstants

logger = get_logger(__name__)


class WebSocketRateLimiter:
    """
    Sliding window counter keyed by connection id.

    - Each connection has a list of message timestamps
    - Timestamps outside the window are discarded on every check
    - A message is rejected once the window already holds ``max_messages``

    Memory is bounded by ``max_tracked``; when full, the connections with the
    oldest activity are forgotten first.
    """

    def __init__(
        self,
        max_messages: int,
        window_seconds: float,
        max_tracked: int = WSConstants.MAX_TRACKED_CONNECTIONS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_messages = max_messages
        self._window_seconds = window_seconds
        self._max_tracked = max_tracked
        self._clock = clock

        self._counters: dict[str, list[float]] = {}
        self._lock = asyncio.Lock()

        self._total_allowed = 0
        self._total_rejected = 0
        self._evictions = 0

    @property
    def max_messages(self) -> int:
        return self._max_messages

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def tracked_count(self) -> int:
        return len(self._counters)

    async def is_allowed(self, connection_id: str) -> bool:
        """
        Record a message from ``connection_id`` if it fits in the window.

        Returns:
            True if the message is allowed, False if rate limited.
        """
        now = self._clock()
        window_start = now - self._window_seconds

        async with self._lock:
            if connection_id not in self._counters and len(self._counters) >= self._max_tracked:
                self._evict_oldest()

            timestamps = [t for t in self._counters.get(connection_id, []) if t > window_start]
            if len(timestamps) >= self._max_messages:
                self._counters[connection_id] = timestamps
                self._total_rejected += 1
                return False

            timestamps.append(now)
            self._counters[connection_id] = timestamps
            self._total_allowed += 1
            return True

    def _evict_oldest(self) -> None:
        logger.warning(
            "Rate limiter at capacity, evicting oldest entry",
            max_tracked=self._max_tracked,
        )
        oldest = min(
            self._counters.items(),
            key=lambda entry: entry[1][-1] if entry[1] else 0.0,
        )[0]
        del self._counters[oldest]
        self._evictions += 1

    async def remove_connection(self, connection_id: str) -> None:
        """Stop tracking a closed connection."""
        async with self._lock:
            self._counters.pop(connection_id, None)

    def get_stats(self) -> dict[str, int | float]:
        return {
            "tracked_connections": len(self._counters),
            "max_tracked": self._max_tracked,
            "max_messages_per_window": self._max_messages,
            "window_seconds": self._window_seconds,
            "total_allowed": self._total_allowed,
            "total_rejected": self._total_rejected,
            "evictions": self._evictions,
        }
