"""
Notification Hub.

In-process registry of live client connections and their rooms. Domain
services hand it events through ``publish``; the hub fans each event out to
the connections subscribed to the event's rooms.

Threading model:
- All registry state (connections, room index) is owned by the event loop
  the hub was started on and only mutated from that loop.
- ``publish`` may be called from any thread (sync FastAPI routes run in the
  threadpool). Off-loop calls are marshalled with ``call_soon_threadsafe``.
- Dispatch only does ``put_nowait`` into per-connection queues, so a slow or
  dead client never stalls the publisher or other recipients.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any, Iterable

from rest_api.services.events import NotificationEvent
from shared.config.constants import Room
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.security.auth import Principal
from ws_gateway.components.connection.index import RoomIndex
from ws_gateway.components.connection.outbound import ClientConnection, CloseFn, SendFn
from ws_gateway.components.connection.rate_limiter import WebSocketRateLimiter
from ws_gateway.components.core.constants import WSCloseCode

logger = get_logger(__name__)

__all__ = ["NotificationHub"]


class NotificationHub:
    """
    Manages WebSocket connections for real-time notifications.

    Configuration from settings:
    - ws_send_timeout: Seconds a single write may take (default: 5)
    - ws_outbound_queue_size: Per-connection backlog (default: 256)
    - ws_message_rate_limit / ws_message_rate_window: Inbound rate limit

    Usage:
        hub = NotificationHub()
        await hub.start()
        conn = await hub.connect(principal, websocket.send_text, rooms=[Room.KITCHEN])
        hub.publish(NotificationEvent.sound_alert(order_id))
        await hub.disconnect(conn.connection_id)
    """

    def __init__(
        self,
        send_timeout: float | None = None,
        queue_size: int | None = None,
        rate_limiter: WebSocketRateLimiter | None = None,
    ) -> None:
        self._send_timeout = settings.ws_send_timeout if send_timeout is None else send_timeout
        self._queue_size = settings.ws_outbound_queue_size if queue_size is None else queue_size
        self._rate_limiter = rate_limiter or WebSocketRateLimiter(
            max_messages=settings.ws_message_rate_limit,
            window_seconds=settings.ws_message_rate_window,
        )

        self._loop: asyncio.AbstractEventLoop | None = None
        self._connections: dict[str, ClientConnection] = {}
        self._index = RoomIndex()
        self._closing: set[asyncio.Task[None]] = set()

        self._events_published = 0
        self._messages_enqueued = 0
        self._connections_dropped = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Bind the hub to the running event loop. Call from the app lifespan."""
        self._loop = asyncio.get_running_loop()
        logger.info(
            "Notification hub started",
            send_timeout=self._send_timeout,
            queue_size=self._queue_size,
        )

    async def shutdown(self) -> None:
        """Close every connection with GOING_AWAY and wait for pending closes."""
        for connection_id in list(self._connections):
            await self.disconnect(
                connection_id,
                code=WSCloseCode.GOING_AWAY,
                reason="Server shutting down",
            )
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)
        logger.info("Notification hub stopped", **self.stats())
        self._loop = None

    # =========================================================================
    # Registry
    # =========================================================================

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def get_connection(self, connection_id: str) -> ClientConnection | None:
        return self._connections.get(connection_id)

    def rooms_of(self, connection_id: str) -> frozenset[Room]:
        return self._index.rooms_of(connection_id)

    async def connect(
        self,
        principal: Principal,
        send: SendFn,
        close: CloseFn | None = None,
        rooms: Iterable[Room] = (),
        connection_id: str | None = None,
    ) -> ClientConnection:
        """
        Register a connection and start its writer.

        Args:
            principal: Authenticated staff member.
            send: Coroutine function writing one text frame.
            close: Coroutine function closing the socket (code, reason).
            rooms: Rooms to join immediately.
            connection_id: Identity to use; generated when omitted.
        """
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        connection = ClientConnection(
            connection_id=connection_id or uuid.uuid4().hex,
            principal=principal,
            send=send,
            close=close,
            queue_size=self._queue_size,
            send_timeout=self._send_timeout,
            on_failure=self._drop,
        )
        self._connections[connection.connection_id] = connection
        for room in rooms:
            self._index.add(connection.connection_id, room)
        connection.start()

        logger.info(
            "Connection registered",
            connection_id=connection.connection_id,
            user_id=principal.user_id,
            role=principal.role,
            rooms=sorted(room.value for room in self.rooms_of(connection.connection_id)),
            total_connections=len(self._connections),
        )
        return connection

    def subscribe(self, connection_id: str, room: Room) -> bool:
        """
        Join a room. Idempotent.

        Returns:
            False if the connection is not registered.
        """
        if connection_id not in self._connections:
            return False
        if self._index.add(connection_id, room):
            logger.debug("Room joined", connection_id=connection_id, room=room.value)
        return True

    def unsubscribe(self, connection_id: str, room: Room) -> bool:
        """
        Leave a room. Idempotent.

        Returns:
            False if the connection is not registered.
        """
        if connection_id not in self._connections:
            return False
        if self._index.discard(connection_id, room):
            logger.debug("Room left", connection_id=connection_id, room=room.value)
        return True

    async def disconnect(
        self,
        connection_id: str,
        code: int = WSCloseCode.NORMAL,
        reason: str = "",
        close_socket: bool = True,
    ) -> bool:
        """
        Remove a connection from every room and stop its writer. Idempotent.

        Returns:
            False if the connection was already gone.
        """
        connection = self._detach(connection_id)
        if connection is None:
            return False
        await self._finalize(connection, code, reason, close_socket)
        logger.info(
            "Connection unregistered",
            connection_id=connection_id,
            user_id=connection.principal.user_id,
            total_connections=len(self._connections),
        )
        return True

    def _detach(self, connection_id: str) -> ClientConnection | None:
        connection = self._connections.pop(connection_id, None)
        if connection is not None:
            self._index.remove_connection(connection_id)
        return connection

    async def _finalize(
        self,
        connection: ClientConnection,
        code: int,
        reason: str,
        close_socket: bool = True,
    ) -> None:
        await connection.close(code=code, reason=reason, close_socket=close_socket)
        await self._rate_limiter.remove_connection(connection.connection_id)

    def _drop(self, connection: ClientConnection, reason: str) -> None:
        """Detach now, close in the background. Runs on the loop thread."""
        if self._detach(connection.connection_id) is None:
            return
        self._connections_dropped += 1
        logger.warning(
            "Dropping connection",
            connection_id=connection.connection_id,
            user_id=connection.principal.user_id,
            reason=reason,
            pending=connection.pending,
        )
        code = WSCloseCode.SERVER_OVERLOADED if reason == "queue_full" else WSCloseCode.SERVER_ERROR
        task = asyncio.get_running_loop().create_task(self._finalize(connection, code, reason))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    # =========================================================================
    # Delivery
    # =========================================================================

    def publish(self, event: NotificationEvent) -> None:
        """
        Fan an event out to its rooms. Never blocks and never raises.

        Safe to call from any thread; off-loop callers only schedule the
        dispatch.
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug(
                "Hub not running, event dropped",
                event_type=event.event_type.value,
                order_id=event.order_id,
            )
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._dispatch(event)
            return

        try:
            loop.call_soon_threadsafe(self._dispatch, event)
        except RuntimeError:
            logger.warning(
                "Hub loop closed, event dropped",
                event_type=event.event_type.value,
                order_id=event.order_id,
            )

    def _recipients(self, rooms: frozenset[Room]) -> list[ClientConnection]:
        """Snapshot of the current recipients, each connection at most once."""
        if Room.ALL in rooms:
            return list(self._connections.values())
        return [
            self._connections[connection_id]
            for connection_id in self._index.members(rooms)
            if connection_id in self._connections
        ]

    def _dispatch(self, event: NotificationEvent) -> int:
        message = event.to_json()
        recipients = self._recipients(event.rooms)
        delivered = 0
        for connection in recipients:
            if connection.offer(message):
                delivered += 1
            elif not connection.closed:
                self._drop(connection, "queue_full")

        self._events_published += 1
        self._messages_enqueued += delivered
        logger.debug(
            "Event dispatched",
            event_type=event.event_type.value,
            action=event.action,
            rooms=sorted(room.value for room in event.rooms),
            recipients=len(recipients),
            delivered=delivered,
        )
        return delivered

    def send_direct(self, connection_id: str, payload: dict[str, Any]) -> bool:
        """
        Queue a message for one connection (endpoint replies).

        Must be called on the loop thread.
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        if connection.offer(json.dumps(payload, default=str)):
            return True
        if not connection.closed:
            self._drop(connection, "queue_full")
        return False

    # =========================================================================
    # Rate limiting
    # =========================================================================

    async def check_rate_limit(self, connection_id: str) -> bool:
        return await self._rate_limiter.is_allowed(connection_id)

    # =========================================================================
    # Stats
    # =========================================================================

    def stats(self) -> dict[str, Any]:
        return {
            "connections": len(self._connections),
            "rooms": self._index.snapshot(),
            "events_published": self._events_published,
            "messages_enqueued": self._messages_enqueued,
            "connections_dropped": self._connections_dropped,
        }
