"""
Outbound side of one live connection.

Each connection owns a bounded queue and a single writer task that drains it
to the socket. Everything sent to a client, broadcast events and endpoint
replies alike, goes through ``offer`` so per-connection order matches the
order messages were offered in.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from shared.config.logging import get_logger
from shared.security.auth import Principal
from ws_gateway.components.core.constants import WSCloseCode

logger = get_logger(__name__)

SendFn = Callable[[str], Awaitable[None]]
CloseFn = Callable[[int, str], Awaitable[None]]
FailureFn = Callable[["ClientConnection", str], None]


class ClientConnection:
    """
    A registered client session.

    Attributes:
        connection_id: Opaque identity assigned by the hub
        principal: Staff member behind the socket
    """

    def __init__(
        self,
        connection_id: str,
        principal: Principal,
        send: SendFn,
        close: CloseFn | None,
        queue_size: int,
        send_timeout: float,
        on_failure: FailureFn,
    ):
        self.connection_id = connection_id
        self.principal = principal
        self._send = send
        self._close = close
        self._send_timeout = send_timeout
        self._on_failure = on_failure
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._closed = False
        self.sent_count = 0

    def __repr__(self) -> str:
        return (
            f"<ClientConnection(id={self.connection_id}, user_id={self.principal.user_id}, "
            f"role={self.principal.role})>"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.get_running_loop().create_task(
                self._write_loop(), name=f"ws-writer-{self.connection_id}"
            )

    def offer(self, message: str) -> bool:
        """
        Enqueue a message without waiting.

        Returns:
            False if the connection is closed or its backlog is full.
        """
        if self._closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def flush(self) -> None:
        """Wait until everything offered so far was written or discarded."""
        await self._queue.join()

    async def _write_loop(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await asyncio.wait_for(self._send(message), timeout=self._send_timeout)
                self.sent_count += 1
            except asyncio.TimeoutError:
                self._queue.task_done()
                self._fail("send_timeout")
                return
            except asyncio.CancelledError:
                self._queue.task_done()
                raise
            except Exception as e:
                logger.debug(
                    "Socket write failed",
                    connection_id=self.connection_id,
                    error=type(e).__name__,
                )
                self._queue.task_done()
                self._fail("send_failed")
                return
            self._queue.task_done()

    def _fail(self, reason: str) -> None:
        self._on_failure(self, reason)

    def _discard_pending(self) -> int:
        discarded = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return discarded
            self._queue.task_done()
            discarded += 1

    async def close(
        self,
        code: int = WSCloseCode.NORMAL,
        reason: str = "",
        close_socket: bool = True,
    ) -> None:
        """
        Stop the writer and optionally close the socket. Idempotent.
        """
        if self._closed:
            return
        self._closed = True

        writer = self._writer
        if writer is not None and writer is not asyncio.current_task() and not writer.done():
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
        self._discard_pending()

        if close_socket and self._close is not None:
            try:
                await asyncio.wait_for(self._close(int(code), reason), timeout=self._send_timeout)
            except Exception as e:
                logger.debug(
                    "Socket close failed",
                    connection_id=self.connection_id,
                    error=type(e).__name__,
                )
