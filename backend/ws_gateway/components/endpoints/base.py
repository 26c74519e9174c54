"""
WebSocket Endpoint Base Class.

Connection lifecycle shared by every endpoint: authenticate, register with
the hub, run the receive loop with size/rate/idle limits, unregister.
Outbound traffic never touches the socket directly; it goes through the
hub so each socket keeps a single writer.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable

from fastapi import WebSocket, WebSocketDisconnect

from shared.config.constants import Room
from shared.config.logging import audit_ws_connection, get_logger
from shared.config.settings import settings
from shared.security.auth import Principal, principal_from_claims, verify_jwt
from shared.utils.exceptions import UnauthorizedError
from ws_gateway.components.core.constants import WSCloseCode
from ws_gateway.components.core.context import WebSocketContext

if TYPE_CHECKING:
    from ws_gateway.connection_manager import NotificationHub

logger = get_logger(__name__)


class WebSocketEndpointBase(ABC):
    """
    Base class for WebSocket endpoints.

    Subclasses implement:
    - authenticate(): Resolve the principal or close the socket
    - initial_rooms(): Rooms joined on connect
    - handle_message(): Process one inbound text frame

    Usage:
        endpoint = NotificationEndpoint(websocket, hub, token)
        await endpoint.run()
    """

    def __init__(
        self,
        websocket: WebSocket,
        hub: "NotificationHub",
        endpoint_name: str,
        receive_timeout: float | None = None,
        max_message_size: int | None = None,
    ):
        self.websocket = websocket
        self.hub = hub
        self.endpoint_name = endpoint_name
        self.receive_timeout = (
            settings.ws_receive_timeout if receive_timeout is None else receive_timeout
        )
        self.max_message_size = (
            settings.ws_max_message_size if max_message_size is None else max_message_size
        )
        self.context: WebSocketContext | None = None
        self.connection_id: str | None = None

    @abstractmethod
    async def authenticate(self) -> Principal | None:
        """Return the principal, or close the socket and return None."""

    @abstractmethod
    def initial_rooms(self, principal: Principal) -> Iterable[Room]:
        """Rooms the connection joins before its first message."""

    @abstractmethod
    async def handle_message(self, data: str) -> None:
        """Handle one inbound text frame."""

    def reply(self, payload: dict[str, Any]) -> bool:
        """Queue a message for this connection through the hub."""
        if self.connection_id is None:
            return False
        return self.hub.send_direct(self.connection_id, payload)

    async def on_connected(self) -> None:
        """Hook run after registration, before the receive loop."""

    async def run(self) -> None:
        """
        Handles the complete lifecycle:
        1. Authenticate
        2. Accept and register with the hub
        3. Message loop
        4. Unregister on exit
        """
        principal = await self.authenticate()
        if principal is None:
            return

        self.context = WebSocketContext.from_principal(self.websocket, principal, self.endpoint_name)
        await self.websocket.accept()

        connection = await self.hub.connect(
            principal,
            send=self.websocket.send_text,
            close=self._close_socket,
            rooms=self.initial_rooms(principal),
        )
        self.connection_id = connection.connection_id
        self.context.connection_id = connection.connection_id
        self.context.audit("CONNECT")

        close_code: int = WSCloseCode.NORMAL
        close_reason = ""
        close_socket = True
        try:
            await self.on_connected()
            close_code, close_reason = await self._message_loop()
        except WebSocketDisconnect as e:
            close_socket = False
            close_reason = "client_disconnect"
            logger.debug(
                "Client disconnected",
                endpoint=self.endpoint_name,
                identifier=self.context.identifier,
                code=e.code,
            )
        finally:
            await self.hub.disconnect(
                self.connection_id,
                code=close_code,
                reason=close_reason,
                close_socket=close_socket,
            )
            self.context.audit("DISCONNECT", reason=close_reason or "closed")

    async def _close_socket(self, code: int, reason: str) -> None:
        await self.websocket.close(code=code, reason=reason)

    async def _message_loop(self) -> tuple[int, str]:
        """
        Receive until the client leaves or a limit is hit.

        Returns:
            Close code and reason for the hub to close the socket with.
        """
        while True:
            connection = self.hub.get_connection(self.connection_id)
            if connection is None or connection.closed:
                # Dropped by the hub (slow consumer or write failure)
                return WSCloseCode.SERVER_OVERLOADED, "dropped"

            message = await self._receive_with_timeout()
            if message is None:
                logger.info(
                    "Connection timed out (no messages)",
                    endpoint=self.endpoint_name,
                    identifier=self.context.identifier,
                    timeout=self.receive_timeout,
                )
                return WSCloseCode.NORMAL, "Connection timeout"

            data = message.get("text")
            if data is None:
                logger.warning(
                    "Non-text frame rejected",
                    endpoint=self.endpoint_name,
                    identifier=self.context.identifier,
                )
                return WSCloseCode.UNSUPPORTED_DATA, "Text frames only"

            if len(data) > self.max_message_size:
                logger.warning(
                    "Message size exceeded limit",
                    endpoint=self.endpoint_name,
                    identifier=self.context.identifier,
                    size=len(data),
                    max_size=self.max_message_size,
                )
                return WSCloseCode.MESSAGE_TOO_BIG, "Message too large"

            if not await self.hub.check_rate_limit(self.connection_id):
                logger.warning(
                    "Rate limit exceeded",
                    endpoint=self.endpoint_name,
                    identifier=self.context.identifier,
                )
                self.context.audit("RATE_LIMITED")
                return WSCloseCode.RATE_LIMITED, "Rate limit exceeded"

            await self.handle_message(data)

    async def _receive_with_timeout(self) -> dict[str, Any] | None:
        """Next ASGI receive message, or None when the client stays idle."""
        try:
            message = await asyncio.wait_for(
                self.websocket.receive(),
                timeout=self.receive_timeout,
            )
        except asyncio.TimeoutError:
            return None
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
        return message


class JWTWebSocketEndpoint(WebSocketEndpointBase):
    """
    Base class for JWT-authenticated endpoints.

    The token travels as a query parameter because browsers cannot set
    headers on the WebSocket handshake.
    """

    def __init__(
        self,
        websocket: WebSocket,
        hub: "NotificationHub",
        endpoint_name: str,
        token: str,
        allowed_roles: Iterable[str],
        **kwargs: Any,
    ):
        super().__init__(websocket, hub, endpoint_name, **kwargs)
        self.token = token
        self.allowed_roles = frozenset(allowed_roles)

    async def _reject(self, code: int, reason: str, audit_reason: str, **extra: Any) -> None:
        audit_ws_connection(
            event_type="AUTH_FAILED",
            endpoint=self.endpoint_name,
            reason=audit_reason,
            origin=self.websocket.headers.get("origin"),
            **extra,
        )
        await self.websocket.close(code=code, reason=reason)

    async def authenticate(self) -> Principal | None:
        if not self.token:
            await self._reject(WSCloseCode.AUTH_FAILED, "Authentication failed", "missing_token")
            return None

        try:
            principal = principal_from_claims(verify_jwt(self.token))
        except UnauthorizedError as e:
            logger.warning("WebSocket JWT validation failed", error=str(e.detail))
            await self._reject(
                WSCloseCode.AUTH_FAILED, "Authentication failed", "jwt_validation_failed"
            )
            return None

        if principal.role not in self.allowed_roles:
            await self._reject(
                WSCloseCode.FORBIDDEN,
                "Access denied",
                "insufficient_role",
                user_id=principal.user_id,
                role=principal.role,
            )
            return None

        return principal
