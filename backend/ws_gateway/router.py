"""
WebSocket routes, mounted on the REST application so the hub lives in the
same process as the domain services publishing to it.
"""

from fastapi import APIRouter, Query, WebSocket

from ws_gateway.components.endpoints.handlers import NOTIFICATIONS_PATH, NotificationEndpoint
from ws_gateway.connection_manager import NotificationHub

router = APIRouter(tags=["websocket"])


def get_hub(websocket: WebSocket) -> NotificationHub:
    return websocket.app.state.hub


@router.websocket(NOTIFICATIONS_PATH)
async def notifications_websocket(
    websocket: WebSocket,
    token: str = Query(default="", description="JWT token"),
):
    """
    Live notifications for staff clients.

    The connection joins its role's default rooms and may subscribe to more.
    """
    endpoint = NotificationEndpoint(websocket, get_hub(websocket), token)
    await endpoint.run()
