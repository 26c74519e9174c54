"""
Tests for the notification WebSocket endpoint.
"""

import pytest
from starlette.websockets import WebSocketDisconnect

from shared.config.constants import Roles
from tests.conftest import make_token
from ws_gateway.components.core.constants import WSCloseCode
from ws_gateway.components.endpoints.handlers import NOTIFICATIONS_PATH, parse_room


def _url(role: str, user_id: int = 1) -> str:
    return f"{NOTIFICATIONS_PATH}?token={make_token(role, user_id)}"


class TestParseRoom:

    def test_known_room(self):
        assert parse_room(" Kitchen ").value == "kitchen"

    def test_unknown_values(self):
        assert parse_room("bar") is None
        assert parse_room(5) is None
        assert parse_room(None) is None


class TestHandshake:

    def test_connected_message_lists_role_rooms(self, client):
        with client.websocket_connect(_url(Roles.WAITER)) as ws:
            hello = ws.receive_json()

        assert hello["type"] == "connected"
        assert hello["connection_id"]
        assert hello["rooms"] == ["tables", "waiters"]

    def test_missing_token_is_rejected(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(NOTIFICATIONS_PATH):
                pass

        assert exc_info.value.code == WSCloseCode.AUTH_FAILED

    def test_invalid_token_is_rejected(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"{NOTIFICATIONS_PATH}?token=garbage"):
                pass

        assert exc_info.value.code == WSCloseCode.AUTH_FAILED

    def test_connection_is_counted_while_open(self, client):
        with client.websocket_connect(_url(Roles.KITCHEN)) as ws:
            ws.receive_json()
            assert client.get("/api/health").json()["websocket_connections"] == 1


class TestClientMessages:

    def test_ping(self, client):
        with client.websocket_connect(_url(Roles.KITCHEN)) as ws:
            ws.receive_json()
            ws.send_text("ping")
            assert ws.receive_json() == {"type": "pong"}
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_subscribe_and_unsubscribe(self, client):
        with client.websocket_connect(_url(Roles.KITCHEN)) as ws:
            ws.receive_json()

            ws.send_json({"type": "subscribe", "room": "pos"})
            joined = ws.receive_json()
            ws.send_json({"type": "unsubscribe", "room": "pos"})
            left = ws.receive_json()

        assert joined == {"type": "subscribed", "room": "pos", "rooms": ["kitchen", "pos"]}
        assert left == {"type": "unsubscribed", "room": "pos", "rooms": ["kitchen"]}

    def test_unknown_room(self, client):
        with client.websocket_connect(_url(Roles.KITCHEN)) as ws:
            ws.receive_json()
            ws.send_json({"type": "subscribe", "room": "bar"})
            error = ws.receive_json()

        assert error["type"] == "error"
        assert error["code"] == "unknown_room"

    def test_managers_room_is_restricted(self, client):
        with client.websocket_connect(_url(Roles.WAITER)) as ws:
            ws.receive_json()
            ws.send_json({"type": "subscribe", "room": "managers"})
            error = ws.receive_json()

        assert error["code"] == "forbidden_room"

    def test_malformed_messages(self, client):
        with client.websocket_connect(_url(Roles.KITCHEN)) as ws:
            ws.receive_json()
            ws.send_text("{not json")
            assert ws.receive_json()["code"] == "invalid_json"
            ws.send_json([1, 2])
            assert ws.receive_json()["code"] == "invalid_message"
            ws.send_json({"type": "dance"})
            assert ws.receive_json()["code"] == "unknown_message_type"

    def test_binary_frame_closes_connection(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(_url(Roles.KITCHEN)) as ws:
                ws.receive_json()
                ws.send_bytes(b"\x00\x01")
                ws.receive_json()

        assert exc_info.value.code == WSCloseCode.UNSUPPORTED_DATA
        assert client.get("/api/health").json()["websocket_connections"] == 0


class TestLiveEvents:
    """HTTP mutations reach connected sockets through the hub."""

    def test_new_order_reaches_kitchen(self, client, waiter_headers, seed_menu):
        with client.websocket_connect(_url(Roles.KITCHEN, user_id=3)) as ws:
            ws.receive_json()

            response = client.post(
                "/api/orders",
                json={"items": [{"menu_item_id": seed_menu["fries"].id}]},
                headers=waiter_headers,
            )
            assert response.status_code == 201
            order_id = response.json()["id"]

            frames = [ws.receive_json() for _ in range(3)]

        assert [f["type"] for f in frames] == ["order", "kitchen_order", "sound_alert"]
        assert all(f["order_id"] == order_id for f in frames)
        assert frames[1]["data"]["items"][0]["menu_item_name"] == "Fries"

    def test_cashier_only_sees_broadcasts(self, client, waiter_headers, seed_menu):
        with client.websocket_connect(_url(Roles.CASHIER, user_id=4)) as ws:
            ws.receive_json()

            client.post(
                "/api/orders",
                json={"items": [{"menu_item_id": seed_menu["fries"].id}]},
                headers=waiter_headers,
            )
            first = ws.receive_json()
            ws.send_text("ping")
            second = ws.receive_json()

        assert first["type"] == "order"
        assert second == {"type": "pong"}
