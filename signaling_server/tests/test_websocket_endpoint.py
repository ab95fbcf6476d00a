"""
End-to-end tests for the signaling WebSocket through the FastAPI app.
"""

from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from ..app.factory import create_app
from ..error_types import ErrorMessages


def receive_until(websocket, message_type: str, limit: int = 20) -> dict[str, Any]:
    """Read frames until one of ``message_type`` arrives, skipping presence updates and the like."""
    for _ in range(limit):
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message
    raise AssertionError(f"No {message_type} frame within {limit} messages")


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


class TestFlightSession:
    """Test cases for a complete two-peer session."""

    def test_create_join_signal_and_leave(self, client):
        """Test the full pairing flow between two clients on the same LAN."""
        with client.websocket_connect("/", headers={"x-forwarded-for": "10.0.0.5"}) as alice:
            alice_id = receive_until(alice, "registered")["id"]
            alice.send_json({"type": "register-details", "name": "Alice"})
            alice.send_json({"type": "create-flight"})
            code = receive_until(alice, "flight-created")["flightCode"]

            with client.websocket_connect("/ws", headers={"x-forwarded-for": "10.0.0.9"}) as bob:
                bob_id = receive_until(bob, "registered")["id"]
                bob.send_json({"type": "register-details", "name": "Bob"})
                bob.send_json({"type": "join-flight", "flightCode": code})

                bob_view = receive_until(bob, "peer-joined")
                alice_view = receive_until(alice, "peer-joined")
                assert bob_view["flightCode"] == code
                assert bob_view["connectionType"] == "local"
                assert bob_view["peer"]["id"] == alice_id
                assert bob_view["peer"]["name"] == "Alice"
                assert alice_view["peer"]["id"] == bob_id

                offer = {"type": "offer", "sdp": "v=0\r\n"}
                alice.send_json({"type": "signal", "data": offer})
                assert receive_until(bob, "signal") == {"type": "signal", "data": offer}

            assert receive_until(alice, "peer-left") == {"type": "peer-left"}

    def test_stats_reflect_active_session(self, client):
        """Test that /stats counts the open connection and flight."""
        with client.websocket_connect("/") as alice:
            receive_until(alice, "registered")
            alice.send_json({"type": "create-flight"})
            receive_until(alice, "flight-created")

            stats = client.get("/stats").json()

        assert stats["activeConnections"] == 1
        assert stats["activeFlights"] == 1
        assert stats["totalFlightsCreated"] == 1

    def test_client_ping_answered(self, client):
        """Test that a client-initiated ping gets a pong."""
        with client.websocket_connect("/") as alice:
            receive_until(alice, "registered")
            alice.send_json({"type": "ping"})

            assert receive_until(alice, "pong") == {"type": "pong"}


class TestErrorFrames:
    """Test cases for errors reported over the socket."""

    def test_malformed_frames_keep_connection_open(self, client):
        """Test that bad input yields error frames and the connection stays usable."""
        with client.websocket_connect("/") as alice:
            receive_until(alice, "registered")

            alice.send_text("{not json")
            assert receive_until(alice, "error")["message"] == ErrorMessages.INVALID_FORMAT

            alice.send_json({"type": "teleport"})
            assert receive_until(alice, "error")["message"] == ErrorMessages.UNKNOWN_MESSAGE_TYPE

            alice.send_json({"type": "join-flight", "flightCode": "ZZZZZZ"})
            assert receive_until(alice, "error")["message"] == ErrorMessages.FLIGHT_NOT_FOUND

            alice.send_json({"type": "create-flight"})
            assert receive_until(alice, "flight-created")["flightCode"]

    def test_binary_frame_accepted(self, client):
        """Test that JSON sent in a binary frame is processed."""
        with client.websocket_connect("/") as alice:
            receive_until(alice, "registered")
            alice.send_json({"type": "create-flight"}, mode="binary")

            assert receive_until(alice, "flight-created")["flightCode"]


class TestConnectionRejection:
    """Test cases for connections refused by the server."""

    def test_strict_mode_rejects_unknown_origin(self, monkeypatch):
        """Test that a foreign Origin is refused before the upgrade completes."""
        monkeypatch.setenv("ORIGIN_STRICT", "true")

        with TestClient(create_app()) as client:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                with client.websocket_connect("/", headers={"origin": "https://evil.example"}):
                    pass

            assert exc_info.value.code == 1008
            assert len(client.app.state.coordinator.registry) == 0

    def test_strict_mode_accepts_allow_listed_origin(self, monkeypatch):
        """Test that an allow-listed Origin is accepted in strict mode."""
        monkeypatch.setenv("ORIGIN_STRICT", "true")

        with TestClient(create_app()) as client:
            with client.websocket_connect("/", headers={"origin": "https://dropsilk.xyz"}) as alice:
                assert receive_until(alice, "registered")["id"]

    def test_registration_failure_closes_with_internal_error(self, client, monkeypatch):
        """Test that a failure during registration closes the socket with 1011."""

        def failing_connect(*args, **kwargs):
            raise RuntimeError("registry unavailable")

        monkeypatch.setattr(client.app.state.coordinator, "connect", failing_connect)

        with client.websocket_connect("/") as alice:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                alice.receive_json()

        assert exc_info.value.code == 1011
        assert len(client.app.state.coordinator.registry) == 0
