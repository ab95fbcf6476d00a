"""
Tests for the HTTP monitoring endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from ..api.monitoring import ALIVE_MESSAGE
from ..app.factory import create_app


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


class TestMonitoringEndpoints:
    """Test cases for /, /stats and /health."""

    def test_root_returns_alive_text(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == ALIVE_MESSAGE

    def test_stats_shape(self, client):
        """Test that /stats reports camelCase counters and process memory."""
        response = client.get("/stats")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {
            "activeConnections",
            "activeFlights",
            "totalConnections",
            "totalDisconnections",
            "totalFlightsCreated",
            "totalFlightsJoined",
            "uptime",
            "memory",
            "timestamp",
        }
        assert body["activeConnections"] == 0
        assert body["activeFlights"] == 0
        assert body["memory"]["rss"] > 0
        assert body["uptime"] >= 0

    def test_stats_count_finished_connections(self, client):
        """Test that closed sockets show up in the lifetime counters only."""
        with client.websocket_connect("/") as ws:
            ws.receive_json()

        body = client.get("/stats").json()

        assert body["activeConnections"] == 0
        assert body["totalConnections"] == 1
        assert body["totalDisconnections"] == 1

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["uptime_seconds"] >= 0
        assert "timestamp" in body

    def test_stats_before_startup_is_server_error(self):
        """Test that /stats without a running lifespan reports 500."""
        client = TestClient(create_app(), raise_server_exceptions=False)

        response = client.get("/stats")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
