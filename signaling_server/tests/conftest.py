"""
Test configuration and fixtures for the signaling server test suite.

Environment variables are set before any signaling_server module loads its
configuration.
"""

import os
from typing import Any

import pytest

os.environ.setdefault("SERVER_ENVIRONMENT", "test")
os.environ.setdefault("SERVER_HOST", "127.0.0.1")
os.environ.setdefault("SERVER_PORT", "54731")
os.environ.setdefault("LOGGING_LEVEL", "WARNING")
os.environ.setdefault("SIGNALING_DISABLE_PROCESS_EXIT", "1")

from ..config import reset_config  # noqa: E402
from ..realtime.coordinator import SignalingCoordinator  # noqa: E402
from ..structured_logging.enhanced_logging_config import setup_enhanced_logging  # noqa: E402

setup_enhanced_logging({"environment": "test", "logging": {"level": "WARNING", "format": "human"}})


class RecordingConnection:
    """In-memory stand-in for ClientConnection that records every frame."""

    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.is_open = True
        self.is_alive = True
        self.close_code: int | None = None
        self.terminated = False

    def send_json(self, message: dict[str, Any]) -> bool:
        if not self.is_open:
            return False
        self.sent.append(message)
        return True

    def close(self, code: int = 1000, reason: str = "") -> None:
        if not self.is_open:
            return
        self.is_open = False
        self.close_code = code

    def terminate(self) -> None:
        self.terminated = True
        self.is_open = False
        self.close_code = 1001

    def mark_alive(self) -> None:
        self.is_alive = True

    async def wait_closed(self, timeout: float | None = None) -> bool:
        return not self.is_open

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [message for message in self.sent if message["type"] == message_type]

    def last(self, message_type: str) -> dict[str, Any]:
        return self.of_type(message_type)[-1]


@pytest.fixture(autouse=True)
def _reset_config():
    """Reload configuration for every test so monkeypatched env vars apply."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def coordinator() -> SignalingCoordinator:
    return SignalingCoordinator()


@pytest.fixture
def connect(coordinator):
    """Factory that registers a RecordingConnection, optionally naming it."""

    def _connect(remote_ip: str = "10.0.0.5", name: str | None = None) -> RecordingConnection:
        connection = RecordingConnection()
        coordinator.connect(connection, remote_ip, "pytest")
        if name is not None:
            coordinator.register_details(connection, name)
        return connection

    return _connect
