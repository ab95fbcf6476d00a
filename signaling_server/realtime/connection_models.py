"""
Data models for connection and flight management.

These are plain in-memory records owned by the SignalingCoordinator; nothing
here is persisted.
"""

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

DEFAULT_CLIENT_NAME = "Anonymous"
FLIGHT_CAPACITY = 2


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class ClientMetadata:
    """
    Per-connection client record.

    Exactly one exists for every live connection; it is created at connect,
    mutated by name and flight operations, and dropped at disconnect.
    """

    id: str
    remote_ip: str
    user_agent: str = "unknown"
    name: str = DEFAULT_CLIENT_NAME
    flight_code: str | None = None
    connected_at: str = field(default_factory=utc_now_iso)

    def public_identity(self) -> dict[str, str]:
        """The ``{id, name}`` pair other clients are allowed to see."""
        return {"id": self.id, "name": self.name}


@dataclass
class Flight:
    """A two-seat pairing session; ``members[0]`` is the creator."""

    code: str
    members: list[Any] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def creator(self) -> Any | None:
        return self.members[0] if self.members else None

    @property
    def is_full(self) -> bool:
        return len(self.members) >= FLIGHT_CAPACITY

    @property
    def is_empty(self) -> bool:
        return not self.members

    def other_members(self, connection: Any) -> list[Any]:
        return [member for member in self.members if member is not connection]


@dataclass
class ConnectionStats:
    """Process-wide counters reported by the stats endpoint."""

    total_connections: int = 0
    total_disconnections: int = 0
    total_flights_created: int = 0
    total_flights_joined: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self.start_time
