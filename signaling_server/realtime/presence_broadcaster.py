"""
Presence broadcasting.

After every change to names or flight occupancy, each open connection gets a
full snapshot of the other eligible clients on its network. Snapshots are
recomputed from scratch each time; nothing is cached between broadcasts.
"""

from collections import defaultdict
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger
from . import envelope
from .connection_models import ClientMetadata
from .connection_registry import ConnectionRegistry
from .flight_manager import FlightManager
from .network_utils import network_group_key

logger = get_logger(__name__)


class PresenceBroadcaster:
    """Computes and pushes ``users-on-network-update`` snapshots."""

    def __init__(self, registry: ConnectionRegistry, flight_manager: FlightManager):
        self.registry = registry
        self.flight_manager = flight_manager

    def is_eligible(self, connection: Any, metadata: ClientMetadata) -> bool:
        """Open and not holding a seat in a full flight."""
        if not connection.is_open:
            return False
        flight = self.flight_manager.get_flight(metadata.flight_code)
        return flight is None or not flight.is_full

    def compute_snapshots(self) -> dict[Any, list[dict[str, str]]]:
        """Map every open connection to the user list it should receive."""
        entries = [(connection, metadata) for connection, metadata in self.registry.items() if connection.is_open]

        groups: dict[str, list[ClientMetadata]] = defaultdict(list)
        eligible: set[Any] = set()
        for connection, metadata in entries:
            if self.is_eligible(connection, metadata):
                eligible.add(connection)
                groups[network_group_key(metadata.remote_ip)].append(metadata)

        snapshots: dict[Any, list[dict[str, str]]] = {}
        for connection, metadata in entries:
            if connection not in eligible:
                snapshots[connection] = []
                continue
            group = groups[network_group_key(metadata.remote_ip)]
            snapshots[connection] = [peer.public_identity() for peer in group if peer.id != metadata.id]
        return snapshots

    def broadcast(self) -> None:
        snapshots = self.compute_snapshots()
        for connection, users in snapshots.items():
            try:
                connection.send_json(envelope.users_on_network_update(users))
            except Exception as e:  # pylint: disable=broad-exception-caught
                # One failing recipient must not stop the rest of the broadcast
                metadata = self.registry.get(connection)
                logger.error(
                    "Failed to send presence update",
                    client_id=metadata.id if metadata else None,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        logger.debug("Presence update broadcast", recipients=len(snapshots))
