"""
SignalingCoordinator: the single owner of all signaling state.

Every registry and flight mutation goes through this object on the event
loop. Its methods are synchronous, so each handler body completes without
suspension; outbound traffic is only ever enqueued.
"""

from datetime import UTC, datetime
from typing import Any

from ..config import AppConfig
from ..error_types import CLOSE_GOING_AWAY, ErrorMessages
from ..structured_logging.enhanced_logging_config import get_logger
from . import envelope
from .client_connection import DEFAULT_MAX_PENDING_FRAMES
from .connection_models import ClientMetadata, ConnectionStats, Flight
from .connection_registry import ConnectionRegistry
from .flight_manager import FlightManager
from .liveness_monitor import LivenessMonitor
from .presence_broadcaster import PresenceBroadcaster
from .signal_relay import SignalRelay

logger = get_logger(__name__)


class SignalingCoordinator:
    """Wires the registry, flight manager, relay, presence and liveness together."""

    def __init__(self, config: AppConfig | None = None):
        signaling = config.signaling if config is not None else None

        self.stats = ConnectionStats()
        self.registry = ConnectionRegistry(
            stats=self.stats,
            on_presence_change=self.broadcast_presence,
            max_name_length=signaling.max_name_length if signaling else 50,
        )
        self.flight_manager = FlightManager(
            self.registry,
            stats=self.stats,
            on_presence_change=self.broadcast_presence,
            code_length=signaling.flight_code_length if signaling else 6,
            code_attempts=signaling.flight_code_attempts if signaling else 10,
        )
        self.presence = PresenceBroadcaster(self.registry, self.flight_manager)
        self.relay = SignalRelay(self.registry, self.flight_manager)
        self.liveness = LivenessMonitor(
            self.registry,
            self.flight_manager,
            on_unresponsive=self.terminate_connection,
            interval=signaling.liveness_interval_seconds if signaling else 30.0,
        )
        self.max_pending_frames = signaling.max_pending_frames if signaling else DEFAULT_MAX_PENDING_FRAMES
        self.shutting_down = False

    def broadcast_presence(self) -> None:
        self.presence.broadcast()

    # Connection lifecycle

    def connect(self, connection: Any, remote_ip: str, user_agent: str = "unknown") -> ClientMetadata:
        return self.registry.register(connection, remote_ip, user_agent)

    def handle_disconnect(self, connection: Any) -> bool:
        """
        Tear down everything owned by a connection.

        The client is removed from the registry before presence is
        recomputed, so the single broadcast at the end never lists it. Safe to
        call more than once; only the first call has any effect.

        Returns:
            True if the connection was still registered
        """
        if connection not in self.registry:
            return False
        self.flight_manager.leave(connection, broadcast=False)
        self.registry.unregister(connection)
        self.broadcast_presence()
        return True

    def terminate_connection(self, connection: Any) -> None:
        """Force-close an unresponsive connection through the normal teardown path."""
        connection.terminate()
        self.handle_disconnect(connection)

    # Client operations

    def register_details(self, connection: Any, name: Any) -> ClientMetadata:
        return self.registry.set_name(connection, name)

    def create_flight(self, connection: Any) -> Flight:
        return self.flight_manager.create_flight(connection)

    def join_flight(self, connection: Any, code: Any) -> Flight:
        return self.flight_manager.join_flight(connection, code)

    def invite(self, connection: Any, invitee_id: Any, flight_code: Any) -> bool:
        return self.relay.invite(connection, invitee_id, flight_code)

    def relay_signal(self, connection: Any, payload: Any) -> int:
        return self.relay.relay_signal(connection, payload)

    # Shutdown

    def broadcast_shutdown(self, message: str = ErrorMessages.SERVER_SHUTDOWN) -> int:
        """
        Notify every open connection and close it with 1001.

        Returns:
            Number of connections notified
        """
        self.shutting_down = True
        notified = 0
        for connection in self.registry.connections():
            if not connection.is_open:
                continue
            connection.send_json(envelope.server_shutdown(message))
            connection.close(CLOSE_GOING_AWAY, "Server shutting down")
            notified += 1
        logger.info("Shutdown notice broadcast", notified=notified)
        return notified

    def get_stats(self) -> dict[str, Any]:
        """Counters for the stats endpoint (memory is added by the caller)."""
        return {
            "activeConnections": len(self.registry),
            "activeFlights": len(self.flight_manager),
            "totalConnections": self.stats.total_connections,
            "totalDisconnections": self.stats.total_disconnections,
            "totalFlightsCreated": self.stats.total_flights_created,
            "totalFlightsJoined": self.stats.total_flights_joined,
            "uptime": self.stats.uptime_seconds,
            "timestamp": datetime.now(UTC).isoformat(),
        }
