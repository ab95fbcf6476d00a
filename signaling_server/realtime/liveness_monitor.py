"""
LivenessMonitor for the signaling server.

Pings every connection at a fixed interval and force-closes the ones that
stayed silent since the previous ping.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger
from . import envelope
from .connection_registry import ConnectionRegistry
from .flight_manager import FlightManager

logger = get_logger(__name__)

DEFAULT_LIVENESS_INTERVAL = 30.0


class LivenessMonitor:
    """
    Periodic application-level heartbeat.

    Each sweep either terminates a connection that did not answer the last
    ``ping`` or marks it pending and sends a new one. Any inbound frame
    (``pong`` or otherwise) marks the connection alive again. Terminated
    connections go through ``on_unresponsive``, which is the same teardown
    used for a client-initiated disconnect.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        flight_manager: FlightManager,
        on_unresponsive: Callable[[Any], None],
        interval: float = DEFAULT_LIVENESS_INTERVAL,
    ):
        self.registry = registry
        self.flight_manager = flight_manager
        self.on_unresponsive = on_unresponsive
        self.interval = interval
        self.is_running = False
        self.sweep_count = 0
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        if self.is_running:
            logger.warning("LivenessMonitor is already running")
            return
        self.is_running = True
        self._task = asyncio.create_task(self._run(), name="liveness_monitor")
        logger.info("LivenessMonitor started", interval=self.interval)

    async def stop(self) -> None:
        if not self.is_running:
            return
        self.is_running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("LivenessMonitor stopped")

    def sweep(self) -> int:
        """
        Run one ping round.

        Returns:
            Number of connections terminated in this round
        """
        self.sweep_count += 1
        terminated = 0
        for connection in self.registry.connections():
            if not connection.is_alive:
                metadata = self.registry.get(connection)
                logger.info("Terminating unresponsive connection", client_id=metadata.id if metadata else None)
                self.on_unresponsive(connection)
                terminated += 1
                continue
            connection.is_alive = False
            connection.send_json(envelope.ping())

        active_connections = len(self.registry)
        active_flights = len(self.flight_manager)
        if active_connections or active_flights:
            logger.info(
                "Server health check",
                active_connections=active_connections,
                active_flights=active_flights,
                terminated=terminated,
            )
        return terminated

    async def _run(self) -> None:
        while self.is_running:
            try:
                await asyncio.sleep(self.interval)
                self.sweep()
            except asyncio.CancelledError:
                logger.debug("Liveness loop cancelled")
                raise
            except Exception as e:  # pylint: disable=broad-exception-caught
                # A failed sweep must not stop future pings
                logger.error("Error in liveness sweep", error=str(e), error_type=type(e).__name__, exc_info=True)
