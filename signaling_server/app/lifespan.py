"""Application lifecycle management for the signaling server.

Startup builds the SignalingCoordinator and the boundary collaborators,
stores them on ``app.state``, installs the loop fault handler and starts the
liveness monitor. Shutdown notifies and closes every client.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..config import get_config
from ..realtime.coordinator import SignalingCoordinator
from ..realtime.message_validator import WebSocketMessageValidator
from ..realtime.origin_gatekeeper import OriginGatekeeper
from ..structured_logging.enhanced_logging_config import get_logger
from .shutdown import install_fault_handler, shutdown_signaling

logger = get_logger(__name__)

__all__ = ["lifespan"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Everything lives in memory for the lifetime of the process; nothing is
    restored at startup or persisted at shutdown.
    """
    config = get_config()
    signaling = config.signaling
    logger.info(
        "Starting signaling server",
        environment=config.server.environment,
        origin_strict_mode=config.origin_strict_mode,
        liveness_interval=signaling.liveness_interval_seconds,
    )

    coordinator = SignalingCoordinator(config)
    app.state.coordinator = coordinator
    app.state.origin_gatekeeper = OriginGatekeeper.from_config(config)
    app.state.message_validator = WebSocketMessageValidator(signaling.max_message_bytes)

    loop = asyncio.get_running_loop()
    previous_handler = loop.get_exception_handler()
    app.state.emergency_shutdown = install_fault_handler(loop, coordinator, signaling.shutdown_timeout_seconds)

    await coordinator.liveness.start()
    logger.info("Signaling server started")
    yield

    logger.info("Shutting down signaling server...")
    try:
        await shutdown_signaling(coordinator, signaling.shutdown_timeout_seconds)
    except (asyncio.CancelledError, KeyboardInterrupt) as e:
        logger.warning("Shutdown interrupted", error=str(e), error_type=type(e).__name__)
        raise
    finally:
        loop.set_exception_handler(previous_handler)

    logger.info(
        "Signaling server shutdown complete",
        total_connections=coordinator.stats.total_connections,
        total_flights_created=coordinator.stats.total_flights_created,
    )
