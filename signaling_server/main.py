"""
Signaling server - main application entry point.

Run with ``python -m signaling_server.main`` or point uvicorn at
``signaling_server.main:app``.
"""

import uvicorn

from .app.factory import create_app
from .app.shutdown import shutdown_signaling
from .config import get_config
from .structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging

# Logging must be configured before any module logs through structlog
config = get_config()
setup_enhanced_logging(config.to_legacy_dict())

logger = get_logger(__name__)
logger.info("Logging setup completed", environment=config.server.environment)

app = create_app()


class SignalingServer(uvicorn.Server):
    """
    uvicorn server that notifies clients before uvicorn closes their sockets.

    uvicorn closes open WebSockets (code 1012) before running the lifespan
    shutdown, so the ``server-shutdown`` notice is sent from here.
    """

    async def shutdown(self, sockets=None) -> None:
        coordinator = getattr(app.state, "coordinator", None)
        if coordinator is not None:
            await shutdown_signaling(coordinator, config.signaling.shutdown_timeout_seconds)
        await super().shutdown(sockets=sockets)


def main() -> None:
    """Run the server with uvicorn using the configured host and port."""
    logger.info(
        "Signaling server starting",
        host=config.server.host,
        port=config.server.port,
        environment=config.server.environment,
        health_check=f"http://localhost:{config.server.port}",
    )
    server_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_config=None,
        timeout_graceful_shutdown=int(config.signaling.shutdown_timeout_seconds),
    )
    SignalingServer(server_config).run()


if __name__ == "__main__":
    main()
