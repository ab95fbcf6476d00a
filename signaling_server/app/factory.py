"""
FastAPI application factory for the signaling server.

This module handles FastAPI app creation, error handling and router
registration.
"""

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .. import __version__
from ..api.monitoring import monitoring_router
from ..api.real_time import realtime_router
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once
from .lifespan import lifespan

logger = get_logger(__name__)


async def _unhandled_http_exception(request: Request, exc: Exception) -> PlainTextResponse:
    log_exception_once(
        logger,
        "error",
        "HTTP server error in request handler",
        exc=exc,
        path=request.url.path,
        exc_info=True,
    )
    return PlainTextResponse("Internal Server Error", status_code=500)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title="Flight Signaling Server",
        description="WebRTC signaling and flight pairing over WebSocket",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_exception_handler(Exception, _unhandled_http_exception)

    app.include_router(monitoring_router)
    app.include_router(realtime_router)

    return app
