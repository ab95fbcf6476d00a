"""
Monitoring endpoints for the signaling server.

These read only registry and flight sizes plus the process counters; they
never touch per-client data.
"""

from datetime import UTC, datetime
from typing import Any

import psutil
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from ..realtime.coordinator import SignalingCoordinator
from ..realtime.network_utils import get_client_ip
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

ALIVE_MESSAGE = "Server is alive and waiting for WebSocket connections."

monitoring_router = APIRouter(tags=["monitoring"])


class MemoryUsage(BaseModel):
    rss: int
    vms: int


class StatsResponse(BaseModel):
    """Response model for the stats endpoint (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    active_connections: int = Field(alias="activeConnections")
    active_flights: int = Field(alias="activeFlights")
    total_connections: int = Field(alias="totalConnections")
    total_disconnections: int = Field(alias="totalDisconnections")
    total_flights_created: int = Field(alias="totalFlightsCreated")
    total_flights_joined: int = Field(alias="totalFlightsJoined")
    uptime: float
    memory: MemoryUsage
    timestamp: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    uptime_seconds: float


def _get_coordinator(request: Request) -> SignalingCoordinator:
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise RuntimeError("Signaling coordinator is not configured")
    return coordinator


def _get_memory_usage() -> dict[str, Any]:
    memory_info = psutil.Process().memory_info()
    return {"rss": memory_info.rss, "vms": memory_info.vms}


@monitoring_router.get("/", response_class=PlainTextResponse)
async def alive(request: Request) -> str:
    logger.info("Health check accessed", remote_ip=get_client_ip(request))
    return ALIVE_MESSAGE


@monitoring_router.get("/stats", response_model=StatsResponse, response_model_by_alias=True)
async def get_stats(request: Request) -> StatsResponse:
    """Connection and flight counters plus process memory."""
    coordinator = _get_coordinator(request)
    stats = coordinator.get_stats()
    stats["memory"] = _get_memory_usage()
    response = StatsResponse.model_validate(stats)
    logger.info(
        "Stats endpoint accessed",
        active_connections=response.active_connections,
        active_flights=response.active_flights,
    )
    return response


@monitoring_router.get("/health", response_model=HealthResponse)
async def get_health(request: Request) -> HealthResponse:
    coordinator = _get_coordinator(request)
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
        uptime_seconds=coordinator.stats.uptime_seconds,
    )
