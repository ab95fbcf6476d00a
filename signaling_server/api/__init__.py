"""
API module for the signaling server.

HTTP side-channel endpoints (liveness text, stats, health) and the
WebSocket endpoint.
"""

from .monitoring import monitoring_router
from .real_time import realtime_router

__all__ = ["monitoring_router", "realtime_router"]
