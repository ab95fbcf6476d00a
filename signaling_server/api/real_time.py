"""
WebSocket endpoint for the signaling server.

The Origin header is checked before the upgrade is accepted; a rejected
request is closed without accepting, which the ASGI server answers with 403.
"""

from fastapi import APIRouter, WebSocket

from ..error_types import CLOSE_POLICY_VIOLATION
from ..realtime.coordinator import SignalingCoordinator
from ..realtime.message_validator import WebSocketMessageValidator
from ..realtime.network_utils import get_client_ip
from ..realtime.origin_gatekeeper import OriginGatekeeper
from ..realtime.websocket_handler import handle_websocket_connection
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

realtime_router = APIRouter(tags=["realtime"])


async def _websocket_endpoint(websocket: WebSocket) -> None:
    state = websocket.app.state
    coordinator: SignalingCoordinator | None = getattr(state, "coordinator", None)
    gatekeeper: OriginGatekeeper | None = getattr(state, "origin_gatekeeper", None)
    validator: WebSocketMessageValidator | None = getattr(state, "message_validator", None)

    if coordinator is None or gatekeeper is None or validator is None:
        logger.error("WebSocket endpoint used before application startup completed")
        await websocket.close(code=CLOSE_POLICY_VIOLATION)
        return

    origin = websocket.headers.get("origin")
    if not gatekeeper.is_allowed(origin):
        logger.info("WebSocket upgrade refused", origin=origin, remote_ip=get_client_ip(websocket))
        await websocket.close(code=CLOSE_POLICY_VIOLATION)
        return

    await handle_websocket_connection(websocket, coordinator, validator)


@realtime_router.websocket("/")
async def websocket_root(websocket: WebSocket) -> None:
    """Signaling WebSocket at the server root."""
    await _websocket_endpoint(websocket)


@realtime_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Alias of the root signaling WebSocket."""
    await _websocket_endpoint(websocket)
