"""
WebSocket connection lifecycle for the signaling server.

Accepts the upgrade, registers the client, runs the receive loop and tears
everything down when the socket goes away, whichever side closed it.
"""

import asyncio

from fastapi import WebSocket, WebSocketDisconnect

from ..error_types import CLOSE_GOING_AWAY, CLOSE_INTERNAL_ERROR, create_websocket_error_response
from ..exceptions import ErrorContext, MessageValidationError
from ..structured_logging.enhanced_logging_config import (
    bind_connection_context,
    clear_connection_context,
    get_logger,
)
from .client_connection import ClientConnection
from .coordinator import SignalingCoordinator
from .message_handler_factory import message_handler_factory
from .message_validator import WebSocketMessageValidator
from .network_utils import get_client_ip

logger = get_logger(__name__)


async def _register_client(
    websocket: WebSocket, coordinator: SignalingCoordinator, remote_ip: str, user_agent: str
) -> ClientConnection | None:
    """Register the accepted socket; on failure close it with 1011 and return None."""
    connection = ClientConnection(websocket, max_pending_frames=coordinator.max_pending_frames)
    try:
        metadata = coordinator.connect(connection, remote_ip, user_agent)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error(
            "Failed to register client",
            remote_ip=remote_ip,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        coordinator.handle_disconnect(connection)
        await websocket.close(code=CLOSE_INTERNAL_ERROR)
        return None

    bind_connection_context(client_id=metadata.id, remote_ip=remote_ip)
    connection.start()
    return connection


async def _process_frame(
    raw: str | bytes,
    connection: ClientConnection,
    coordinator: SignalingCoordinator,
    validator: WebSocketMessageValidator,
) -> None:
    metadata = coordinator.registry.get(connection)
    context = ErrorContext(
        client_id=metadata.id if metadata else None,
        flight_code=metadata.flight_code if metadata else None,
        remote_ip=metadata.remote_ip if metadata else None,
    )
    try:
        message = validator.parse_and_validate(raw, context)
    except MessageValidationError as e:
        logger.debug("Rejected inbound frame", error_type=e.error_type, message_preview=raw[:200])
        connection.send_json(create_websocket_error_response(e.user_friendly))
        return

    await message_handler_factory.handle_message(coordinator, connection, message)


async def _handle_websocket_message_loop(
    websocket: WebSocket,
    connection: ClientConnection,
    coordinator: SignalingCoordinator,
    validator: WebSocketMessageValidator,
) -> None:
    """
    Receive frames until the client disconnects or the server closes the socket.

    The server side closes through the connection's writer task (liveness
    termination, shutdown), so the loop also watches the connection's
    ``closed`` event.
    """
    closed_waiter = asyncio.ensure_future(connection.closed.wait())
    receive_task: asyncio.Future | None = None
    try:
        while True:
            receive_task = asyncio.ensure_future(websocket.receive())
            done, _ = await asyncio.wait({receive_task, closed_waiter}, return_when=asyncio.FIRST_COMPLETED)
            if receive_task not in done:
                logger.debug("Server closed connection", connection_id=connection.connection_id)
                break

            try:
                message = receive_task.result()
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.info("WebSocket connection lost", error=str(e), error_type=type(e).__name__)
                break

            if message["type"] == "websocket.disconnect":
                logger.info("WebSocket disconnected", close_code=message.get("code"))
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue

            connection.mark_alive()
            await _process_frame(raw, connection, coordinator, validator)
    finally:
        closed_waiter.cancel()
        if receive_task is not None and not receive_task.done():
            receive_task.cancel()


async def handle_websocket_connection(
    websocket: WebSocket,
    coordinator: SignalingCoordinator,
    validator: WebSocketMessageValidator,
) -> None:
    """
    Handle one client WebSocket from accept to teardown.

    Args:
        websocket: The WebSocket connection (origin already checked)
        coordinator: Owner of the registry and flight table
        validator: Boundary validator for inbound frames
    """
    remote_ip = get_client_ip(websocket)
    user_agent = websocket.headers.get("user-agent", "unknown")

    if coordinator.shutting_down:
        logger.info("Rejecting connection during shutdown", remote_ip=remote_ip)
        await websocket.close(code=CLOSE_GOING_AWAY)
        return

    await websocket.accept()
    connection = await _register_client(websocket, coordinator, remote_ip, user_agent)
    if connection is None:
        return

    try:
        await _handle_websocket_message_loop(websocket, connection, coordinator, validator)
    finally:
        coordinator.handle_disconnect(connection)
        await connection.stop()
        clear_connection_context()
