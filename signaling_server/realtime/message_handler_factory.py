"""
Message handler factory for WebSocket message routing.

Maps each inbound message type to a handler object. Handlers call into the
SignalingCoordinator, whose methods are synchronous; none of them awaits, so
a message is fully applied before the next one from any client is looked at.
"""

from abc import ABC, abstractmethod
from typing import Any, cast

from ..error_types import ErrorMessages, ErrorType, create_websocket_error_response
from ..exceptions import SignalingError
from ..structured_logging.enhanced_logging_config import get_logger
from . import envelope
from .coordinator import SignalingCoordinator
from .message_models import (
    ClientMessage,
    InviteToFlightMessage,
    JoinFlightMessage,
    MessageType,
    RegisterDetailsMessage,
    SignalMessage,
)

logger = get_logger(__name__)


class MessageHandler(ABC):
    """Abstract base class for message handlers."""

    @abstractmethod
    async def handle(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        """
        Handle a specific message type.

        Args:
            coordinator: Owner of the registry and flight table
            connection: The sending ClientConnection
            message: The validated message model
        """


class RegisterDetailsHandler(MessageHandler):
    async def handle(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        details = cast(RegisterDetailsMessage, message)
        coordinator.register_details(connection, details.name)


class CreateFlightHandler(MessageHandler):
    async def handle(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        coordinator.create_flight(connection)


class JoinFlightHandler(MessageHandler):
    async def handle(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        join_flight_message = cast(JoinFlightMessage, message)
        coordinator.join_flight(connection, join_flight_message.flight_code)


class InviteToFlightHandler(MessageHandler):
    async def handle(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        invite_message = cast(InviteToFlightMessage, message)
        coordinator.invite(connection, invite_message.invitee_id, invite_message.flight_code)


class SignalHandler(MessageHandler):
    async def handle(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        signal_message = cast(SignalMessage, message)
        coordinator.relay_signal(connection, signal_message.data)


class PingHandler(MessageHandler):
    """Client-initiated heartbeat; answered with ``pong``."""

    async def handle(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        connection.send_json(envelope.pong())


class PongHandler(MessageHandler):
    """Answer to a liveness ping. The receive loop already marked the connection alive."""

    async def handle(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        connection.mark_alive()


class MessageHandlerFactory:
    """
    Factory for creating and managing message handlers.

    Dict dispatch on the message type. SignalingError raised by a handler is
    turned into an ``error`` frame for the sender; any other exception is
    logged and reported with a generic message. The connection stays open
    in both cases.
    """

    def __init__(self):
        self._handlers: dict[str, MessageHandler] = {
            MessageType.REGISTER_DETAILS: RegisterDetailsHandler(),
            MessageType.CREATE_FLIGHT: CreateFlightHandler(),
            MessageType.JOIN_FLIGHT: JoinFlightHandler(),
            MessageType.INVITE_TO_FLIGHT: InviteToFlightHandler(),
            MessageType.SIGNAL: SignalHandler(),
            MessageType.PING: PingHandler(),
            MessageType.PONG: PongHandler(),
        }

    def register_handler(self, message_type: str, handler: MessageHandler) -> None:
        self._handlers[message_type] = handler
        logger.debug("Registered handler for message type", message_type=message_type)

    def get_handler(self, message_type: str) -> MessageHandler | None:
        return self._handlers.get(message_type)

    def get_supported_message_types(self) -> list[str]:
        return [str(message_type) for message_type in self._handlers]

    async def handle_message(self, coordinator: SignalingCoordinator, connection: Any, message: ClientMessage) -> None:
        """
        Route a validated message to its handler.

        Args:
            coordinator: Owner of the registry and flight table
            connection: The sending ClientConnection
            message: The validated message model
        """
        message_type = str(message.type)
        handler = self.get_handler(message_type)
        if handler is None:
            logger.warning("Unknown message type", message_type=message_type)
            connection.send_json(create_websocket_error_response(ErrorMessages.UNKNOWN_MESSAGE_TYPE))
            return

        try:
            await handler.handle(coordinator, connection, message)
        except SignalingError as e:
            connection.send_json(create_websocket_error_response(e.user_friendly))
        except Exception as e:  # pylint: disable=broad-exception-caught
            # Unexpected handler failure is reported to the sender; the connection survives
            metadata = coordinator.registry.get(connection)
            logger.error(
                "Error processing message",
                message_type=message_type,
                client_id=metadata.id if metadata else None,
                error=str(e),
                error_type=type(e).__name__,
                category=ErrorType.INTERNAL_ERROR.value,
                exc_info=True,
            )
            connection.send_json(create_websocket_error_response(ErrorMessages.INTERNAL_ERROR))


message_handler_factory = MessageHandlerFactory()
