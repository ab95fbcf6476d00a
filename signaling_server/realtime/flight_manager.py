"""
Flight lifecycle: create, join, leave.

A flight moves through absent -> created (one member) -> paired (two
members) -> absent. All operations are synchronous and run on the event
loop, so a check and the mutation it guards can never be interleaved with
another client's request.
"""

import secrets
import string
from collections.abc import Callable
from typing import Any

from ..error_types import ErrorMessages
from ..exceptions import CapacityError, ConflictError, ErrorContext, NotFoundError, StaleStateError, ValidationError
from ..structured_logging.enhanced_logging_config import get_logger
from . import envelope
from .connection_models import ClientMetadata, ConnectionStats, Flight
from .connection_registry import ConnectionRegistry
from .network_utils import classify_connection_type

logger = get_logger(__name__)

FLIGHT_CODE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_FLIGHT_CODE_LENGTH = 6
DEFAULT_FLIGHT_CODE_ATTEMPTS = 10


def generate_flight_code(length: int = DEFAULT_FLIGHT_CODE_LENGTH) -> str:
    """Random code over A-Z0-9 drawn from the secrets module."""
    return "".join(secrets.choice(FLIGHT_CODE_ALPHABET) for _ in range(length))


class FlightManager:
    """Owns the flight table and keeps ClientMetadata.flight_code consistent with it."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        stats: ConnectionStats | None = None,
        on_presence_change: Callable[[], None] | None = None,
        code_length: int = DEFAULT_FLIGHT_CODE_LENGTH,
        code_attempts: int = DEFAULT_FLIGHT_CODE_ATTEMPTS,
        code_generator: Callable[[int], str] = generate_flight_code,
    ):
        self.registry = registry
        self.stats = stats or registry.stats
        self.on_presence_change = on_presence_change or registry.on_presence_change
        self.code_length = code_length
        self.code_attempts = code_attempts
        self._code_generator = code_generator
        self._flights: dict[str, Flight] = {}

    def __len__(self) -> int:
        return len(self._flights)

    def __contains__(self, code: object) -> bool:
        return code in self._flights

    def get_flight(self, code: str | None) -> Flight | None:
        if code is None:
            return None
        return self._flights.get(code)

    def flight_for(self, connection: Any) -> Flight | None:
        metadata = self.registry.get(connection)
        if metadata is None:
            return None
        return self.get_flight(metadata.flight_code)

    def flights(self) -> list[Flight]:
        return list(self._flights.values())

    def is_live(self, connection: Any) -> bool:
        return connection in self.registry and connection.is_open

    def _require_metadata(self, connection: Any, message_type: str) -> ClientMetadata:
        metadata = self.registry.get(connection)
        if metadata is None:
            raise NotFoundError(
                f"{message_type} from unregistered connection",
                context=ErrorContext(message_type=message_type),
                resource_type="client",
                user_friendly=ErrorMessages.INTERNAL_ERROR,
            )
        return metadata

    def _allocate_code(self, context: ErrorContext) -> str:
        for _ in range(self.code_attempts):
            code = self._code_generator(self.code_length)
            if code not in self._flights:
                return code
            logger.debug("Flight code collision, retrying", flight_code=code)
        raise ConflictError(
            f"No unused flight code after {self.code_attempts} attempts",
            context=context,
            user_friendly=ErrorMessages.FLIGHT_CODE_UNAVAILABLE,
        )

    def create_flight(self, connection: Any) -> Flight:
        """
        Open a new flight with the caller as creator.

        Raises:
            ConflictError: If the caller is already in a flight, or no free
                code could be allocated
        """
        metadata = self._require_metadata(connection, "create-flight")
        context = ErrorContext(client_id=metadata.id, remote_ip=metadata.remote_ip, message_type="create-flight")

        if metadata.flight_code is not None:
            context.flight_code = metadata.flight_code
            raise ConflictError(
                "Client attempted to create a flight while already in one",
                context=context,
                user_friendly=ErrorMessages.ALREADY_IN_FLIGHT,
            )

        code = self._allocate_code(context)
        flight = Flight(code=code, members=[connection])
        self._flights[code] = flight
        metadata.flight_code = code
        self.stats.total_flights_created += 1

        logger.info("Flight created", flight_code=code, creator_id=metadata.id, creator_name=metadata.name)

        connection.send_json(envelope.flight_created(code))
        self.on_presence_change()
        return flight

    def join_flight(self, connection: Any, code: Any) -> Flight:
        """
        Seat the caller as the second member of an existing flight.

        Raises:
            ValidationError: If the code is not a string of the code length
            ConflictError: If the caller is already in a flight
            NotFoundError: If no such flight exists
            CapacityError: If the flight already has two members
            StaleStateError: If the creator is gone; the flight is torn down
        """
        metadata = self._require_metadata(connection, "join-flight")
        context = ErrorContext(client_id=metadata.id, remote_ip=metadata.remote_ip, message_type="join-flight")

        if not isinstance(code, str) or len(code) != self.code_length:
            raise ValidationError(
                "Invalid flight code format",
                context=context,
                field="flightCode",
                value=code,
                user_friendly=ErrorMessages.INVALID_FLIGHT_CODE,
            )
        context.flight_code = code

        if metadata.flight_code is not None:
            raise ConflictError(
                "Client attempted to join a flight while already in one",
                context=context,
                details={"current_flight": metadata.flight_code},
                user_friendly=ErrorMessages.ALREADY_IN_FLIGHT,
            )

        flight = self._flights.get(code)
        if flight is None:
            raise NotFoundError(
                "Flight does not exist",
                context=context,
                resource_type="flight",
                resource_id=code,
                user_friendly=ErrorMessages.FLIGHT_NOT_FOUND,
            )

        if flight.is_full:
            raise CapacityError(
                "Flight is full",
                context=context,
                details={"members": len(flight.members)},
                user_friendly=ErrorMessages.FLIGHT_FULL,
            )

        creator = flight.creator
        if creator is None or not self.is_live(creator):
            self._discard_stale_flight(flight)
            raise StaleStateError(
                "Flight creator is no longer connected",
                context=context,
                resource_type="flight",
                resource_id=code,
                user_friendly=ErrorMessages.FLIGHT_CREATOR_DISCONNECTED,
            )

        creator_metadata = self.registry.get(creator)
        flight.members.append(connection)
        metadata.flight_code = code
        self.stats.total_flights_joined += 1

        connection_type = classify_connection_type(creator_metadata.remote_ip, metadata.remote_ip).value
        logger.info(
            "Peer joined flight",
            flight_code=code,
            creator_id=creator_metadata.id,
            joiner_id=metadata.id,
            connection_type=connection_type,
        )

        creator.send_json(envelope.peer_joined(code, connection_type, metadata.public_identity()))
        connection.send_json(envelope.peer_joined(code, connection_type, creator_metadata.public_identity()))
        self.on_presence_change()
        return flight

    def _discard_stale_flight(self, flight: Flight) -> None:
        self._flights.pop(flight.code, None)
        for member in flight.members:
            member_metadata = self.registry.get(member)
            if member_metadata is not None and member_metadata.flight_code == flight.code:
                member_metadata.flight_code = None
        logger.warning("Removed flight with disconnected creator", flight_code=flight.code)

    def leave(self, connection: Any, broadcast: bool = True) -> Flight | None:
        """
        Detach the connection from its flight, if any.

        Remaining members receive ``peer-left``; an emptied flight is
        destroyed. Calling this for a connection with no flight does nothing.
        With ``broadcast=False`` the presence recompute is left to the caller.

        Returns:
            The flight that was left, or None
        """
        metadata = self.registry.get(connection)
        if metadata is None or metadata.flight_code is None:
            return None

        code = metadata.flight_code
        metadata.flight_code = None
        flight = self._flights.get(code)
        if flight is None:
            return None

        if connection in flight.members:
            flight.members.remove(connection)

        for member in flight.members:
            if member.is_open:
                member.send_json(envelope.peer_left())

        if flight.is_empty:
            del self._flights[code]
            logger.info("Flight closed", flight_code=code)
        else:
            logger.info("Member left flight", flight_code=code, client_id=metadata.id, remaining=len(flight.members))

        if broadcast:
            self.on_presence_change()
        return flight
