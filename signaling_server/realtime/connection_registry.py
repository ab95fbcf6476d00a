"""
Connection registry: the authoritative map from live connection to client
metadata.

Connections are keyed by identity. Mutations that change what other clients
can see (a new client, a new name) call the presence callback supplied by the
coordinator.
"""

import uuid
from collections.abc import Callable, Iterator
from typing import Any

from ..error_types import ErrorMessages
from ..exceptions import ErrorContext, ValidationError
from ..structured_logging.enhanced_logging_config import get_logger
from . import envelope
from .connection_models import ClientMetadata, ConnectionStats

logger = get_logger(__name__)

DEFAULT_MAX_NAME_LENGTH = 50


def _noop() -> None:
    return None


class ConnectionRegistry:
    """Tracks every live connection and its ClientMetadata."""

    def __init__(
        self,
        stats: ConnectionStats | None = None,
        on_presence_change: Callable[[], None] | None = None,
        max_name_length: int = DEFAULT_MAX_NAME_LENGTH,
    ):
        self.stats = stats or ConnectionStats()
        self.on_presence_change = on_presence_change or _noop
        self.max_name_length = max_name_length
        self._clients: dict[Any, ClientMetadata] = {}

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, connection: object) -> bool:
        return connection in self._clients

    def get(self, connection: Any) -> ClientMetadata | None:
        return self._clients.get(connection)

    def connections(self) -> list[Any]:
        """Snapshot of registered connections, safe to iterate while mutating."""
        return list(self._clients)

    def items(self) -> Iterator[tuple[Any, ClientMetadata]]:
        return iter(list(self._clients.items()))

    def find_by_id(self, client_id: Any) -> tuple[Any, ClientMetadata] | None:
        """Look up a live connection by its public client id."""
        if not isinstance(client_id, str):
            return None
        for connection, metadata in self._clients.items():
            if metadata.id == client_id:
                return connection, metadata
        return None

    def register(self, connection: Any, remote_ip: str, user_agent: str = "unknown") -> ClientMetadata:
        """
        Create the client record for a newly accepted connection.

        Sends ``registered{id}`` to the client and pushes a presence update to
        everyone.
        """
        metadata = ClientMetadata(id=str(uuid.uuid4()), remote_ip=remote_ip, user_agent=user_agent)
        self._clients[connection] = metadata
        self.stats.total_connections += 1

        logger.info(
            "Client connected",
            client_id=metadata.id,
            remote_ip=remote_ip,
            user_agent=user_agent,
            total_clients=len(self._clients),
        )

        connection.send_json(envelope.registered(metadata.id))
        self.on_presence_change()
        return metadata

    def set_name(self, connection: Any, name: Any) -> ClientMetadata:
        """
        Store the client's display name.

        Raises:
            ValidationError: If the name is missing, not a string, too long,
                or blank after trimming
        """
        metadata = self._clients.get(connection)
        if metadata is None:
            raise ValidationError(
                "Name update from unregistered connection",
                field="name",
                user_friendly=ErrorMessages.INVALID_NAME,
            )

        context = ErrorContext(client_id=metadata.id, remote_ip=metadata.remote_ip, message_type="register-details")
        if not isinstance(name, str) or len(name) > self.max_name_length or not name.strip():
            raise ValidationError(
                "Invalid name provided",
                context=context,
                field="name",
                value=name,
                user_friendly=ErrorMessages.INVALID_NAME,
            )

        metadata.name = name.strip()
        logger.info("Client registered details", client_id=metadata.id, name=metadata.name)
        self.on_presence_change()
        return metadata

    def unregister(self, connection: Any) -> ClientMetadata | None:
        """Remove the client record; flight membership must already be detached."""
        metadata = self._clients.pop(connection, None)
        if metadata is None:
            return None
        self.stats.total_disconnections += 1
        logger.info(
            "Client disconnected",
            client_id=metadata.id,
            name=metadata.name,
            remaining_clients=len(self._clients),
        )
        return metadata
