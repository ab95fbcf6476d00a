"""
Outbound frame builders for the signaling protocol.

Every frame is a flat JSON object ``{"type": <event>, ...fields}``. Clients
key off ``type`` alone, so no timestamp or sequence number is attached.
"""

from typing import Any

from ..error_types import ErrorMessages, create_websocket_error_response


class OutboundType:
    """Outbound event names."""

    REGISTERED = "registered"
    USERS_ON_NETWORK_UPDATE = "users-on-network-update"
    FLIGHT_CREATED = "flight-created"
    FLIGHT_INVITATION = "flight-invitation"
    PEER_JOINED = "peer-joined"
    PEER_LEFT = "peer-left"
    SIGNAL = "signal"
    ERROR = "error"
    SERVER_SHUTDOWN = "server-shutdown"
    PING = "ping"
    PONG = "pong"


def build_event(event_type: str, **fields: Any) -> dict[str, Any]:
    """
    Create an outbound frame.

    Args:
        event_type: Value of the ``type`` field
        **fields: Remaining top-level fields, already in wire (camelCase) form
    """
    event: dict[str, Any] = {"type": event_type}
    event.update(fields)
    return event


def registered(client_id: str) -> dict[str, Any]:
    return build_event(OutboundType.REGISTERED, id=client_id)


def users_on_network_update(users: list[dict[str, str]]) -> dict[str, Any]:
    return build_event(OutboundType.USERS_ON_NETWORK_UPDATE, users=users)


def flight_created(flight_code: str) -> dict[str, Any]:
    return build_event(OutboundType.FLIGHT_CREATED, flightCode=flight_code)


def flight_invitation(flight_code: str, from_name: str) -> dict[str, Any]:
    return build_event(OutboundType.FLIGHT_INVITATION, flightCode=flight_code, fromName=from_name)


def peer_joined(flight_code: str, connection_type: str, peer: dict[str, str]) -> dict[str, Any]:
    return build_event(
        OutboundType.PEER_JOINED,
        flightCode=flight_code,
        connectionType=connection_type,
        peer=peer,
    )


def peer_left() -> dict[str, Any]:
    return build_event(OutboundType.PEER_LEFT)


def signal(data: Any) -> dict[str, Any]:
    """Wrap a relayed payload; ``data`` is passed through as received."""
    return build_event(OutboundType.SIGNAL, data=data)


def error(message: str) -> dict[str, Any]:
    return create_websocket_error_response(message)


def server_shutdown(message: str = ErrorMessages.SERVER_SHUTDOWN) -> dict[str, Any]:
    return build_event(OutboundType.SERVER_SHUTDOWN, message=message)


def ping() -> dict[str, Any]:
    return build_event(OutboundType.PING)


def pong() -> dict[str, Any]:
    return build_event(OutboundType.PONG)
