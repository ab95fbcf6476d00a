"""
Signal relay and flight invitations.

Signal payloads are opaque: they are forwarded exactly as received and never
inspected. Both operations are best effort and never report an error to the
sender.
"""

from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger
from . import envelope
from .connection_registry import ConnectionRegistry
from .flight_manager import FlightManager

logger = get_logger(__name__)


class SignalRelay:
    def __init__(self, registry: ConnectionRegistry, flight_manager: FlightManager):
        self.registry = registry
        self.flight_manager = flight_manager

    def relay_signal(self, connection: Any, payload: Any) -> int:
        """
        Forward a payload to every other open member of the sender's flight.

        Returns:
            Number of recipients the payload was queued for
        """
        metadata = self.registry.get(connection)
        if metadata is None or metadata.flight_code is None:
            logger.warning("Signal from client outside any flight", client_id=metadata.id if metadata else None)
            return 0

        flight = self.flight_manager.get_flight(metadata.flight_code)
        if flight is None:
            logger.warning("Signal for missing flight", client_id=metadata.id, flight_code=metadata.flight_code)
            return 0

        delivered = 0
        frame = envelope.signal(payload)
        for member in flight.other_members(connection):
            if member.is_open and member.send_json(frame):
                delivered += 1

        logger.debug("Signal relayed", client_id=metadata.id, flight_code=flight.code, recipients=delivered)
        return delivered

    def invite(self, connection: Any, invitee_id: Any, flight_code: Any) -> bool:
        """
        Deliver a ``flight-invitation`` to the client with ``invitee_id``.

        The lookup covers every live connection, not only the sender's
        network. A missing or closed invitee is logged and otherwise ignored.
        """
        metadata = self.registry.get(connection)
        inviter_id = metadata.id if metadata else None
        found = self.registry.find_by_id(invitee_id)
        if found is None:
            logger.warning("Invitee not found", inviter_id=inviter_id, invitee_id=str(invitee_id)[:100])
            return False

        invitee, invitee_metadata = found
        if not invitee.is_open:
            logger.warning("Invitee connection not open", inviter_id=inviter_id, invitee_id=invitee_metadata.id)
            return False

        from_name = metadata.name if metadata else ""
        invitee.send_json(envelope.flight_invitation(flight_code, from_name))
        logger.info(
            "Flight invitation sent",
            inviter_id=inviter_id,
            invitee_id=invitee_metadata.id,
            flight_code=flight_code,
        )
        return True
