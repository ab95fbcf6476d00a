"""
Inbound WebSocket message models.

Every client frame is a JSON object tagged by ``type``. The frames are parsed
into a discriminated union so that routing works on a concrete model rather
than a raw dict. Field values that carry user input (names, codes, ids) are
typed ``Any`` here; their semantic checks live in the flight and registry
operations, which own the client-facing error messages.
"""

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class MessageType(StrEnum):
    """Inbound message types."""

    REGISTER_DETAILS = "register-details"
    CREATE_FLIGHT = "create-flight"
    JOIN_FLIGHT = "join-flight"
    INVITE_TO_FLIGHT = "invite-to-flight"
    SIGNAL = "signal"
    PING = "ping"
    PONG = "pong"


class BaseClientMessage(BaseModel):
    """Base class for all inbound frames."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class RegisterDetailsMessage(BaseClientMessage):
    type: Literal[MessageType.REGISTER_DETAILS] = MessageType.REGISTER_DETAILS
    name: Any = None


class CreateFlightMessage(BaseClientMessage):
    type: Literal[MessageType.CREATE_FLIGHT] = MessageType.CREATE_FLIGHT


class JoinFlightMessage(BaseClientMessage):
    type: Literal[MessageType.JOIN_FLIGHT] = MessageType.JOIN_FLIGHT
    flight_code: Any = Field(default=None, alias="flightCode")


class InviteToFlightMessage(BaseClientMessage):
    type: Literal[MessageType.INVITE_TO_FLIGHT] = MessageType.INVITE_TO_FLIGHT
    invitee_id: Any = Field(default=None, alias="inviteeId")
    flight_code: Any = Field(default=None, alias="flightCode")


class SignalMessage(BaseClientMessage):
    """WebRTC negotiation payload; ``data`` is relayed untouched."""

    type: Literal[MessageType.SIGNAL] = MessageType.SIGNAL
    data: Any = None


class PingMessage(BaseClientMessage):
    type: Literal[MessageType.PING] = MessageType.PING


class PongMessage(BaseClientMessage):
    type: Literal[MessageType.PONG] = MessageType.PONG


ClientMessage = Annotated[
    RegisterDetailsMessage
    | CreateFlightMessage
    | JoinFlightMessage
    | InviteToFlightMessage
    | SignalMessage
    | PingMessage
    | PongMessage,
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)
