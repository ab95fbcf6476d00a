"""
Centralized error types and client-facing messages.

Every error reported to a client uses the same frame,
``{"type": "error", "message": <text>}``; the ErrorType value is only used
for logging.
"""

from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Standardized error types for consistent categorization."""

    # Validation
    VALIDATION_ERROR = "validation_error"
    INVALID_FORMAT = "invalid_format"
    MESSAGE_TOO_LARGE = "message_too_large"
    UNKNOWN_MESSAGE_TYPE = "unknown_message_type"

    # Flight state
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    STALE_STATE = "stale_state"

    # System
    INTERNAL_ERROR = "internal_error"
    REGISTRATION_FAILED = "registration_failed"


class ErrorMessages:
    """Client-facing error messages."""

    INVALID_NAME = "Invalid name"
    INVALID_FLIGHT_CODE = "Invalid flight code"
    ALREADY_IN_FLIGHT = "Already in a flight"
    FLIGHT_NOT_FOUND = "Flight not found or full"
    FLIGHT_FULL = "Flight not found or full"
    FLIGHT_CREATOR_DISCONNECTED = "Flight creator disconnected"
    FLIGHT_CODE_UNAVAILABLE = "Could not allocate a flight code"
    INVALID_FORMAT = "Invalid message format"
    MESSAGE_TOO_LARGE = "Message too large"
    UNKNOWN_MESSAGE_TYPE = "Unknown message type"
    INTERNAL_ERROR = "Server error processing your request"
    SERVER_SHUTDOWN = "Server is shutting down for maintenance."


# WebSocket close codes
CLOSE_GOING_AWAY = 1001
CLOSE_POLICY_VIOLATION = 1008
CLOSE_INTERNAL_ERROR = 1011


def create_websocket_error_response(message: str) -> dict[str, Any]:
    """
    Create the WebSocket error frame sent to a client.

    Args:
        message: Client-facing error text

    Returns:
        WebSocket error frame dictionary
    """
    return {"type": "error", "message": message}
