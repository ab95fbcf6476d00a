"""
Exception hierarchy for the signaling server.

Every error raised by a flight or registry operation derives from
SignalingError. Handlers catch SignalingError at the message boundary and
turn it into an ``error`` frame for the originating client; none of these
errors closes the connection.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Contextual information attached to a signaling error for logging."""

    client_id: str | None = None
    flight_code: str | None = None
    message_type: str | None = None
    remote_ip: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "client_id": self.client_id,
            "flight_code": self.flight_code,
            "message_type": self.message_type,
            "remote_ip": self.remote_ip,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class SignalingError(Exception):
    """
    Base exception for all signaling errors.

    ``message`` is technical and goes to the log; ``user_friendly`` is what
    the client sees in the error frame.
    """

    log_level = "warning"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now(UTC)

        self._log_error()

    def _log_error(self) -> None:
        log_method = getattr(logger, self.log_level)
        log_method(
            "Signaling error occurred",
            error_type=self.__class__.__name__,
            error_message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses and tests."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ValidationError(SignalingError):
    """Malformed input (bad name, bad flight code)."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        field: str | None = None,
        value: Any | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, context, **kwargs)
        self.field = field
        self.value = value
        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = str(value)[:100]


class ConflictError(SignalingError):
    """Operation invalid for the client's current flight membership."""


class NotFoundError(SignalingError):
    """Referenced flight or user is absent."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, context, **kwargs)
        self.resource_type = resource_type
        self.resource_id = resource_id
        if resource_type:
            self.details["resource_type"] = resource_type
        if resource_id:
            self.details["resource_id"] = resource_id


class CapacityError(SignalingError):
    """Flight already holds two members."""


class StaleStateError(NotFoundError):
    """Referenced peer is no longer live; the stale state has been torn down."""


class MessageValidationError(SignalingError):
    """Inbound frame rejected at the boundary (size, JSON, schema)."""

    def __init__(self, message: str, error_type: str = "validation_error", **kwargs: Any):
        self.error_type = error_type
        super().__init__(message, details={"error_type": error_type}, **kwargs)
