"""
WebSocket message validation for the signaling server.

Inbound frames are checked in order: size limit, JSON decoding, then the
tagged-union schema. Each failure raises MessageValidationError carrying the
client-facing text for the error frame; the connection stays open.
"""

import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..error_types import ErrorMessages
from ..exceptions import ErrorContext, MessageValidationError
from ..structured_logging.enhanced_logging_config import get_logger
from .message_models import ClientMessage, client_message_adapter

logger = get_logger(__name__)

DEFAULT_MAX_MESSAGE_BYTES = 1024 * 1024

_UNKNOWN_TYPE_ERRORS = frozenset({"union_tag_invalid", "union_tag_not_found"})


class WebSocketMessageValidator:
    """Parses raw frames into ClientMessage models."""

    def __init__(self, max_message_bytes: int | None = None):
        self.max_message_bytes = max_message_bytes or DEFAULT_MAX_MESSAGE_BYTES

    def validate_size(self, raw: str | bytes, context: ErrorContext | None = None) -> bytes:
        """
        Enforce the frame size limit.

        Returns:
            The frame as UTF-8 bytes

        Raises:
            MessageValidationError: If the frame exceeds max_message_bytes
        """
        data = raw.encode("utf-8") if isinstance(raw, str) else raw
        size = len(data)
        if size > self.max_message_bytes:
            raise MessageValidationError(
                f"Message size {size} bytes exceeds maximum {self.max_message_bytes} bytes",
                error_type="size_limit_exceeded",
                context=context,
                user_friendly=ErrorMessages.MESSAGE_TOO_LARGE,
            )
        return data

    def decode_json(self, data: bytes, context: ErrorContext | None = None) -> dict[str, Any]:
        try:
            message = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MessageValidationError(
                f"Invalid JSON: {e}",
                error_type="json_parse_error",
                context=context,
                user_friendly=ErrorMessages.INVALID_FORMAT,
            ) from e

        if not isinstance(message, dict):
            raise MessageValidationError(
                "Message must be a JSON object",
                error_type="invalid_type",
                context=context,
                user_friendly=ErrorMessages.INVALID_FORMAT,
            )
        return message

    def validate_schema(self, message: dict[str, Any], context: ErrorContext | None = None) -> ClientMessage:
        """
        Validate a decoded frame against the inbound tagged union.

        A missing or unrecognized ``type`` is reported as an unknown message
        type; any other mismatch as an invalid format.
        """
        message_type = message.get("type")
        if not isinstance(message_type, str):
            raise MessageValidationError(
                "Message has no string 'type' field",
                error_type="unknown_message_type",
                context=context,
                user_friendly=ErrorMessages.UNKNOWN_MESSAGE_TYPE,
            )

        try:
            return client_message_adapter.validate_python(message)
        except PydanticValidationError as e:
            error_kinds = {error["type"] for error in e.errors()}
            if error_kinds & _UNKNOWN_TYPE_ERRORS:
                raise MessageValidationError(
                    f"Unknown message type: {message_type[:100]}",
                    error_type="unknown_message_type",
                    context=context,
                    user_friendly=ErrorMessages.UNKNOWN_MESSAGE_TYPE,
                ) from e
            raise MessageValidationError(
                f"Schema validation failed: {e}",
                error_type="schema_validation_failed",
                context=context,
                user_friendly=ErrorMessages.INVALID_FORMAT,
            ) from e

    def parse_and_validate(self, raw: str | bytes, context: ErrorContext | None = None) -> ClientMessage:
        """
        Parse and validate a complete WebSocket frame.

        This is the main entry point for message validation.

        Args:
            raw: Frame payload as received (text or binary)
            context: Error context of the sending connection, for logging

        Returns:
            ClientMessage: The validated message model

        Raises:
            MessageValidationError: If validation fails at any stage
        """
        data = self.validate_size(raw, context)
        message = self.decode_json(data, context)
        parsed = self.validate_schema(message, context)
        logger.debug("Message validation successful", message_type=str(parsed.type), size=len(data))
        return parsed
