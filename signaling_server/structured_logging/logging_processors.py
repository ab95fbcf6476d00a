"""
Logging processors for structlog event processing.

This module provides processors for redacting sensitive fields and keeping
relayed payload previews short enough to be useful in the logs.
"""

import re
from typing import Any

# Payload previews longer than this are cut before rendering
MAX_PREVIEW_LENGTH = 100

_SENSITIVE_PATTERNS = [
    r"\bpassword\b",
    r"\btoken\b",
    r"\bsecret\b",
    r"_key\b",
    r"^key$",
    r"\bcredential\b",
    r"\bauthorization\b",
    r"\bcookie\b",
]

# Relayed WebRTC payloads are opaque and may carry ICE credentials
_PAYLOAD_FIELDS = {"sdp", "candidate", "payload"}


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """

    def sanitize_dict(d: dict[str, Any]) -> dict[str, Any]:
        sanitized: dict[str, Any] = {}
        for key, value in d.items():
            key_lower = str(key).lower()
            if isinstance(value, dict):
                sanitized[key] = sanitize_dict(value)
            elif key_lower in _PAYLOAD_FIELDS:
                sanitized[key] = "[REDACTED]"
            elif any(re.search(pattern, key_lower) for pattern in _SENSITIVE_PATTERNS):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = value
        return sanitized

    return sanitize_dict(event_dict)


def truncate_message_preview(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Cut any ``message_preview`` field down to MAX_PREVIEW_LENGTH characters."""
    preview = event_dict.get("message_preview")
    if isinstance(preview, bytes):
        preview = preview.decode("utf-8", errors="replace")
    if isinstance(preview, str) and len(preview) > MAX_PREVIEW_LENGTH:
        event_dict["message_preview"] = preview[:MAX_PREVIEW_LENGTH]
    elif preview is not None:
        event_dict["message_preview"] = preview
    return event_dict
