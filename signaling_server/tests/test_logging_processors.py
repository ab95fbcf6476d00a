"""
Tests for the structlog processors.
"""

from ..structured_logging.logging_file_setup import convert_max_size_to_bytes
from ..structured_logging.logging_processors import (
    MAX_PREVIEW_LENGTH,
    sanitize_sensitive_data,
    truncate_message_preview,
)


class TestSanitizeSensitiveData:
    """Test cases for sanitize_sensitive_data."""

    def test_credentials_redacted(self):
        event = {"event": "login", "password": "hunter2", "api_key": "abc", "client_id": "123"}

        result = sanitize_sensitive_data(None, "info", event)

        assert result["password"] == "[REDACTED]"
        assert result["api_key"] == "[REDACTED]"
        assert result["client_id"] == "123"

    def test_webrtc_payload_fields_redacted_when_nested(self):
        event = {"event": "relay", "data": {"sdp": "v=0", "candidate": "candidate:1", "kind": "offer"}}

        result = sanitize_sensitive_data(None, "debug", event)

        assert result["data"] == {"sdp": "[REDACTED]", "candidate": "[REDACTED]", "kind": "offer"}


class TestTruncateMessagePreview:
    """Test cases for truncate_message_preview."""

    def test_long_preview_cut(self):
        result = truncate_message_preview(None, "debug", {"message_preview": "x" * 500})

        assert len(result["message_preview"]) == MAX_PREVIEW_LENGTH

    def test_bytes_preview_decoded(self):
        result = truncate_message_preview(None, "debug", {"message_preview": b"\xff{}"})

        assert result["message_preview"] == "�{}"

    def test_event_without_preview_untouched(self):
        event = {"event": "hello"}

        assert truncate_message_preview(None, "info", event) == {"event": "hello"}


def test_convert_max_size_to_bytes():
    assert convert_max_size_to_bytes("100MB") == 100 * 1024 * 1024
    assert convert_max_size_to_bytes("512KB") == 512 * 1024
    assert convert_max_size_to_bytes(2048) == 2048
