"""
Tests for the Pydantic configuration models.
"""

import pytest
from pydantic import ValidationError

from ..config import get_config
from ..config.models import DEFAULT_ALLOWED_ORIGINS, LoggingConfig, OriginConfig, ServerConfig, SignalingConfig


class TestServerConfig:
    """Test cases for ServerConfig."""

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("SERVER_PORT", "9000")

        assert ServerConfig().port == 9000

    @pytest.mark.parametrize("port", ["0", "70000"])
    def test_invalid_port_rejected(self, monkeypatch, port):
        monkeypatch.setenv("SERVER_PORT", port)

        with pytest.raises(ValidationError):
            ServerConfig()

    def test_node_env_alias(self, monkeypatch):
        """Test that NODE_ENV selects the environment when SERVER_ENVIRONMENT is absent."""
        monkeypatch.delenv("SERVER_ENVIRONMENT", raising=False)
        monkeypatch.setenv("NODE_ENV", "Production")

        assert ServerConfig().environment == "production"

    def test_unknown_environment_rejected(self, monkeypatch):
        monkeypatch.setenv("SERVER_ENVIRONMENT", "staging")

        with pytest.raises(ValidationError):
            ServerConfig()


class TestLoggingConfig:
    """Test cases for LoggingConfig."""

    def test_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOGGING_LEVEL", "debug")

        assert LoggingConfig().level == "DEBUG"

    def test_invalid_format_rejected(self, monkeypatch):
        monkeypatch.setenv("LOGGING_FORMAT", "xml")

        with pytest.raises(ValidationError):
            LoggingConfig()


class TestSignalingConfig:
    """Test cases for SignalingConfig."""

    def test_defaults(self, monkeypatch):
        for name in ("MAX_MESSAGE_BYTES", "LIVENESS_INTERVAL_SECONDS", "FLIGHT_CODE_LENGTH", "MAX_NAME_LENGTH", "MAX_PENDING_FRAMES"):
            monkeypatch.delenv(f"SIGNALING_{name}", raising=False)

        config = SignalingConfig()

        assert config.max_message_bytes == 1024 * 1024
        assert config.liveness_interval_seconds == 30.0
        assert config.flight_code_length == 6
        assert config.max_name_length == 50
        assert config.max_pending_frames == 256

    def test_zero_interval_rejected(self, monkeypatch):
        monkeypatch.setenv("SIGNALING_LIVENESS_INTERVAL_SECONDS", "0")

        with pytest.raises(ValidationError):
            SignalingConfig()

    def test_zero_pending_frames_rejected(self, monkeypatch):
        monkeypatch.setenv("SIGNALING_MAX_PENDING_FRAMES", "0")

        with pytest.raises(ValidationError):
            SignalingConfig()


class TestOriginConfig:
    """Test cases for OriginConfig."""

    def test_default_allow_list(self, monkeypatch):
        monkeypatch.delenv("ORIGIN_ALLOWED_ORIGINS", raising=False)
        monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)

        assert OriginConfig().allowed_origins == DEFAULT_ALLOWED_ORIGINS

    def test_csv_allow_list(self, monkeypatch):
        monkeypatch.setenv("ORIGIN_ALLOWED_ORIGINS", "https://a.example, https://b.example")

        assert OriginConfig().allowed_origins == ["https://a.example", "https://b.example"]

    def test_json_allow_list(self, monkeypatch):
        monkeypatch.setenv("ORIGIN_ALLOWED_ORIGINS", '["https://a.example"]')

        assert OriginConfig().allowed_origins == ["https://a.example"]

    def test_empty_allow_list_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("ORIGIN_ALLOWED_ORIGINS", "")

        assert OriginConfig().allowed_origins == DEFAULT_ALLOWED_ORIGINS


class TestAppConfig:
    """Test cases for the composed AppConfig."""

    def test_strict_mode_follows_environment(self, monkeypatch):
        monkeypatch.delenv("ORIGIN_STRICT", raising=False)
        monkeypatch.setenv("SERVER_ENVIRONMENT", "development")
        assert get_config().origin_strict_mode is False

        monkeypatch.setenv("SERVER_ENVIRONMENT", "production")
        assert get_config().origin_strict_mode is True

    def test_strict_override(self, monkeypatch):
        monkeypatch.setenv("SERVER_ENVIRONMENT", "development")
        monkeypatch.setenv("ORIGIN_STRICT", "true")

        assert get_config().origin_strict_mode is True

    def test_legacy_dict(self):
        """Test the dict handed to the logging setup."""
        legacy = get_config().to_legacy_dict()

        assert legacy["environment"] == "test"
        assert legacy["port"] == 54731
        assert legacy["logging"]["level"] == "WARNING"
        assert set(legacy["logging"]["rotation"]) == {"max_size", "backup_count"}
        assert legacy["signaling"]["max_message_bytes"] == 1024 * 1024
