"""
Tests for WebSocket origin checks.
"""

import pytest

from ..config import get_config
from ..config.models import DEFAULT_ALLOWED_ORIGINS
from ..realtime.origin_gatekeeper import OriginGatekeeper


@pytest.fixture
def strict_gatekeeper():
    return OriginGatekeeper(DEFAULT_ALLOWED_ORIGINS, strict=True)


@pytest.fixture
def permissive_gatekeeper():
    return OriginGatekeeper(DEFAULT_ALLOWED_ORIGINS, strict=False)


class TestStrictMode:
    """Test cases for strict (production) mode."""

    @pytest.mark.parametrize("origin", DEFAULT_ALLOWED_ORIGINS)
    def test_allow_listed_origins_accepted(self, strict_gatekeeper, origin):
        """Test that every allow-listed origin passes."""
        assert strict_gatekeeper.is_allowed(origin) is True

    @pytest.mark.parametrize(
        "origin",
        [None, "", "http://localhost:3000", "http://127.0.0.1:8080", "https://evil.example", "https://dropsilk.xyz.evil"],
    )
    def test_everything_else_rejected(self, strict_gatekeeper, origin):
        """Test that strict mode rejects local, missing and foreign origins."""
        assert strict_gatekeeper.is_allowed(origin) is False


class TestPermissiveMode:
    """Test cases for permissive (development) mode."""

    @pytest.mark.parametrize(
        "origin",
        [
            None,
            "",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://localhost",
            "https://localhost:5173",
            "http://[::1]:3000",
            "http://127.0.0.2:8080",
            "https://dropsilk.xyz",
        ],
    )
    def test_local_and_missing_origins_accepted(self, permissive_gatekeeper, origin):
        """Test that development origins and absent headers pass."""
        assert permissive_gatekeeper.is_allowed(origin) is True

    @pytest.mark.parametrize(
        "origin",
        [
            "https://evil.example",
            "http://localhost.evil",
            "http://evil.example/localhost",
            "ws://localhost:5173",
            "http://localhost:notaport",
            "http://10.0.0.5:3000",
        ],
    )
    def test_foreign_origins_rejected(self, permissive_gatekeeper, origin):
        """Test that permissive mode still rejects unknown origins."""
        assert permissive_gatekeeper.is_allowed(origin) is False


class TestFromConfig:
    """Test cases for building the gatekeeper from configuration."""

    def test_production_defaults_to_strict(self, monkeypatch):
        """Test that production enables strict mode."""
        monkeypatch.setenv("SERVER_ENVIRONMENT", "production")

        gatekeeper = OriginGatekeeper.from_config(get_config())

        assert gatekeeper.strict is True

    def test_explicit_override_wins(self, monkeypatch):
        """Test that ORIGIN_STRICT forces the mode."""
        monkeypatch.setenv("SERVER_ENVIRONMENT", "production")
        monkeypatch.setenv("ORIGIN_STRICT", "false")

        gatekeeper = OriginGatekeeper.from_config(get_config())

        assert gatekeeper.strict is False

    def test_custom_allow_list(self, monkeypatch):
        """Test that ORIGIN_ALLOWED_ORIGINS replaces the default list."""
        monkeypatch.setenv("ORIGIN_ALLOWED_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("ORIGIN_STRICT", "true")

        gatekeeper = OriginGatekeeper.from_config(get_config())

        assert gatekeeper.is_allowed("https://b.example") is True
        assert gatekeeper.is_allowed("https://dropsilk.xyz") is False
