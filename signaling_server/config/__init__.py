"""
Configuration module for the signaling server.

Type-safe, validated configuration using Pydantic BaseSettings.

Usage:
    from signaling_server.config import get_config

    config = get_config()
    logger.info("Configuration loaded", host=config.server.host, port=config.server.port)
"""

import sys
import threading
from functools import lru_cache
from os import getenv

from .models import AppConfig

__all__ = ["get_config", "reset_config", "AppConfig"]

_config_lock = threading.Lock()


def _is_test_mode() -> bool:
    """Detect pytest execution (module loaded or pytest environment variable set)."""
    if "pytest" in sys.modules:
        return True
    return bool(getenv("PYTEST_CURRENT_TEST"))


@lru_cache(maxsize=1)
def _get_config_cached() -> AppConfig:
    """Production config loader with caching."""
    with _config_lock:
        return AppConfig()


def get_config() -> AppConfig:
    """
    Get application configuration (singleton in production, fresh in tests).

    Configuration is loaded from environment variables and .env file. In
    test mode a fresh instance is built on every call so that tests can
    adjust the environment with monkeypatch.

    Returns:
        AppConfig: The application configuration

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    if _is_test_mode():
        return AppConfig()
    return _get_config_cached()


def reset_config() -> None:
    """
    Reset the configuration cache.

    Primarily used by tests to force a configuration reload.
    """
    with _config_lock:
        _get_config_cached.cache_clear()
