"""
Handler setup for the enhanced logging system.

Console output always goes to stderr. When file logging is enabled, a
rotating ``signaling.log`` receives everything at the configured level and an
``errors.log`` aggregator receives ERROR and above.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from signaling_server.structured_logging.logging_utilities import ensure_log_directory, resolve_log_base


class SafeRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that recreates its directory before opening the file."""

    def _open(self):  # noqa: N802
        if self.baseFilename:
            ensure_log_directory(Path(self.baseFilename))
        return super()._open()


def convert_max_size_to_bytes(max_size: str | int) -> int:
    """Convert a size such as ``"100MB"`` or ``"512KB"`` to bytes."""
    if isinstance(max_size, int):
        return max_size
    value = max_size.strip().upper()
    if value.endswith("MB"):
        return int(value[:-2]) * 1024 * 1024
    if value.endswith("KB"):
        return int(value[:-2]) * 1024
    if value.endswith("B"):
        return int(value[:-1])
    return int(value)


def _create_file_handler(log_path: Path, level: int, max_bytes: int, backup_count: int) -> logging.Handler:
    ensure_log_directory(log_path)
    handler = SafeRotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setLevel(level)
    # structlog already renders timestamp, logger name and level into the message
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_enhanced_file_logging(environment: str, log_config: dict[str, Any], log_level: str) -> list[logging.Handler]:
    """
    Attach console and (optionally) rotating file handlers to the root logger.

    Existing root handlers are removed first so repeated calls do not
    duplicate output.

    Args:
        environment: Environment name, used as the log sub-directory
        log_config: Logging configuration dictionary
        log_level: Minimum level for console and main file handler

    Returns:
        The handlers that were installed
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
        existing.close()
    root_logger.setLevel(level)

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    handlers.append(console_handler)

    if log_config.get("file_logging", False):
        env_log_dir = resolve_log_base(log_config.get("log_base", "logs")) / environment
        rotation = log_config.get("rotation", {})
        max_bytes = convert_max_size_to_bytes(rotation.get("max_size", "100MB"))
        backup_count = int(rotation.get("backup_count", 5))

        handlers.append(_create_file_handler(env_log_dir / "signaling.log", level, max_bytes, backup_count))
        handlers.append(_create_file_handler(env_log_dir / "errors.log", logging.ERROR, max_bytes, backup_count))

    for handler in handlers:
        root_logger.addHandler(handler)

    return handlers
