"""
Helpers for log file locations and environment detection.
"""

import os
import sys
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

VALID_ENVIRONMENTS = ("development", "production", "test")


def ensure_log_directory(log_path: Path) -> None:
    """
    Create the directory that will hold ``log_path``.

    A failure is logged and otherwise ignored; console logging keeps working.
    """
    directory = log_path.parent
    if directory.is_dir():
        return
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(
            "Failed to create log directory",
            directory=str(directory),
            error=str(e),
            error_type=type(e).__name__,
        )


def resolve_log_base(log_base: str) -> Path:
    """
    Turn a relative ``log_base`` into a path under the project root.

    The project root is the nearest directory at or above the working
    directory that holds a pyproject.toml; the working directory otherwise.
    """
    base = Path(log_base)
    if base.is_absolute():
        return base

    cwd = Path.cwd()
    root = next((candidate for candidate in (cwd, *cwd.parents) if (candidate / "pyproject.toml").exists()), cwd)
    return root / base


def detect_environment() -> str:
    """Return "test" under pytest, else SERVER_ENVIRONMENT when valid, else "development"."""
    if "pytest" in sys.modules:
        return "test"

    environment = os.getenv("SERVER_ENVIRONMENT", "").lower()
    if environment in VALID_ENVIRONMENTS:
        return environment
    return "development"
