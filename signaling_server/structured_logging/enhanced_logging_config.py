"""
Enhanced structlog-based logging configuration for the signaling server.

This is the main entry point for the logging system. All application modules
obtain their logger through get_logger() and log with keyword fields:

    from ..structured_logging.enhanced_logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Flight created", flight_code=code, creator_id=client_id)

Per-connection fields (client id, remote address) are bound with
bind_connection_context() and merged into every entry emitted while handling
that connection.
"""

import json
import logging
from typing import Any, cast

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from signaling_server.structured_logging.logging_file_setup import setup_enhanced_file_logging
from signaling_server.structured_logging.logging_processors import sanitize_sensitive_data, truncate_message_preview
from signaling_server.structured_logging.logging_utilities import detect_environment

logger = structlog.get_logger(__name__)


class _LoggingState:
    """State container for logging initialization to avoid global statements."""

    initialized: bool = False
    signature: str | None = None


_logging_state = _LoggingState()


def configure_enhanced_structlog(
    environment: str | None = None,
    log_level: str = "INFO",
    log_config: dict[str, Any] | None = None,
) -> None:
    """
    Configure structlog processors and stdlib handlers.

    Args:
        environment: Environment name (auto-detected if None)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_config: Logging configuration dictionary
    """
    if environment is None:
        environment = detect_environment()
    log_config = log_config or {}

    processors: list[Any] = [
        sanitize_sensitive_data,
        truncate_message_preview,
        merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_config.get("format") == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]))

    if not log_config.get("disable_logging", False):
        setup_enhanced_file_logging(environment, log_config, log_level)
    else:
        logging.getLogger().setLevel(logging.CRITICAL + 1)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_enhanced_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from the server configuration dictionary.

    Repeated calls with the same configuration are ignored unless
    force_reconfigure is set.

    Args:
        config: Server configuration dictionary (see AppConfig.to_legacy_dict)
        force_reconfigure: When True, tear down existing handlers before reconfiguring
    """
    config_signature = json.dumps(config, sort_keys=True, default=str)

    if _logging_state.initialized and not force_reconfigure:
        get_logger("signaling_server.structured_logging.setup").debug(
            "setup_enhanced_logging skipped; logging system already initialized",
            config_signature=_logging_state.signature,
        )
        return

    logging_config = config.get("logging", {})
    environment = config.get("environment") or detect_environment()
    log_level = logging_config.get("level", "INFO")

    configure_enhanced_structlog(environment, log_level, logging_config)
    _configure_uvicorn_logging()

    get_logger("signaling_server.structured_logging.enhanced").info(
        "Enhanced logging system initialized",
        environment=environment,
        log_level=log_level,
        log_format=logging_config.get("format", "human"),
        file_logging=logging_config.get("file_logging", False),
    )

    _logging_state.initialized = True
    _logging_state.signature = config_signature


def _configure_uvicorn_logging() -> None:
    """Route uvicorn's loggers through the root handlers."""
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a structlog logger with the specified name.

    Application code should use this function rather than calling
    structlog.get_logger() or logging.getLogger() directly, since the
    stdlib loggers do not accept keyword fields.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def bind_connection_context(**fields: Any) -> None:
    """Bind fields (client_id, remote_ip, ...) to every log entry in the current context."""
    bind_contextvars(**fields)


def clear_connection_context() -> None:
    """Drop all fields bound with bind_connection_context()."""
    clear_contextvars()


def log_exception_once(
    bound_logger: BoundLogger,
    level: str,
    message: str,
    *,
    exc: Exception | None = None,
    mark_logged: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log an exception once, respecting exceptions that have already been logged.

    Args:
        bound_logger: Structlog bound logger instance.
        level: Logging level to use (for example, "error" or "warning").
        message: Log message to emit.
        exc: Optional exception to include in the log entry.
        mark_logged: When True, mark the exception as logged to prevent duplicates.
        **kwargs: Additional key-value pairs for structured logging.
    """
    if exc is not None:
        if getattr(exc, "already_logged", False) or getattr(exc, "_already_logged", False):
            return
        kwargs.setdefault("error_type", type(exc).__name__)
        kwargs.setdefault("error", str(exc))

    log_method = getattr(bound_logger, level.lower(), bound_logger.error)
    log_method(message, **kwargs)

    if exc is not None and mark_logged:
        cast(Any, exc)._already_logged = True
