"""
Structured logging package for the signaling server.

All imports should use explicit paths like
'from signaling_server.structured_logging.enhanced_logging_config import get_logger'.

The package is named 'structured_logging' rather than 'logging' to avoid
shadowing the standard library module.
"""

__all__: list[str] = []
