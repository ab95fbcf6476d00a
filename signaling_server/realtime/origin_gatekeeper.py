"""
Origin checks for WebSocket upgrade requests.

The decision is made before the upgrade is accepted. A rejected request is
closed without accepting, which the ASGI server answers with HTTP 403.
"""

import ipaddress
from collections.abc import Iterable
from urllib.parse import urlsplit

from ..config import AppConfig
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

LOCAL_DEVELOPMENT_SCHEMES = ("http", "https")


def is_loopback_origin(origin: str) -> bool:
    """True for an http(s) origin whose host is localhost or a loopback address, on any port."""
    try:
        parts = urlsplit(origin)
        host, _port = parts.hostname, parts.port
    except ValueError:
        # Malformed host or port
        return False
    if parts.scheme not in LOCAL_DEVELOPMENT_SCHEMES or not host:
        return False
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


class OriginGatekeeper:
    """
    Accept or reject an upgrade request by its Origin header.

    Strict mode accepts only the allow-list. Permissive mode additionally
    accepts local development origins and requests without an Origin header.
    """

    def __init__(self, allowed_origins: Iterable[str], strict: bool):
        self.allowed_origins = frozenset(allowed_origins)
        self.strict = strict

    @classmethod
    def from_config(cls, config: AppConfig) -> "OriginGatekeeper":
        return cls(config.origin.allowed_origins, config.origin_strict_mode)

    def is_allowed(self, origin: str | None) -> bool:
        mode = "strict" if self.strict else "permissive"

        if origin and origin in self.allowed_origins:
            logger.debug("Client origin approved", origin=origin, mode=mode)
            return True

        if not self.strict and (not origin or is_loopback_origin(origin)):
            logger.debug("Client origin approved", origin=origin, mode=mode)
            return True

        logger.warning("Client connection rejected due to invalid origin", origin=origin, mode=mode)
        return False
