"""
Address helpers for presence grouping and connection-type classification.

Addresses are kept as normalized dotted-quad strings. Anything that does not
parse as IPv4 (an IPv6 peer, a test client host name, "unknown") is treated
as a public address, so it only ever groups with a byte-identical address.
"""

import ipaddress
from enum import Enum

from starlette.requests import HTTPConnection

UNKNOWN_ADDRESS = "unknown"

_PRIVATE_NETWORKS = (
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
)
_CGNAT_NETWORK = ipaddress.IPv4Network("100.64.0.0/10")


class AddressClass(Enum):
    PRIVATE = "private"
    CGNAT = "cgnat"
    PUBLIC = "public"


class ConnectionType(str, Enum):
    """Advisory classification of a flight pair, sent to clients in peer-joined."""

    LOCAL = "local"
    REMOTE = "remote"


def normalize_ipv4(ip: str | None) -> str:
    """
    Strip IPv4-mapped IPv6 prefixes and map the IPv6 loopback to 127.0.0.1.

    Args:
        ip: Raw address as reported by the transport or a proxy header

    Returns:
        Normalized address, or "unknown" for a missing value
    """
    if not ip or not isinstance(ip, str):
        return UNKNOWN_ADDRESS
    ip = ip.strip()
    if not ip:
        return UNKNOWN_ADDRESS
    if ip.lower().startswith("::ffff:"):
        return ip[7:]
    if ip == "::1":
        return "127.0.0.1"
    return ip


def get_client_ip(connection: HTTPConnection) -> str:
    """
    Resolve the client address of an HTTP or WebSocket request.

    The first entry of X-Forwarded-For wins when present (deployments sit
    behind a reverse proxy); otherwise the socket peer is used.
    """
    forwarded = connection.headers.get("x-forwarded-for")
    raw_ip = None
    if forwarded:
        raw_ip = forwarded.split(",")[0].strip() or None
    if raw_ip is None and connection.client is not None:
        raw_ip = connection.client.host
    return normalize_ipv4(raw_ip)


def _parse_ipv4(ip: str) -> ipaddress.IPv4Address | None:
    try:
        return ipaddress.IPv4Address(ip)
    except ValueError:
        return None


def classify_address(ip: str) -> AddressClass:
    """Classify an address as RFC1918 private, CGNAT (100.64.0.0/10) or public."""
    address = _parse_ipv4(ip)
    if address is None:
        return AddressClass.PUBLIC
    if any(address in network for network in _PRIVATE_NETWORKS):
        return AddressClass.PRIVATE
    if address in _CGNAT_NETWORK:
        return AddressClass.CGNAT
    return AddressClass.PUBLIC


def is_private_ip(ip: str) -> bool:
    return classify_address(ip) is AddressClass.PRIVATE


def subnet_prefix(ip: str) -> str:
    """Return the /24 prefix of a dotted-quad address ("10.0.0.5" -> "10.0.0")."""
    return ".".join(ip.split(".")[:3])


def network_group_key(ip: str) -> str:
    """
    Grouping key used by presence broadcasts.

    Private addresses group by /24; CGNAT and public addresses group only with
    the identical address.
    """
    if is_private_ip(ip):
        return subnet_prefix(ip)
    return ip


def classify_connection_type(first_ip: str, second_ip: str) -> ConnectionType:
    """Classify a pair as local (same private /24 or identical address) or remote."""
    if is_private_ip(first_ip) and is_private_ip(second_ip) and subnet_prefix(first_ip) == subnet_prefix(second_ip):
        return ConnectionType.LOCAL
    if first_ip == second_ip:
        return ConnectionType.LOCAL
    return ConnectionType.REMOTE
