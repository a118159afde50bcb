"""Client address extraction and IP anonymization for privacy-preserving logs."""

from __future__ import annotations

import ipaddress
from typing import Any, Optional

UNKNOWN_IP = "unknown"

_FORWARDING_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_client_ip(request: Any) -> str:
    """
    Resolve the originating client address.

    Proxy headers win over the socket peer; for X-Forwarded-For the first
    (client-most) entry is used.
    """
    if request is None:
        return UNKNOWN_IP

    headers = getattr(request, "headers", None) or {}
    for header in _FORWARDING_HEADERS:
        raw = headers.get(header)
        if raw:
            first = raw.split(",")[0].strip()
            if first:
                return first

    client = getattr(request, "client", None)
    host = getattr(client, "host", None) if client else None
    return host or UNKNOWN_IP


def anonymize_ip(ip: Optional[str]) -> str:
    """
    Truncate an address before it is persisted.

    IPv4 keeps the first three octets (last one zeroed), IPv6 keeps the
    first 64 bits. Anything unparsable collapses to ``"unknown"``.
    """
    if not ip:
        return UNKNOWN_IP
    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return UNKNOWN_IP

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped

    if isinstance(address, ipaddress.IPv4Address):
        network = ipaddress.ip_network(f"{address}/24", strict=False)
        return str(network.network_address)

    network = ipaddress.ip_network(f"{address}/64", strict=False)
    return str(network.network_address)
