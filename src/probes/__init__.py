"""Reachability probers — TCP connect and HTTP HEAD variants."""

from __future__ import annotations

from .base import Prober
from .http import HttpProber, http_head
from .tcp import TcpProber, parse_host_port, tcp_connect

PROBERS: dict[str, type] = {
    "tcp": TcpProber,
    "http": HttpProber,
}


def get_prober(name: str) -> Prober:
    """Build the prober variant registered under ``name``."""
    try:
        return PROBERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown prober {name!r} (expected one of: {', '.join(PROBERS)})"
        ) from None


__all__ = [
    "HttpProber",
    "PROBERS",
    "Prober",
    "TcpProber",
    "get_prober",
    "http_head",
    "parse_host_port",
    "tcp_connect",
]
