"""TCP connect prober — opens a socket and closes it straight away."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


def parse_host_port(target: str) -> tuple[str, int]:
    """Split ``tcp://host:port``, ``host:port`` or ``[v6]:port`` into parts.

    Raises ValueError when no port can be found.
    """
    raw = target if "://" in target else f"tcp://{target}"
    parts = urlsplit(raw)
    if not parts.hostname or parts.port is None:
        raise ValueError(f"Not a host:port target: {target!r}")
    return parts.hostname, parts.port


async def tcp_connect(host: str, port: int, timeout: float = 3.0) -> bool:
    """Return True if a TCP connection to host:port opens within timeout."""
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout,
        )
    except (asyncio.TimeoutError, OSError) as e:
        logger.debug("TCP connect %s:%s failed: %s", host, port, e)
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass  # peer reset on close is still a successful connect
    return True


class TcpProber:
    """Prober variant backed by raw TCP connects."""

    name = "tcp"

    async def probe(self, target: str, timeout: float) -> bool:
        try:
            host, port = parse_host_port(target)
        except ValueError as e:
            logger.warning("Skipping TCP probe: %s", e)
            return False
        return await tcp_connect(host, port, timeout)
