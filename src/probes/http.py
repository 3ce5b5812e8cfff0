"""HTTP(S) prober — HEAD request, any 2xx/3xx counts as reachable."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


async def http_head(url: str, timeout: float = 3.0) -> bool:
    """Send a HEAD request and report whether the status is 200–399."""
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=False) as client:
            resp = await client.head(url)
        return 200 <= resp.status_code < 400
    except httpx.TimeoutException:
        logger.debug("HEAD %s timed out (%.1fs)", url, timeout)
        return False
    except Exception as e:
        logger.debug("HEAD %s failed: %s: %s", url, type(e).__name__, e)
        return False


class HttpProber:
    """Prober variant backed by HTTP HEAD requests."""

    name = "http"

    async def probe(self, target: str, timeout: float) -> bool:
        return await http_head(target, timeout)
