"""Link-state trigger — polls host interfaces via psutil.

Fires whenever the set of interfaces reported as up changes (cable pulled,
Wi-Fi joined, VPN tunnel created …). The first poll only records a baseline.
"""

from __future__ import annotations

import asyncio
import logging

import psutil

from .base import ErrorCallback, EventCallback

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0  # seconds


def interfaces_up() -> frozenset[str]:
    """Names of the network interfaces currently reported as up."""
    return frozenset(name for name, stats in psutil.net_if_stats().items() if stats.isup)


class _Watch:
    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def cancel(self) -> None:
        self._task.cancel()


class LinkStateTrigger:
    """Trigger source backed by periodic ``psutil.net_if_stats()`` snapshots.

    Each subscription runs its own polling task on the current event loop.
    Events are ``{"up": [...], "down": [...]}`` dicts naming the interfaces
    that changed.
    """

    def __init__(self, interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self.interval = interval

    def subscribe(
        self, on_event: EventCallback, on_error: ErrorCallback | None = None,
    ) -> _Watch:
        task = asyncio.get_running_loop().create_task(
            self._watch(on_event, on_error), name="link-state-trigger",
        )
        return _Watch(task)

    async def _watch(self, on_event: EventCallback, on_error: ErrorCallback | None) -> None:
        previous: frozenset[str] | None = None
        while True:
            try:
                current = interfaces_up()
            except Exception as e:
                logger.debug("Interface poll failed: %s", e)
                if on_error:
                    try:
                        on_error(e)
                    except Exception:
                        logger.exception("Link-state error handler failed")
            else:
                if previous is not None and current != previous:
                    event = {
                        "up": sorted(current - previous),
                        "down": sorted(previous - current),
                    }
                    logger.debug("Link state changed: %s", event)
                    try:
                        on_event(event)
                    except Exception:
                        logger.exception("Link-state listener failed")
                previous = current
            await asyncio.sleep(self.interval)
