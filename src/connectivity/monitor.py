"""Connectivity monitor — the public entry point.

Ties together the configuration holder, the aggregation engine, the status
publisher and the scheduler. One monitor per process is the normal setup;
``get_monitor()`` hands out a shared instance built from settings.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from src.probes import get_prober
from src.probes.base import Prober
from src.triggers.base import TriggerSource
from src.triggers.link_state import LinkStateTrigger

from .engine import aggregate
from .models import CombinationPolicy, ProbeDescriptor, Verdict, default_probes
from .options import ConfigHolder, MonitorConfig
from .publisher import StatusPublisher, StatusSubscription
from .scheduler import ConnectivityScheduler

if TYPE_CHECKING:
    from src.config import Settings

    from .registry import ProbeRegistry

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """Aggregated internet reachability with a change-driven status stream.

    Usage:
        monitor = ConnectivityMonitor()
        monitor.initialize(probes=[...], poll_interval=8, strict=False)
        verdict = await monitor.check_once()

        async with monitor.status_changes() as changes:
            async for verdict in changes:
                ...

    The scheduler only runs while at least one subscription is open.
    """

    def __init__(
        self,
        config: ConfigHolder | None = None,
        prober: Prober | None = None,
        trigger: TriggerSource | None = None,
    ) -> None:
        self.config = config or ConfigHolder()
        self.prober = prober
        self.publisher = StatusPublisher(
            on_first_subscriber=self._on_first_subscriber,
            on_last_unsubscribed=self._on_last_unsubscribed,
        )
        self.scheduler = ConnectivityScheduler(
            self.config, self.publisher, trigger=trigger, prober=prober,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, registry: ProbeRegistry | None = None,
    ) -> ConnectivityMonitor:
        """Build a monitor from Settings and, if given, a probe registry."""
        prober = get_prober(settings.default_prober)
        if registry is not None and registry.exists:
            probes = registry.load()
            if not probes:
                logger.warning(
                    "No usable probes in %s, every check will report disconnected", registry.path,
                )
        else:
            probes = default_probes(prober.name, settings.probe_timeout_seconds)

        config = ConfigHolder(MonitorConfig(
            probes=tuple(probes),
            poll_interval=settings.poll_interval_seconds,
            policy=CombinationPolicy.from_strict(settings.strict_check),
        ))
        trigger = (
            LinkStateTrigger(settings.link_watch_interval_seconds)
            if settings.link_watch_enabled
            else None
        )
        return cls(config=config, prober=prober, trigger=trigger)

    # -- public API ------------------------------------------------------------

    def initialize(
        self,
        probes: Sequence[ProbeDescriptor] | None = None,
        poll_interval: float | None = None,
        strict: bool | None = None,
    ) -> MonitorConfig:
        """Replace any of probes / poll interval / strict flag.

        Safe at any time, including while the scheduler is active: the next
        run picks up the new values, a run in flight keeps its old ones.
        """
        policy = CombinationPolicy.from_strict(strict) if strict is not None else None
        config = self.config.update(probes=probes, poll_interval=poll_interval, policy=policy)
        logger.info(
            "Connectivity monitor configured: %d probes, interval=%ss, policy=%s",
            len(config.probes), config.poll_interval, config.policy.value,
        )
        return config

    async def check_once(self) -> Verdict:
        """Run every probe once. Does not publish or touch the scheduler."""
        config = self.config.snapshot()
        return await aggregate(config.probes, config.policy, self.prober)

    async def has_internet_access(self) -> bool:
        return await self.check_once() is Verdict.CONNECTED

    def status_changes(self) -> StatusSubscription:
        """Subscribe to verdict changes. Must be called inside a running loop.

        The first open subscription starts the scheduler (with an immediate
        run); closing the last one stops it.
        """
        return self.publisher.subscribe()

    def set_poll_interval(self, seconds: float) -> None:
        self.scheduler.set_interval_and_reset_timer(seconds)

    def last_known_status(self) -> Verdict | None:
        return self.publisher.current()

    def status(self) -> dict[str, Any]:
        """Snapshot for diagnostics / the HTTP API."""
        config = self.config.snapshot()
        last = self.last_known_status()
        return {
            "status": last.value if last else None,
            "policy": config.policy.value,
            "strict": config.strict,
            "poll_interval": config.poll_interval,
            "probes": [p.target for p in config.probes],
            "prober": self.prober.name if self.prober else None,
            "subscribers": self.publisher.subscriber_count,
            "scheduler": self.scheduler.to_dict(),
        }

    def close(self) -> None:
        """Close every open subscription and stop background work."""
        self.publisher.close_all()
        self.scheduler.deactivate()

    # -- subscriber hooks ------------------------------------------------------

    def _on_first_subscriber(self) -> None:
        self.scheduler.activate()

    def _on_last_unsubscribed(self) -> None:
        self.scheduler.deactivate()


# ── Process-wide instance ────────────────────────────────────────────────────

_monitor: ConnectivityMonitor | None = None


def get_monitor() -> ConnectivityMonitor:
    """Return the shared monitor, building it from settings on first use."""
    global _monitor
    if _monitor is None:
        from src.config import settings

        from .registry import ProbeRegistry

        _monitor = ConnectivityMonitor.from_settings(
            settings,
            ProbeRegistry(settings.probes_path, default_timeout=settings.probe_timeout_seconds),
        )
    return _monitor


def reset_monitor() -> None:
    """Drop the shared monitor (tests, re-configuration from scratch)."""
    global _monitor
    if _monitor is not None:
        _monitor.close()
    _monitor = None
