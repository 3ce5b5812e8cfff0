"""Configuration holder — probe list, poll interval and combination policy.

Updates replace whole fields; readers take an immutable snapshot so a run in
flight keeps using the values it started with.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace

from .models import CombinationPolicy, ProbeDescriptor, default_probes

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0  # seconds


@dataclass(frozen=True)
class MonitorConfig:
    probes: tuple[ProbeDescriptor, ...]
    poll_interval: float = DEFAULT_POLL_INTERVAL
    policy: CombinationPolicy = CombinationPolicy.ANY_SUCCEEDS

    @property
    def strict(self) -> bool:
        return self.policy.strict


class ConfigHolder:
    """Process-lifetime settings with replace-on-update semantics."""

    def __init__(self, config: MonitorConfig | None = None) -> None:
        self._config = config or MonitorConfig(probes=tuple(default_probes()))

    def snapshot(self) -> MonitorConfig:
        return self._config

    def update(
        self,
        probes: Sequence[ProbeDescriptor] | None = None,
        poll_interval: float | None = None,
        policy: CombinationPolicy | None = None,
    ) -> MonitorConfig:
        """Replace any provided field; ``None`` keeps the current value.

        An empty probe list is a valid replacement (every run then reports
        DISCONNECTED).
        """
        changes: dict[str, object] = {}
        if probes is not None:
            changes["probes"] = tuple(probes)
        if poll_interval is not None:
            changes["poll_interval"] = float(poll_interval)
        if policy is not None:
            changes["policy"] = policy

        if changes:
            self._config = replace(self._config, **changes)
            logger.debug("Configuration updated: %s", ", ".join(sorted(changes)))
        return self._config

    @property
    def probes(self) -> tuple[ProbeDescriptor, ...]:
        return self._config.probes

    @property
    def poll_interval(self) -> float:
        return self._config.poll_interval

    @property
    def policy(self) -> CombinationPolicy:
        return self._config.policy
