"""Scheduler — re-runs the aggregation engine on a timer and on triggers.

States:
    IDLE     nobody is subscribed; no timer, no trigger listener
    ARMED    a one-shot timer is pending and the trigger source is attached
    RUNNING  an aggregation run is in flight

The timer is re-armed relative to the end of each run, so a slow run
stretches the period instead of queuing catch-up runs. Timer and trigger
events that arrive while a run is in flight are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from src.probes.base import Prober
from src.triggers.base import TriggerHandle, TriggerSource

from .engine import aggregate
from .models import Verdict
from .options import ConfigHolder
from .publisher import StatusPublisher

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    RUNNING = "running"


class ConnectivityScheduler:
    """Owns the poll timer and the trigger subscription.

    Lifecycle (driven by the publisher's subscriber count):
        scheduler.activate()     # first subscriber: attach + immediate run
        ...
        scheduler.deactivate()   # last subscriber gone: tear everything down
    """

    def __init__(
        self,
        config: ConfigHolder,
        publisher: StatusPublisher,
        trigger: TriggerSource | None = None,
        prober: Prober | None = None,
    ) -> None:
        self.config = config
        self.publisher = publisher
        self.trigger = trigger
        self.prober = prober
        self._active = False
        self._epoch = 0  # bumped on every activate/deactivate
        self._timer: asyncio.Task[None] | None = None
        self._run_task: asyncio.Task[None] | None = None
        self._trigger_handle: TriggerHandle | None = None
        self._orphans: set[asyncio.Task[None]] = set()
        # Diagnostics
        self.run_count = 0
        self.last_run_at: str | None = None
        self.last_run_reason: str | None = None

    # -- state -----------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        if not self._active:
            return SchedulerState.IDLE
        if self._run_task is not None:
            return SchedulerState.RUNNING
        return SchedulerState.ARMED

    @property
    def active(self) -> bool:
        return self._active

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "poll_interval": self.config.poll_interval,
            "timer_pending": self.timer_pending,
            "trigger_attached": self._trigger_handle is not None,
            "run_count": self.run_count,
            "last_run_at": self.last_run_at,
            "last_run_reason": self.last_run_reason,
        }

    # -- lifecycle -------------------------------------------------------------

    def activate(self) -> None:
        """IDLE → ARMED: attach the trigger source and run once right away."""
        if self._active:
            return
        asyncio.get_running_loop()  # raises before any state changes
        self._active = True
        self._epoch += 1
        self._attach_trigger()
        logger.info("Connectivity scheduler started (interval=%ss)", self.config.poll_interval)
        self.run_now("initial")

    def deactivate(self) -> None:
        """Any state → IDLE: cancel the timer, detach the trigger, forget the verdict.

        A run still in flight is left to settle; its result is discarded.
        """
        if not self._active:
            return
        self._active = False
        self._epoch += 1
        self._cancel_timer()
        self._detach_trigger()
        if self._run_task is not None:
            self._orphans.add(self._run_task)
            self._run_task.add_done_callback(self._orphans.discard)
            self._run_task = None
        self.publisher.clear()
        logger.info("Connectivity scheduler stopped")

    def set_interval_and_reset_timer(self, seconds: float) -> None:
        """Change the poll interval and restart a pending timer with it.

        Does not start a run. While idle only the stored interval changes.
        """
        self.config.update(poll_interval=seconds)
        if self._active:
            self._arm_timer()
        logger.debug("Poll interval set to %ss", seconds)

    # -- runs ------------------------------------------------------------------

    def run_now(self, reason: str = "manual") -> bool:
        """Start a run unless one is already in flight. Returns True if started."""
        if not self._active:
            return False
        if self._run_task is not None:
            logger.debug("Run already in flight, ignoring %s event", reason)
            return False

        self._cancel_timer()
        self._run_task = asyncio.get_running_loop().create_task(
            self._run(self._epoch, reason), name=f"connectivity-run:{reason}",
        )
        return True

    async def _run(self, epoch: int, reason: str) -> None:
        config = self.config.snapshot()
        try:
            verdict = await aggregate(config.probes, config.policy, self.prober)
        finally:
            if epoch == self._epoch:
                self._run_task = None

        if epoch != self._epoch:
            logger.debug("Discarding %s result from a stopped scheduler", verdict.value)
            return

        self._record(verdict, reason)
        self.publisher.publish_if_changed(verdict)
        self._arm_timer()

    def _record(self, verdict: Verdict, reason: str) -> None:
        self.run_count += 1
        self.last_run_at = datetime.now(timezone.utc).isoformat()
        self.last_run_reason = reason
        logger.debug("Run #%d (%s): %s", self.run_count, reason, verdict.value)

    # -- timer -----------------------------------------------------------------

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(
            self._fire_after(self.config.poll_interval), name="connectivity-timer",
        )

    async def _fire_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._timer = None
        self.run_now("timer")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # -- trigger source --------------------------------------------------------

    def _attach_trigger(self) -> None:
        if self.trigger is None or self._trigger_handle is not None:
            return
        try:
            self._trigger_handle = self.trigger.subscribe(self._on_trigger, self._on_trigger_error)
        except Exception:
            logger.warning("Trigger source unavailable, polling on timer only", exc_info=True)

    def _detach_trigger(self) -> None:
        if self._trigger_handle is None:
            return
        try:
            self._trigger_handle.cancel()
        except Exception:
            logger.debug("Trigger detach failed", exc_info=True)
        self._trigger_handle = None

    def _on_trigger(self, event: Any) -> None:
        if self._active:
            self.run_now("trigger")

    def _on_trigger_error(self, exc: BaseException) -> None:
        logger.debug("Trigger source error ignored: %s", exc)
