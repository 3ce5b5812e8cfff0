"""Tests for the scheduler lifecycle, driven through the monitor's stream."""

from __future__ import annotations

import asyncio

import pytest

from src.connectivity.models import Verdict
from src.connectivity.scheduler import SchedulerState

C, D = Verdict.CONNECTED, Verdict.DISCONNECTED


async def _settle(seconds: float = 0.02) -> None:
    await asyncio.sleep(seconds)


# ── Start / stop ─────────────────────────────────────────────────────────────


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_idle_without_subscribers(self, make_monitor, make_probe, calls) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=0.01)
        await _settle(0.05)
        assert monitor.scheduler.state == SchedulerState.IDLE
        assert calls.count == 0

    @pytest.mark.asyncio
    async def test_first_subscriber_triggers_one_immediate_run(
        self, make_monitor, make_probe, calls,
    ) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=10.0)
        async with monitor.status_changes() as changes:
            assert await changes.get(timeout=1.0) == C
            await _settle(0.05)
            assert calls.count == 1
            assert monitor.scheduler.state == SchedulerState.ARMED
            assert monitor.scheduler.timer_pending
            assert monitor.last_known_status() == C

    @pytest.mark.asyncio
    async def test_second_subscriber_does_not_rerun(self, make_monitor, make_probe, calls) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=10.0)
        async with monitor.status_changes() as first:
            await first.get(timeout=1.0)
            async with monitor.status_changes():
                await _settle()
                assert calls.count == 1

    @pytest.mark.asyncio
    async def test_last_unsubscribe_stops_runs(self, make_monitor, make_probe, calls) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=0.02)
        async with monitor.status_changes() as changes:
            await changes.get(timeout=1.0)
            await _settle(0.1)

        stopped_at = calls.count
        assert stopped_at >= 2  # timer kept re-running while subscribed
        await _settle(0.1)
        assert calls.count == stopped_at
        assert monitor.scheduler.state == SchedulerState.IDLE
        assert not monitor.scheduler.timer_pending
        assert monitor.last_known_status() is None

    @pytest.mark.asyncio
    async def test_resubscribe_measures_from_scratch(self, make_monitor, make_probe) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=10.0)
        async with monitor.status_changes() as changes:
            assert await changes.get(timeout=1.0) == C
        async with monitor.status_changes() as changes:
            # same verdict as before, still delivered: the old one was forgotten
            assert await changes.get(timeout=1.0) == C

    @pytest.mark.asyncio
    async def test_close_stops_everything(self, make_monitor, make_probe, trigger) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=10.0)
        changes = monitor.status_changes()
        await changes.get(timeout=1.0)
        monitor.close()
        assert changes.closed
        assert monitor.scheduler.state == SchedulerState.IDLE
        assert trigger.listener_count == 0

    def test_subscribe_without_running_loop_stays_idle(
        self, make_monitor, make_probe, calls, trigger,
    ) -> None:
        monitor = make_monitor([make_probe(True)])
        changes = monitor.status_changes()
        assert not monitor.scheduler.active
        assert monitor.scheduler.state == SchedulerState.IDLE
        assert trigger.listener_count == 0
        assert calls.count == 0
        changes.close()
        assert monitor.publisher.subscriber_count == 0

    def test_activate_outside_loop_leaves_state_untouched(self, make_monitor, make_probe) -> None:
        monitor = make_monitor([make_probe(True)])
        with pytest.raises(RuntimeError):
            monitor.scheduler.activate()
        assert not monitor.scheduler.active
        assert monitor.scheduler.to_dict()["trigger_attached"] is False


# ── Timer ────────────────────────────────────────────────────────────────────


class TestTimer:
    @pytest.mark.asyncio
    async def test_only_changes_are_emitted(self, make_monitor, make_probe, calls) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=0.01)
        async with monitor.status_changes() as changes:
            assert await changes.get(timeout=1.0) == C
            await _settle(0.1)
            assert calls.count >= 3
            with pytest.raises(asyncio.TimeoutError):
                await changes.get(timeout=0.02)

    @pytest.mark.asyncio
    async def test_flapping_verdicts_are_emitted_in_order(self, make_monitor, make_probe) -> None:
        outcomes = iter([True, True, False, False, True])
        probe = make_probe(result_fn=lambda: next(outcomes, True))
        monitor = make_monitor([probe], poll_interval=0.01)
        async with monitor.status_changes() as changes:
            seen = [await changes.get(timeout=1.0) for _ in range(3)]
        assert seen == [C, D, C]

    @pytest.mark.asyncio
    async def test_shorter_interval_rearms_pending_timer(
        self, make_monitor, make_probe, calls,
    ) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=10.0)
        async with monitor.status_changes() as changes:
            await changes.get(timeout=1.0)
            await _settle()
            assert calls.count == 1

            monitor.set_poll_interval(0.05)
            assert calls.count == 1  # no immediate run
            await _settle(0.2)
            assert calls.count >= 2
            assert monitor.config.poll_interval == 0.05

    @pytest.mark.asyncio
    async def test_set_interval_while_idle_arms_nothing(self, make_monitor, make_probe, calls) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=10.0)
        monitor.set_poll_interval(0.01)
        await _settle(0.05)
        assert monitor.scheduler.state == SchedulerState.IDLE
        assert not monitor.scheduler.timer_pending
        assert calls.count == 0
        assert monitor.config.poll_interval == 0.01

    @pytest.mark.asyncio
    async def test_timer_rearms_after_slow_run(self, make_monitor, make_probe, calls) -> None:
        monitor = make_monitor([make_probe(True, delay=0.05)], poll_interval=0.01)
        async with monitor.status_changes() as changes:
            await changes.get(timeout=1.0)
            await _settle(0.2)
        # runs never overlap: each takes 50ms and the next starts 10ms later
        assert calls.count <= 6


# ── In-flight guard & triggers ───────────────────────────────────────────────


class TestTriggers:
    @pytest.mark.asyncio
    async def test_trigger_causes_rerun(self, make_monitor, make_probe, calls, trigger) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=10.0)
        async with monitor.status_changes() as changes:
            await changes.get(timeout=1.0)
            assert trigger.listener_count == 1

            trigger.fire({"link": "wlan0"})
            await _settle()
            assert calls.count == 2
            assert monitor.scheduler.last_run_reason == "trigger"
        assert trigger.listener_count == 0

    @pytest.mark.asyncio
    async def test_events_during_run_are_dropped(self, make_monitor, make_probe, calls, trigger) -> None:
        gate = asyncio.Event()
        monitor = make_monitor([make_probe(True, gate=gate)], poll_interval=10.0)
        async with monitor.status_changes() as changes:
            await _settle()
            assert monitor.scheduler.state == SchedulerState.RUNNING

            for _ in range(3):
                trigger.fire()
            assert monitor.scheduler.run_now("manual") is False
            await _settle()
            assert calls.count == 1

            gate.set()
            assert await changes.get(timeout=1.0) == C
            await _settle()
            assert monitor.scheduler.state == SchedulerState.ARMED
            assert monitor.scheduler.run_count == 1

    @pytest.mark.asyncio
    async def test_trigger_errors_are_swallowed(self, make_monitor, make_probe, trigger) -> None:
        monitor = make_monitor([make_probe(True)], poll_interval=10.0)
        async with monitor.status_changes() as changes:
            await changes.get(timeout=1.0)
            trigger.fail(RuntimeError("netlink went away"))
            await _settle()
            assert monitor.scheduler.state == SchedulerState.ARMED

    @pytest.mark.asyncio
    async def test_broken_trigger_source_falls_back_to_timer(self, make_monitor, make_probe, calls) -> None:
        class BrokenTrigger:
            def subscribe(self, on_event, on_error=None):
                raise OSError("no connectivity service")

        monitor = make_monitor([make_probe(True)], poll_interval=0.02, trigger=BrokenTrigger())
        async with monitor.status_changes() as changes:
            assert await changes.get(timeout=1.0) == C
            await _settle(0.1)
            assert calls.count >= 2

    @pytest.mark.asyncio
    async def test_trigger_ignored_while_idle(self, make_monitor, make_probe, calls, trigger) -> None:
        make_monitor([make_probe(True)], poll_interval=10.0)
        trigger.fire()
        await _settle()
        assert calls.count == 0


# ── Stale runs ───────────────────────────────────────────────────────────────


class TestStaleRuns:
    @pytest.mark.asyncio
    async def test_run_finishing_after_teardown_is_discarded(
        self, make_monitor, make_probe,
    ) -> None:
        gate = asyncio.Event()
        monitor = make_monitor([make_probe(True, gate=gate)], poll_interval=0.01)
        async with monitor.status_changes():
            await _settle()
            assert monitor.scheduler.state == SchedulerState.RUNNING

        gate.set()
        await _settle(0.05)
        assert monitor.last_known_status() is None
        assert monitor.scheduler.state == SchedulerState.IDLE
        assert not monitor.scheduler.timer_pending
        assert monitor.scheduler.run_count == 0

    @pytest.mark.asyncio
    async def test_resubscribe_while_stale_run_pending(self, make_monitor, make_probe, calls) -> None:
        gate = asyncio.Event()
        monitor = make_monitor([make_probe(True, gate=gate)], poll_interval=10.0)
        async with monitor.status_changes():
            await _settle()

        async with monitor.status_changes() as changes:
            await _settle()
            assert calls.count == 2  # fresh run, not blocked by the stale one
            gate.set()
            assert await changes.get(timeout=1.0) == C
