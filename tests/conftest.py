"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from src.connectivity.models import ProbeDescriptor
from src.connectivity.monitor import ConnectivityMonitor
from src.connectivity.options import ConfigHolder, MonitorConfig
from src.triggers.base import CallbackTrigger


class ProbeCalls:
    """Counts how often the probes built by ``make_probe`` were invoked."""

    def __init__(self) -> None:
        self.count = 0
        self.by_target: dict[str, int] = {}

    def record(self, target: str) -> None:
        self.count += 1
        self.by_target[target] = self.by_target.get(target, 0) + 1


@pytest.fixture
def calls() -> ProbeCalls:
    return ProbeCalls()


@pytest.fixture
def make_probe(calls: ProbeCalls) -> Callable[..., ProbeDescriptor]:
    """Factory for in-memory probes.

    make_probe(True)                 resolves True
    make_probe(False, delay=0.05)    resolves False after 50ms
    make_probe(exc=RuntimeError())   raises
    make_probe(gate=event)           blocks until the event is set
    make_probe(result_fn=lambda: x)  resolves to whatever result_fn returns
    """
    counter = 0

    def _make(
        result: bool = True,
        *,
        delay: float = 0.0,
        exc: BaseException | None = None,
        gate: asyncio.Event | None = None,
        result_fn: Callable[[], bool] | None = None,
        target: str | None = None,
    ) -> ProbeDescriptor:
        nonlocal counter
        counter += 1
        name = target or f"mem://probe-{counter}"

        async def run() -> bool:
            calls.record(name)
            if gate is not None:
                await gate.wait()
            if delay:
                await asyncio.sleep(delay)
            if exc is not None:
                raise exc
            return result_fn() if result_fn is not None else result

        return ProbeDescriptor(target=name, timeout=1.0, run=run)

    return _make


@pytest.fixture
def trigger() -> CallbackTrigger:
    return CallbackTrigger()


@pytest.fixture
def make_monitor(trigger: CallbackTrigger) -> Callable[..., ConnectivityMonitor]:
    """Build a monitor with explicit probes, a callback trigger and no prober."""
    built: list[ConnectivityMonitor] = []

    def _make(probes, poll_interval: float = 10.0, strict: bool = False, **kwargs) -> ConnectivityMonitor:
        monitor = ConnectivityMonitor(
            config=ConfigHolder(MonitorConfig(probes=tuple(probes))),
            trigger=kwargs.pop("trigger", trigger),
            **kwargs,
        )
        monitor.initialize(poll_interval=poll_interval, strict=strict)
        built.append(monitor)
        return monitor

    yield _make

    for monitor in built:
        if monitor.scheduler.active:
            monitor.close()
