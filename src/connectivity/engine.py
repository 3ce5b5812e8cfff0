"""Aggregation engine — runs probes concurrently and decides one verdict.

Every probe is launched as its own asyncio task. After each one settles the
decision rule is re-evaluated:

- permissive policy: the first success resolves CONNECTED immediately
- otherwise, once nothing is outstanding, the policy decides from the counts

Probes still pending after a short-circuit are abandoned, not cancelled;
their results are discarded. A probe that raises counts as a failure, so
the engine itself never raises. There is no global timeout: each probe owns
its own, and a probe that never settles stalls the run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from src.probes.base import Prober

from .models import CombinationPolicy, ProbeDescriptor, Verdict

logger = logging.getLogger(__name__)

# Abandoned probe tasks stay referenced here until they settle.
_inflight: set[asyncio.Task[bool]] = set()


async def _invoke(descriptor: ProbeDescriptor, prober: Prober | None) -> bool:
    if descriptor.run is not None:
        return bool(await descriptor.run())
    if prober is None:
        logger.debug("No probe function or prober for %s, counting as failed", descriptor.target)
        return False
    return bool(await prober.probe(descriptor.target, descriptor.timeout))


def _final_verdict(policy: CombinationPolicy, succeeded: int, total: int) -> Verdict:
    if policy is CombinationPolicy.ALL_SUCCEED:
        ok = succeeded == total
    else:
        ok = succeeded > 0
    return Verdict.CONNECTED if ok else Verdict.DISCONNECTED


async def aggregate(
    probes: Sequence[ProbeDescriptor],
    policy: CombinationPolicy = CombinationPolicy.ANY_SUCCEEDS,
    prober: Prober | None = None,
) -> Verdict:
    """Run all probes concurrently and fold their outcomes into a Verdict."""
    probes = list(probes)
    if not probes:
        return Verdict.DISCONNECTED

    total = len(probes)
    outstanding = total
    succeeded = 0
    decided: asyncio.Future[Verdict] = asyncio.get_running_loop().create_future()

    def _settle(task: asyncio.Task[bool]) -> None:
        nonlocal outstanding, succeeded
        _inflight.discard(task)
        outstanding -= 1

        if task.cancelled():
            ok = False
        elif task.exception() is not None:
            exc = task.exception()
            logger.debug("Probe %s raised %s: %s", task.get_name(), type(exc).__name__, exc)
            ok = False
        else:
            ok = task.result()

        if ok:
            succeeded += 1

        if decided.done():
            return
        if policy is CombinationPolicy.ANY_SUCCEEDS and succeeded > 0:
            decided.set_result(Verdict.CONNECTED)
        elif outstanding == 0:
            decided.set_result(_final_verdict(policy, succeeded, total))

    for descriptor in probes:
        task = asyncio.create_task(
            _invoke(descriptor, prober), name=f"probe:{descriptor.target}",
        )
        _inflight.add(task)
        task.add_done_callback(_settle)

    verdict = await decided
    logger.debug(
        "Aggregated %d probes (%s): %s, %d succeeded, %d still pending",
        total, policy.value, verdict.value, succeeded, outstanding,
    )
    return verdict
