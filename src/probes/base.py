"""Prober capability interface.

A prober answers one question: is ``target`` reachable within ``timeout``
seconds? Implementations never raise; every failure is reported as False.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Prober(Protocol):
    name: str

    async def probe(self, target: str, timeout: float) -> bool: ...
