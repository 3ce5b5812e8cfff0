"""Core value types — verdicts, combination policy, probe descriptors."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from src.probes.http import http_head
from src.probes.tcp import tcp_connect

DEFAULT_PROBE_TIMEOUT = 3.0  # seconds

ProbeFn = Callable[[], Awaitable[bool]]


# ── Enums ────────────────────────────────────────────────────────────────────


class Verdict(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class CombinationPolicy(str, Enum):
    """How individual probe outcomes fold into one verdict."""

    ANY_SUCCEEDS = "any"  # permissive
    ALL_SUCCEED = "all"   # strict

    @classmethod
    def from_strict(cls, strict: bool) -> CombinationPolicy:
        return cls.ALL_SUCCEED if strict else cls.ANY_SUCCEEDS

    @property
    def strict(self) -> bool:
        return self is CombinationPolicy.ALL_SUCCEED


# ── Probe descriptor ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProbeDescriptor:
    """One reachability check: a target, its timeout and the probe to run.

    ``run`` owns its own timeout; the engine never wraps it in another one.
    When ``run`` is None the monitor's default prober is used with
    ``target`` and ``timeout``.
    """

    target: str
    timeout: float = DEFAULT_PROBE_TIMEOUT
    run: ProbeFn | None = None

    @classmethod
    def from_host_port(
        cls, host: str, port: int, timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> ProbeDescriptor:
        target = f"tcp://[{host}]:{port}" if ":" in host else f"tcp://{host}:{port}"
        return cls(
            target=target,
            timeout=timeout,
            run=lambda: tcp_connect(host, port, timeout),
        )

    @classmethod
    def from_url(cls, url: str, timeout: float = DEFAULT_PROBE_TIMEOUT) -> ProbeDescriptor:
        return cls(target=url, timeout=timeout, run=lambda: http_head(url, timeout))

    def __repr__(self) -> str:
        return f"ProbeDescriptor(target={self.target!r}, timeout={self.timeout})"


def default_probes(
    prober_name: str = "tcp", timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> list[ProbeDescriptor]:
    """Zero-config probe list. Point real deployments at endpoints you control."""
    if prober_name == "http":
        return [ProbeDescriptor.from_url("https://example.com/", timeout)]
    return [
        ProbeDescriptor.from_host_port("1.1.1.1", 443, timeout),
        ProbeDescriptor.from_host_port("8.8.8.8", 53, timeout),
    ]
