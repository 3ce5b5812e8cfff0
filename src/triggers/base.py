"""Trigger-source interface plus an in-process callback trigger.

A trigger source reports that host connectivity *may* have changed. The
payload is opaque and only ever used as a cue to re-probe, never as a
verdict.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

EventCallback = Callable[[Any], Any]
ErrorCallback = Callable[[BaseException], Any]


class TriggerHandle(Protocol):
    def cancel(self) -> None: ...


class TriggerSource(Protocol):
    def subscribe(
        self, on_event: EventCallback, on_error: ErrorCallback | None = None,
    ) -> TriggerHandle: ...


class _Listener:
    """Handle returned by CallbackTrigger.subscribe()."""

    def __init__(
        self, source: CallbackTrigger, on_event: EventCallback, on_error: ErrorCallback | None,
    ) -> None:
        self._source = source
        self.on_event = on_event
        self.on_error = on_error

    def cancel(self) -> None:
        self._source._remove(self)


class CallbackTrigger:
    """Trigger source fed by the host application.

    Integrators wire their own platform notifications into ``fire()``.
    """

    def __init__(self) -> None:
        self._listeners: list[_Listener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(
        self, on_event: EventCallback, on_error: ErrorCallback | None = None,
    ) -> _Listener:
        listener = _Listener(self, on_event, on_error)
        self._listeners.append(listener)
        return listener

    def _remove(self, listener: _Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def fire(self, event: Any = None) -> None:
        """Notify every listener of a connectivity change."""
        for listener in list(self._listeners):
            try:
                listener.on_event(event)
            except Exception:
                logger.exception("Trigger listener failed")

    def fail(self, exc: BaseException) -> None:
        """Report a source-side error to every listener."""
        for listener in list(self._listeners):
            if listener.on_error is None:
                continue
            try:
                listener.on_error(exc)
            except Exception:
                logger.exception("Trigger error handler failed")
