"""Status publisher — last known verdict plus a de-duplicated broadcast.

Each subscriber gets its own asyncio.Queue. A verdict is pushed to every
queue only when it differs from the previous one. Subscriber-count
transitions drive the scheduler through two hooks:

- 0 → 1: ``on_first_subscriber``
- 1 → 0: ``last_verdict`` is cleared, then ``on_last_unsubscribed``
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .models import Verdict

logger = logging.getLogger(__name__)

# Pushed into a queue to wake a reader blocked on a closed subscription.
_CLOSED = None


class StatusSubscription:
    """A live view of verdict changes.

    Usable as an async iterator and as an async context manager::

        async with monitor.status_changes() as changes:
            async for verdict in changes:
                ...

    Leaving the context (or calling ``close()``) detaches the subscriber.
    """

    def __init__(self, publisher: StatusPublisher) -> None:
        self._publisher = publisher
        self._queue: asyncio.Queue[Verdict | None] = asyncio.Queue()
        self.closed = False

    def _push(self, verdict: Verdict) -> None:
        self._queue.put_nowait(verdict)

    async def get(self, timeout: float | None = None) -> Verdict:
        """Wait for the next verdict change.

        Raises asyncio.TimeoutError if ``timeout`` elapses first and
        StopAsyncIteration if the subscription is closed.
        """
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._queue.put_nowait(_CLOSED)
        self._publisher._detach(self)

    def __aiter__(self) -> StatusSubscription:
        return self

    async def __anext__(self) -> Verdict:
        return await self.get()

    async def __aenter__(self) -> StatusSubscription:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.close()


class StatusPublisher:
    """Holds the last verdict and fans changes out to subscribers."""

    def __init__(
        self,
        on_first_subscriber: Callable[[], Any] | None = None,
        on_last_unsubscribed: Callable[[], Any] | None = None,
    ) -> None:
        self.on_first_subscriber = on_first_subscriber
        self.on_last_unsubscribed = on_last_unsubscribed
        self._last: Verdict | None = None
        self._subscribers: list[StatusSubscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    def current(self) -> Verdict | None:
        return self._last

    def clear(self) -> None:
        self._last = None

    def publish_if_changed(self, verdict: Verdict) -> bool:
        """Broadcast ``verdict`` if it is new; always record it.

        Returns True when the verdict was emitted.
        """
        changed = self._last != verdict
        self._last = verdict
        if not (changed and self._subscribers):
            return False

        for sub in list(self._subscribers):
            sub._push(verdict)
        logger.info("Connectivity status changed: %s", verdict.value)
        return True

    def subscribe(self) -> StatusSubscription:
        sub = StatusSubscription(self)
        self._subscribers.append(sub)
        if len(self._subscribers) == 1 and self.on_first_subscriber:
            try:
                self.on_first_subscriber()
            except Exception:
                logger.exception("First-subscriber hook failed")
        return sub

    def close_all(self) -> None:
        for sub in list(self._subscribers):
            sub.close()

    def _detach(self, sub: StatusSubscription) -> None:
        try:
            self._subscribers.remove(sub)
        except ValueError:
            return
        if self._subscribers:
            return

        self._last = None
        if self.on_last_unsubscribed:
            try:
                self.on_last_unsubscribed()
            except Exception:
                logger.exception("Last-unsubscribed hook failed")
