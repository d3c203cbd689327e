"""Cancellable one-shot timer for debouncing keystroke-driven work.

``schedule`` replaces whatever was pending; it never queues. Cancelling
only affects a timer that has not fired yet. Once the callback has
started it runs to completion on its own task, and the owner decides
whether its result is still wanted.
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

log = structlog.get_logger(__name__)


class CancellableTimer:
    """At most one pending deferred call, built on ``loop.call_later``.

    Example:
        >>> timer = CancellableTimer()
        >>> timer.schedule(0.5, lambda: search("my-repo"))
        >>> timer.schedule(0.5, lambda: search("my-repo-a"))  # replaces the first
        >>> await timer.drain()
    """

    def __init__(self) -> None:
        self._handle: asyncio.TimerHandle | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        """Whether a scheduled call has not fired yet."""
        return self._handle is not None

    @property
    def in_flight(self) -> int:
        """Number of fired callbacks that have not finished."""
        return len(self._running)

    def schedule(self, after: float, callback: Callable[[], Awaitable[None]]) -> None:
        """Run ``callback`` once ``after`` seconds pass without another schedule.

        Must be called from a running event loop.
        """
        self.cancel_pending()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(after, self._fire, callback)

    def cancel_pending(self) -> bool:
        """Drop the pending call, if any. Returns True if one was dropped."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def fire_now(self, callback: Callable[[], Awaitable[None]]) -> asyncio.Task[None]:
        """Cancel the pending call and start ``callback`` immediately."""
        self.cancel_pending()
        return self._start(callback)

    async def drain(self) -> None:
        """Wait for every fired callback to finish."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    def _fire(self, callback: Callable[[], Awaitable[None]]) -> None:
        self._handle = None
        self._start(callback)

    def _start(self, callback: Callable[[], Awaitable[None]]) -> asyncio.Task[None]:
        task = asyncio.ensure_future(callback())
        self._running.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._running.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.error("debounced_callback_failed", error=str(task.exception()))
