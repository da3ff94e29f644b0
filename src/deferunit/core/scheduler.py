"""Timers used for async timeouts, deferred responses and completion."""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, Optional

from deferunit.errors import FrameworkError


class ScheduledCall(ABC):
    """A callback queued on a scheduler."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call repeatedly."""
        pass


class Scheduler(ABC):
    """Abstract source of deferred callbacks.

    Callbacks always run on the same logical thread as the engine; the
    scheduler never runs two callbacks at once.
    """

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """Run ``callback`` after ``delay`` seconds.

        Args:
            delay: Delay in seconds (0 means "next turn", never inline)
            callback: Zero-argument callable

        Returns:
            Handle that can cancel the pending call
        """
        pass


class _AsyncioCall(ScheduledCall):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise FrameworkError(
                    "Async tests require a running event loop; use run_async() "
                    "or pass a scheduler to the runner"
                ) from None
        return _AsyncioCall(loop.call_later(max(delay, 0.0), callback))


class _ManualCall(ScheduledCall):
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler driven explicitly by its owner.

    Useful for embedding the runner in a host with its own loop and for
    deterministic tests: nothing happens until ``advance()`` or ``flush()``.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: list[tuple[float, int, _ManualCall]] = []
        self._sequence = itertools.count()

    @property
    def pending(self) -> int:
        """Number of queued, non-cancelled callbacks."""
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = _ManualCall(self.now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (call.due, next(self._sequence), call))
        return call

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running every callback that becomes due."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, call = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            if not call.cancelled:
                call.callback()
        self.now = target

    def flush(self) -> None:
        """Run callbacks that are due now, including ones they queue for now."""
        self.advance(0.0)

    def run_all(self, limit: int = 10000) -> None:
        """Run every queued callback in due order, advancing the clock."""
        for _ in range(limit):
            if not self._queue:
                return
            due, _, call = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            if not call.cancelled:
                call.callback()
        raise FrameworkError(f"Scheduler did not settle after {limit} callbacks")
