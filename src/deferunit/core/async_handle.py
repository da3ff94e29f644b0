"""Async test handles and the factory that produces them.

An async test receives an ``AsyncFactory`` and asks it for a handler. The
handler is passed to the code under test; calling it resolves the test. If
it is not called before the timeout, the test times out instead.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from deferunit.core.scheduler import ScheduledCall, Scheduler
from deferunit.errors import FrameworkError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 0.4


class AsyncObserver(ABC):
    """Receives lifecycle notifications from async handles."""

    @abstractmethod
    def on_async_created(self, handle: "AsyncHandle") -> None:
        pass

    @abstractmethod
    def on_async_success(self, handle: "AsyncHandle") -> None:
        pass

    @abstractmethod
    def on_async_timeout(self, handle: "AsyncHandle") -> None:
        pass


class AsyncHandle:
    """One outstanding asynchronous test continuation.

    A handle resolves at most once: by its response handler being called,
    by its timer expiring, or by being cancelled.
    """

    def __init__(
        self,
        observer: Optional[AsyncObserver],
        scheduler: Scheduler,
        handler: Callable[..., Any],
        timeout: float,
        timeout_handler: Optional[Callable[[], Any]] = None,
        location: Optional[str] = None,
    ):
        self.observer = observer
        self.scheduler = scheduler
        self.handler = handler
        self.timeout = timeout
        self.timeout_handler = timeout_handler
        self.location = location

        self.timed_out = False
        self.responded = False
        self.cancelled = False
        self._args: tuple = ()
        self._kwargs: dict = {}
        self._delivery: Optional[ScheduledCall] = None

        self._timer: Optional[ScheduledCall] = scheduler.call_later(
            timeout, self._timeout_expired
        )
        if observer is not None:
            observer.on_async_created(self)

    @property
    def has_timeout_handler(self) -> bool:
        return self.timeout_handler is not None

    @property
    def resolved(self) -> bool:
        return self.responded or self.timed_out or self.cancelled

    def response_handler(self, *args: Any, **kwargs: Any) -> None:
        """Signal that the asynchronous operation completed.

        Delivery to the observer is deferred to the next scheduler turn so
        the engine never resumes inside the code that called the handler.
        """
        if self.resolved:
            logger.warning(
                "Ignoring late async response for %s (timed_out=%s, cancelled=%s)",
                self.location,
                self.timed_out,
                self.cancelled,
            )
            return

        self.responded = True
        self._args = args
        self._kwargs = kwargs
        self._stop_timer()
        self._delivery = self.scheduler.call_later(0, self._deliver_response)

    def run_test(self) -> Any:
        """Invoke the success continuation with the captured response arguments."""
        return self.handler(*self._args, **self._kwargs)

    def run_timeout(self) -> Any:
        """Invoke the timeout continuation."""
        if self.timeout_handler is None:
            raise FrameworkError("Async handle has no timeout handler", self.location)
        return self.timeout_handler()

    def cancel(self) -> None:
        """Stop the timer, drop any queued response and detach the observer."""
        self.cancelled = True
        self._stop_timer()
        if self._delivery is not None:
            self._delivery.cancel()
            self._delivery = None
        self.observer = None

    def _deliver_response(self) -> None:
        self._delivery = None
        observer = self.observer
        if observer is None or self.cancelled:
            return
        observer.on_async_success(self)

    def _timeout_expired(self) -> None:
        self._timer = None
        if self.resolved:
            return
        self.timed_out = True
        logger.debug("Async handle timed out after %.3fs (%s)", self.timeout, self.location)
        if self.observer is not None:
            self.observer.on_async_timeout(self)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncFactory:
    """Creates async handles bound to the runner observing them."""

    def __init__(self, scheduler: Scheduler, default_timeout: float = DEFAULT_TIMEOUT):
        """Initialize the factory.

        Args:
            scheduler: Source of timers for timeouts and deferred responses
            default_timeout: Timeout in seconds used when a handler gives none
        """
        self.scheduler = scheduler
        self.default_timeout = default_timeout
        self.observer: Optional[AsyncObserver] = None
        self.handle_count = 0

    def create_handler(
        self,
        handler: Callable[..., Any],
        timeout: Optional[float] = None,
        timeout_handler: Optional[Callable[[], Any]] = None,
    ) -> Callable[..., None]:
        """Create an async handle and return its response callable.

        Args:
            handler: Continuation run when the response arrives; receives the
                arguments the response callable was called with
            timeout: Seconds to wait before timing out (factory default if None)
            timeout_handler: Optional continuation run instead of erroring on timeout

        Returns:
            Callable to hand to the code under test
        """
        handle = AsyncHandle(
            self.observer,
            self.scheduler,
            handler,
            self.default_timeout if timeout is None else timeout,
            timeout_handler,
            _caller_location(),
        )
        self.handle_count += 1
        return handle.response_handler


def _caller_location() -> Optional[str]:
    frame = inspect.currentframe()
    try:
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            return None
        return f"{caller.f_code.co_filename}:{caller.f_lineno}"
    finally:
        del frame
