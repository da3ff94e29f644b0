"""Test execution engine.

The runner walks suites, classes and cases one test at a time. A test that
creates an async handler suspends traversal; traversal resumes from the
handle's success or timeout callback and may run on through further
classes and suites from within that callback.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, Union

from deferunit import decorators
from deferunit.assertions import Assert
from deferunit.config import ExecutionConfig
from deferunit.core.async_handle import AsyncFactory, AsyncHandle, AsyncObserver
from deferunit.core.helper import TestCaseData, TestClassHelper, source_location
from deferunit.core.models import RunStatistics, TestResult
from deferunit.core.scheduler import AsyncioScheduler, Scheduler
from deferunit.core.suite import TestSuite
from deferunit.errors import (
    AsyncTimeoutError,
    DeferunitError,
    ErrorKind,
    FrameworkError,
    MissingAsyncHandleError,
    classify,
)
from deferunit.report.base import AdvancedResultSink, ResultSink

logger = logging.getLogger(__name__)

SuiteLike = Union[TestSuite, type]


@dataclass
class RunSession:
    """State of one run, from ``run()`` until every sink has acknowledged."""

    suites: list[TestSuite]
    debug: bool = False
    start_time: float = 0.0

    # Traversal cursor; the case cursor lives on the helper.
    suite_index: int = 0
    class_index: int = 0
    helper: Optional[TestClassHelper] = None
    helper_position: Optional[tuple[int, int]] = None

    total: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0
    ignored: int = 0

    test_start_time: float = 0.0
    assertion_start: int = 0
    handles_created: int = 0
    pending: list[AsyncHandle] = field(default_factory=list)
    orphan_case: Optional[TestCaseData] = None

    summary_reported: bool = False
    sink_acks: int = 0
    acknowledged: list[ResultSink] = field(default_factory=list)
    elapsed: float = 0.0
    done: Optional[asyncio.Future] = None

    def statistics(self) -> RunStatistics:
        return RunStatistics(
            total=self.total,
            passed=self.passed,
            failed=self.failed,
            errors=self.errors,
            ignored=self.ignored,
            elapsed=self.elapsed,
        )


class TestRunner(AsyncObserver):
    """Runs test suites and reports outcomes to every registered sink."""

    __test__ = False

    def __init__(
        self,
        async_factory: Optional[AsyncFactory] = None,
        scheduler: Optional[Scheduler] = None,
        config: Optional[ExecutionConfig] = None,
    ):
        """Initialize the runner.

        Args:
            async_factory: Factory handed to async tests (one is created if None)
            scheduler: Timer source for completion and async handles
                (the factory's scheduler, else the running asyncio loop)
            config: Execution settings
        """
        self.config = config or ExecutionConfig()
        if scheduler is None:
            scheduler = async_factory.scheduler if async_factory else AsyncioScheduler()
        self.scheduler = scheduler

        self.sinks: list[ResultSink] = []
        self.completion_handler: Optional[Callable[[bool], Any]] = None

        self._running = False
        self._session: Optional[RunSession] = None
        self._last_statistics: Optional[RunStatistics] = None
        self._async_factory: Optional[AsyncFactory] = None
        self.async_factory = async_factory or AsyncFactory(
            self.scheduler, self.config.async_timeout
        )

    @property
    def running(self) -> bool:
        return self._running

    @property
    def async_factory(self) -> AsyncFactory:
        return self._async_factory

    @async_factory.setter
    def async_factory(self, factory: AsyncFactory) -> None:
        if self._running:
            raise FrameworkError("Can't change the async factory while tests are running")
        factory.observer = self
        self._async_factory = factory

    @property
    def statistics(self) -> Optional[RunStatistics]:
        """Counts of the active run, or of the last finished run."""
        if self._session is not None:
            return self._session.statistics()
        return self._last_statistics

    def add_result_sink(self, sink: ResultSink) -> None:
        """Register a sink. Registering the same sink again has no effect."""
        if self._running:
            raise FrameworkError("Can't add a result sink while tests are running")
        if any(existing is sink for existing in self.sinks):
            return
        sink.completion_handler = self._sink_completed
        self.sinks.append(sink)

    def run(self, suites: Sequence[SuiteLike]) -> None:
        """Run the given suites.

        The run may finish before this returns or stay suspended on async
        tests; completion is signalled through ``completion_handler``.
        Calling this while a run is active does nothing.
        """
        self._start(suites, debug=self.config.debug)

    def debug(self, suites: Sequence[SuiteLike]) -> None:
        """Like ``run`` but also includes tests marked ``debug_only``."""
        self._start(suites, debug=True)

    async def run_async(self, suites: Sequence[SuiteLike], debug: bool = False) -> bool:
        """Run the given suites and wait until every sink has acknowledged.

        Returns:
            True if every test that ran passed
        """
        if self._running:
            raise FrameworkError("A run is already in progress")
        done = asyncio.get_running_loop().create_future()
        self._start(suites, debug=debug, done=done)
        return await done

    def _start(
        self,
        suites: Sequence[SuiteLike],
        debug: bool,
        done: Optional[asyncio.Future] = None,
    ) -> None:
        if self._running:
            logger.debug("Run already in progress, ignoring new request")
            return

        instances = [s() if isinstance(s, type) else s for s in suites]
        self._running = True
        self._session = RunSession(
            suites=instances, debug=debug, start_time=time.time(), done=done
        )
        logger.info(
            "Starting %s of %d suite(s)", "debug run" if debug else "run", len(instances)
        )
        self._execute()

    def _execute(self) -> None:
        s = self._session
        while s.suite_index < len(s.suites):
            suite = s.suites[s.suite_index]
            while s.class_index < len(suite):
                position = (s.suite_index, s.class_index)
                if s.helper_position != position:
                    if not self._enter_class(suite[s.class_index]):
                        s.class_index += 1
                        continue
                    s.helper_position = position
                    self._run_hooks(decorators.BEFORE_CLASS)

                self._execute_test_cases()
                if self._is_async_pending():
                    logger.debug(
                        "Suspending in %s with %d pending async handle(s)",
                        s.helper.class_name,
                        len(s.pending),
                    )
                    return

                self._run_hooks(decorators.AFTER_CLASS)
                s.class_index += 1
            s.suite_index += 1
            s.class_index = 0

        self._report_final_statistics()

    def _enter_class(self, test_class: type) -> bool:
        s = self._session
        try:
            s.helper = TestClassHelper(test_class, self.async_factory, s.debug)
        except Exception as e:
            logger.debug("Could not set up test class %s: %s", test_class.__name__, e)
            s.helper = None
            s.test_start_time = time.time()
            result = TestResult(
                name="__init__ [setup]",
                class_name=test_class.__name__,
                location=source_location(test_class.__init__),
            )
            s.total += 1
            self._record_failure(result, classify(e, result.location))
            return False
        return True

    def _execute_test_cases(self) -> None:
        s = self._session
        helper = s.helper
        for sink in self.sinks:
            if isinstance(sink, AdvancedResultSink):
                sink.set_current_test_class(helper.class_name)

        for case in helper:
            result = case.result
            if case.ignore:
                s.ignored += 1
                result.mark_ignored()
                for sink in self.sinks:
                    sink.add_ignore(result)
                continue

            s.total += 1
            s.assertion_start = Assert.assertion_count
            s.test_start_time = time.time()
            if self._run_hooks(decorators.BEFORE, case):
                s.test_start_time = time.time()
                self._execute_test_case(case, result.async_)

            if self._is_async_pending():
                break
            self._run_hooks(decorators.AFTER, case)

    def _execute_test_case(self, case: TestCaseData, expects_async: bool = False) -> None:
        s = self._session
        result = case.result
        created_before = s.handles_created
        try:
            case.invoke()
            if expects_async and s.handles_created == created_before:
                raise MissingAsyncHandleError(result.location)
        except Exception as e:
            self._cancel_all_pending_async_tests()
            self._record_failure(result, classify(e, result.location))
            return

        if self._is_async_pending():
            return

        result.assertions = Assert.assertion_count - s.assertion_start
        result.mark_passed(self._case_duration())
        s.passed += 1
        for sink in self.sinks:
            sink.add_pass(result)

    def _run_hooks(self, kind: str, case: Optional[TestCaseData] = None) -> bool:
        """Run the active class's hooks of one kind.

        Returns False if a before-each hook failed, in which case the
        remaining before-each hooks and the test body are skipped.
        """
        for hook in self._session.helper.hooks(kind):
            try:
                hook()
            except Exception as e:
                self._hook_failed(kind, hook, e, case)
                if kind == decorators.BEFORE:
                    return False
        return True

    def _hook_failed(
        self,
        kind: str,
        hook: Callable[[], Any],
        error: Exception,
        case: Optional[TestCaseData],
    ) -> None:
        s = self._session
        self._cancel_all_pending_async_tests()
        location = source_location(hook)
        if case is not None and not case.result.terminal:
            result = case.result
        else:
            # No open case to blame; record the hook as a result of its own.
            result = TestResult(
                name=f"{getattr(hook, '__name__', 'hook')} [{kind}]",
                class_name=s.helper.class_name,
                location=location,
            )
            s.total += 1
        self._record_failure(result, classify(error, location))

    def _record_failure(self, result: TestResult, error: DeferunitError) -> None:
        s = self._session
        result.assertions = Assert.assertion_count - s.assertion_start
        duration = self._case_duration()
        if error.kind is ErrorKind.ASSERTION:
            result.mark_failed(error, duration)
            s.failed += 1
            for sink in self.sinks:
                sink.add_fail(result)
        else:
            result.mark_errored(error, duration)
            s.errors += 1
            for sink in self.sinks:
                sink.add_error(result)
        logger.debug("%s %s: %s", result.full_name, result.status.value, error)

    def _case_duration(self) -> float:
        return time.time() - self._session.test_start_time

    def _is_async_pending(self) -> bool:
        return bool(self._session.pending)

    def _cancel_all_pending_async_tests(self) -> None:
        s = self._session
        pending, s.pending = s.pending, []
        for handle in pending:
            handle.cancel()
        if pending:
            logger.debug("Cancelled %d pending async handle(s)", len(pending))

    def _take_pending(self, handle: AsyncHandle) -> bool:
        s = self._session
        if s is None:
            return False
        for i, candidate in enumerate(s.pending):
            if candidate is handle:
                del s.pending[i]
                return True
        return False

    def on_async_created(self, handle: AsyncHandle) -> None:
        s = self._session
        if s is None:
            logger.warning("Async handler created outside of a run (%s)", handle.location)
            return
        s.pending.append(handle)
        s.handles_created += 1

    def on_async_success(self, handle: AsyncHandle) -> None:
        if not self._take_pending(handle):
            return
        case, owned = self._resolution_case(handle)
        logger.debug("Async response received for %s", case.result.full_name)
        case.rebind(handle.run_test)
        self._execute_test_case(case)
        self._resume(case if owned else None)

    def on_async_timeout(self, handle: AsyncHandle) -> None:
        if not self._take_pending(handle):
            return
        case, owned = self._resolution_case(handle)
        logger.debug("Async handler timed out for %s", case.result.full_name)
        if handle.has_timeout_handler:
            case.rebind(handle.run_timeout)
            self._execute_test_case(case)
        else:
            self._cancel_all_pending_async_tests()
            self._record_failure(
                case.result,
                AsyncTimeoutError(handle.timeout, handle.location or case.result.location),
            )
        self._resume(case if owned else None)

    def _resolution_case(self, handle: AsyncHandle) -> tuple[TestCaseData, bool]:
        """Return the case an async resolution lands on.

        The flag is False when no open case owns the handle (for example a
        handler created by a before-class hook); the resolution is then
        recorded as a result of its own.
        """
        s = self._session
        case = s.helper.current() if s.helper is not None else None
        if case is not None and not case.result.terminal:
            return case, True
        if s.orphan_case is not None and not s.orphan_case.result.terminal:
            return s.orphan_case, False

        s.total += 1
        s.assertion_start = Assert.assertion_count
        s.test_start_time = time.time()
        result = TestResult(
            name="async handler [class]",
            class_name=s.helper.class_name if s.helper is not None else "",
            location=handle.location or "",
        )
        s.orphan_case = TestCaseData(target=handle.run_test, result=result)
        return s.orphan_case, False

    def _resume(self, case: Optional[TestCaseData]) -> None:
        if self._is_async_pending():
            return
        if case is not None:
            self._run_hooks(decorators.AFTER, case)
        self._execute()

    def _report_final_statistics(self) -> None:
        s = self._session
        s.elapsed = time.time() - s.start_time
        s.summary_reported = True
        logger.info(
            "Finished: %d run, %d passed, %d failed, %d errors, %d ignored in %.3fs",
            s.total,
            s.passed,
            s.failed,
            s.errors,
            s.ignored,
            s.elapsed,
        )

        if not self.sinks:
            self._finish()
            return

        for sink in list(self.sinks):
            if isinstance(sink, AdvancedResultSink):
                sink.set_current_test_class(None)
            sink.report_final_statistics(
                s.total, s.passed, s.failed, s.errors, s.ignored, s.elapsed
            )

    def _sink_completed(self, sink: ResultSink) -> None:
        s = self._session
        if s is None or not s.summary_reported:
            logger.warning("Sink %s acknowledged outside of a finished run", sink.id)
            return
        if any(acked is sink for acked in s.acknowledged):
            logger.warning("Ignoring repeated acknowledgment from sink %s", sink.id)
            return
        s.acknowledged.append(sink)
        s.sink_acks += 1
        if s.sink_acks == len(self.sinks):
            self._finish()

    def _finish(self) -> None:
        s = self._session
        successful = s.passed == s.total
        self._last_statistics = s.statistics()
        self._session = None
        self._running = False

        handler = self.completion_handler
        if handler is not None:
            try:
                self.scheduler.call_later(
                    self.config.completion_delay, lambda: handler(successful)
                )
            except FrameworkError:
                # Finished synchronously with no loop to defer onto.
                logger.debug("No event loop for deferred completion, calling handler now")
                handler(successful)
        if s.done is not None and not s.done.done():
            s.done.set_result(successful)
