"""In-memory result sink."""

from dataclasses import dataclass, field
from typing import Optional

from deferunit.core.models import RunStatistics, TestResult
from deferunit.report.base import AdvancedResultSink


@dataclass
class SinkEvent:
    """A single call received by a ``CollectingSink``."""

    kind: str
    result: Optional[TestResult] = None
    class_name: Optional[str] = None


class CollectingSink(AdvancedResultSink):
    """Records every notification for programmatic inspection.

    With ``auto_complete=False`` the sink holds back its acknowledgment until
    ``complete()`` is called, which keeps the run open.
    """

    id = "collector"

    def __init__(self, auto_complete: bool = True):
        super().__init__()
        self.auto_complete = auto_complete
        self.events: list[SinkEvent] = []
        self.statistics: list[RunStatistics] = []

    def _record(self, kind: str, result: TestResult) -> None:
        self.events.append(SinkEvent(kind=kind, result=result, class_name=result.class_name))

    def add_pass(self, result: TestResult) -> None:
        self._record("pass", result)

    def add_fail(self, result: TestResult) -> None:
        self._record("fail", result)

    def add_error(self, result: TestResult) -> None:
        self._record("error", result)

    def add_ignore(self, result: TestResult) -> None:
        self._record("ignore", result)

    def set_current_test_class(self, class_name: Optional[str]) -> None:
        self.events.append(SinkEvent(kind="class", class_name=class_name))

    def report_final_statistics(self, total, passed, failed, errors, ignored, elapsed) -> None:
        self.statistics.append(
            RunStatistics(
                total=total,
                passed=passed,
                failed=failed,
                errors=errors,
                ignored=ignored,
                elapsed=elapsed,
            )
        )
        if self.auto_complete:
            self.complete()

    def results(self, kind: Optional[str] = None) -> list[TestResult]:
        """Results received, optionally filtered by ``pass``/``fail``/``error``/``ignore``."""
        return [
            e.result
            for e in self.events
            if e.result is not None and (kind is None or e.kind == kind)
        ]

    @property
    def last_statistics(self) -> Optional[RunStatistics]:
        return self.statistics[-1] if self.statistics else None
