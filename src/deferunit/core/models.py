"""Data models for test results and run statistics."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from deferunit.errors import AssertionFailure, DeferunitError, FrameworkError


class ResultStatus(str, Enum):
    """Status of a test result."""

    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"
    IGNORED = "ignored"


@dataclass
class TestResult:
    """Outcome record owned by a single test case.

    A result moves from ``PENDING`` to exactly one terminal status.
    """

    __test__ = False

    name: str = ""
    class_name: str = ""
    description: str = ""
    location: str = ""
    async_: bool = False
    ignore: bool = False
    status: ResultStatus = ResultStatus.PENDING
    failure: Optional[AssertionFailure] = None
    error: Optional[DeferunitError] = None
    execution_time: float = 0.0
    assertions: int = 0

    @property
    def full_name(self) -> str:
        """Get the qualified test name."""
        if self.class_name:
            return f"{self.class_name}.{self.name}"
        return self.name

    @property
    def terminal(self) -> bool:
        return self.status is not ResultStatus.PENDING

    @property
    def passed(self) -> bool:
        return self.status is ResultStatus.PASSED

    def mark_passed(self, execution_time: float) -> None:
        self._transition(ResultStatus.PASSED)
        self.execution_time = execution_time

    def mark_failed(self, failure: AssertionFailure, execution_time: float) -> None:
        self._transition(ResultStatus.FAILED)
        self.failure = failure
        self.execution_time = execution_time

    def mark_errored(self, error: DeferunitError, execution_time: float) -> None:
        self._transition(ResultStatus.ERRORED)
        self.error = error
        self.execution_time = execution_time

    def mark_ignored(self) -> None:
        self._transition(ResultStatus.IGNORED)

    def _transition(self, status: ResultStatus) -> None:
        if self.terminal:
            raise FrameworkError(
                f"Result for {self.full_name} is already {self.status.value}, "
                f"cannot mark it {status.value}",
                self.location,
            )
        self.status = status

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "class_name": self.class_name,
            "description": self.description,
            "location": self.location,
            "async": self.async_,
            "status": self.status.value,
            "failure": self.failure.to_dict() if self.failure else None,
            "error": self.error.to_dict() if self.error else None,
            "duration_ms": int(self.execution_time * 1000),
            "assertions": self.assertions,
        }


@dataclass
class RunStatistics:
    """Final counts reported to every sink at the end of a run."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0
    ignored: int = 0
    elapsed: float = 0.0

    @property
    def successful(self) -> bool:
        return self.passed == self.total

    @property
    def pass_rate(self) -> float:
        """Calculate the pass rate."""
        if self.total == 0:
            return 0.0
        return self.passed / self.total

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "ignored": self.ignored,
            "elapsed": self.elapsed,
            "successful": self.successful,
        }
