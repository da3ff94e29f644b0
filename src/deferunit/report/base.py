"""Result sink interface."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from deferunit.core.models import TestResult


class ResultSink(ABC):
    """Receives per-case outcomes and the final run summary.

    A sink acknowledges the summary by calling ``complete()``, immediately or
    later (for example once its output has been flushed). The runner waits
    for every registered sink before it reports completion.
    """

    id: str = "sink"

    def __init__(self):
        self.completion_handler: Optional[Callable[["ResultSink"], None]] = None

    @abstractmethod
    def add_pass(self, result: TestResult) -> None:
        pass

    @abstractmethod
    def add_fail(self, result: TestResult) -> None:
        pass

    @abstractmethod
    def add_error(self, result: TestResult) -> None:
        pass

    @abstractmethod
    def add_ignore(self, result: TestResult) -> None:
        pass

    @abstractmethod
    def report_final_statistics(
        self,
        total: int,
        passed: int,
        failed: int,
        errors: int,
        ignored: int,
        elapsed: float,
    ) -> None:
        """Receive the run summary. Must eventually lead to ``complete()``."""
        pass

    def complete(self) -> None:
        """Acknowledge the final summary."""
        if self.completion_handler is not None:
            self.completion_handler(self)


class AdvancedResultSink(ResultSink):
    """Sink that also wants to know which test class is running."""

    @abstractmethod
    def set_current_test_class(self, class_name: Optional[str]) -> None:
        """Called with the class name before its cases, and with None before the summary."""
        pass
