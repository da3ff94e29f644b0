"""Core test execution functionality."""

from deferunit.core.async_handle import AsyncFactory, AsyncHandle
from deferunit.core.helper import TestCaseData, TestClassHelper
from deferunit.core.models import ResultStatus, RunStatistics, TestResult
from deferunit.core.runner import TestRunner
from deferunit.core.scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from deferunit.core.suite import TestSuite

__all__ = [
    "AsyncFactory",
    "AsyncHandle",
    "AsyncioScheduler",
    "ManualScheduler",
    "ResultStatus",
    "RunStatistics",
    "Scheduler",
    "TestCaseData",
    "TestClassHelper",
    "TestResult",
    "TestRunner",
    "TestSuite",
]
