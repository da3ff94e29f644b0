"""
deferunit - xUnit-style test runner with asynchronous tests.

This package provides:
- Decorators to declare tests and lifecycle hooks on plain classes
- Async tests that complete through a callback, with per-test timeouts
- An execution engine that reports to any number of result sinks
- Console and HTML result sinks
"""

__version__ = "0.1.0"

from deferunit.assertions import Assert
from deferunit.core import AsyncFactory, TestRunner, TestSuite
from deferunit.decorators import (
    after,
    after_class,
    async_test,
    before,
    before_class,
    debug_only,
    ignore,
    test,
)

__all__ = [
    "Assert",
    "AsyncFactory",
    "TestRunner",
    "TestSuite",
    "after",
    "after_class",
    "async_test",
    "before",
    "before_class",
    "debug_only",
    "ignore",
    "test",
]
