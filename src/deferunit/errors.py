"""Error taxonomy for test execution.

Every error the engine records carries a ``kind`` tag. The runner routes
results by matching on that tag rather than probing exception types.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag identifying how an error is routed."""

    ASSERTION = "assertion"
    TIMEOUT = "timeout"
    UNHANDLED = "unhandled"
    FRAMEWORK = "framework"


class DeferunitError(Exception):
    """Base class for all errors recorded against a test result."""

    kind: ErrorKind = ErrorKind.FRAMEWORK

    def __init__(self, message: str = "", location: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    @property
    def type_name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "type": self.type_name,
            "message": self.message,
            "location": self.location,
        }

    def __str__(self) -> str:
        if self.location:
            return f"{self.message} ({self.location})"
        return self.message


class AssertionFailure(DeferunitError):
    """Raised by the assertion layer when an expectation does not hold."""

    kind = ErrorKind.ASSERTION

    def __init__(
        self,
        message: str = "",
        location: Optional[str] = None,
        expected: object = None,
        actual: object = None,
    ):
        super().__init__(message, location)
        self.expected = expected
        self.actual = actual

    @classmethod
    def from_assertion_error(
        cls, error: AssertionError, location: Optional[str] = None
    ) -> "AssertionFailure":
        """Adapt a plain ``AssertionError`` (``assert``, pytest, hamcrest)."""
        message = str(error) or "Assertion failed"
        adapted = cls(message, location or _traceback_location(error))
        adapted.__cause__ = error
        return adapted


class AsyncTimeoutError(DeferunitError):
    """An async test did not receive its callback within the allotted time."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout: float, location: Optional[str] = None):
        super().__init__(f"Async test timed out after {timeout * 1000:.0f}ms", location)
        self.timeout = timeout


class UnhandledError(DeferunitError):
    """Wraps any other exception raised from a test body or hook."""

    kind = ErrorKind.UNHANDLED

    def __init__(self, cause: BaseException, location: Optional[str] = None):
        super().__init__(f"{type(cause).__name__}: {cause}", location)
        self.cause = cause
        self.__cause__ = cause

    @property
    def type_name(self) -> str:
        return type(self.cause).__name__


class FrameworkError(DeferunitError):
    """Misuse of the engine itself."""

    kind = ErrorKind.FRAMEWORK


class MissingAsyncHandleError(FrameworkError):
    """An async test returned without registering an async handler."""

    def __init__(self, location: Optional[str] = None):
        super().__init__(
            "Async test did not create an async handler via the factory", location
        )


def classify(error: BaseException, location: Optional[str] = None) -> DeferunitError:
    """Return the error value to record for an exception raised by a test.

    Foreign assertion errors are adapted into ``AssertionFailure``, errors
    already in the taxonomy pass through, anything else is wrapped.
    """
    if isinstance(error, DeferunitError):
        return error
    if isinstance(error, AssertionError):
        return AssertionFailure.from_assertion_error(error, location)
    return UnhandledError(error, location)


def _traceback_location(error: BaseException) -> Optional[str]:
    tb = error.__traceback__
    if tb is None:
        return None
    while tb.tb_next is not None:
        tb = tb.tb_next
    return f"{tb.tb_frame.f_code.co_filename}:{tb.tb_lineno}"
