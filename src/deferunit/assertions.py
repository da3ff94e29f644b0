"""Assertion helpers raising ``AssertionFailure``."""

import inspect
from typing import Any, Callable, Optional

from deferunit.errors import AssertionFailure


def _location() -> Optional[str]:
    frame = inspect.currentframe()
    try:
        # _location -> Assert method -> test code
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            return None
        return f"{caller.f_code.co_filename}:{caller.f_lineno}"
    finally:
        del frame


class Assert:
    """Static assertion methods; each call counts toward ``assertion_count``."""

    assertion_count = 0

    @classmethod
    def _check(cls, condition: bool, message: str, location: Optional[str], **extra: Any) -> None:
        cls.assertion_count += 1
        if not condition:
            raise AssertionFailure(message, location, **extra)

    @classmethod
    def is_true(cls, value: Any, message: str = "") -> None:
        cls._check(value is True, message or f"Expected True but was {value!r}", _location())

    @classmethod
    def is_false(cls, value: Any, message: str = "") -> None:
        cls._check(value is False, message or f"Expected False but was {value!r}", _location())

    @classmethod
    def is_none(cls, value: Any, message: str = "") -> None:
        cls._check(value is None, message or f"Expected None but was {value!r}", _location())

    @classmethod
    def is_not_none(cls, value: Any, message: str = "") -> None:
        cls._check(value is not None, message or "Expected a value but was None", _location())

    @classmethod
    def are_equal(cls, expected: Any, actual: Any, message: str = "") -> None:
        cls._check(
            expected == actual,
            message or f"Value [{actual!r}] was not equal to expected value [{expected!r}]",
            _location(),
            expected=expected,
            actual=actual,
        )

    @classmethod
    def are_not_equal(cls, expected: Any, actual: Any, message: str = "") -> None:
        cls._check(
            expected != actual,
            message or f"Value [{actual!r}] was equal to value [{expected!r}]",
            _location(),
            expected=expected,
            actual=actual,
        )

    @classmethod
    def is_type(cls, value: Any, expected_type: type, message: str = "") -> None:
        cls._check(
            isinstance(value, expected_type),
            message or f"Value [{value!r}] was not of type {expected_type.__name__}",
            _location(),
            expected=expected_type,
            actual=type(value),
        )

    @classmethod
    def raises(
        cls, func: Callable[[], Any], expected_type: type = Exception, message: str = ""
    ) -> BaseException:
        """Assert that ``func`` raises ``expected_type`` and return the exception."""
        location = _location()
        cls.assertion_count += 1
        try:
            func()
        except expected_type as e:
            return e
        raise AssertionFailure(
            message or f"Expected {expected_type.__name__} to be raised", location
        )

    @classmethod
    def fail(cls, message: str) -> None:
        cls._check(False, message, _location())
