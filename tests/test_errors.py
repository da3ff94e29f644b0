"""Tests for error classification."""

from deferunit.errors import (
    AssertionFailure,
    AsyncTimeoutError,
    ErrorKind,
    FrameworkError,
    MissingAsyncHandleError,
    UnhandledError,
    classify,
)


class TestErrorKinds:
    """Tests for the error kind tags."""

    def test_kinds(self):
        """Test each error class carries its routing tag."""
        assert AssertionFailure("x").kind is ErrorKind.ASSERTION
        assert AsyncTimeoutError(0.4).kind is ErrorKind.TIMEOUT
        assert UnhandledError(ValueError("x")).kind is ErrorKind.UNHANDLED
        assert FrameworkError("x").kind is ErrorKind.FRAMEWORK
        assert MissingAsyncHandleError().kind is ErrorKind.FRAMEWORK

    def test_timeout_message(self):
        """Test the timeout message includes the allotted time."""
        error = AsyncTimeoutError(0.25, "suite.py:10")
        assert "250ms" in error.message
        assert error.location == "suite.py:10"
        assert str(error).endswith("(suite.py:10)")


class TestClassify:
    """Tests for classify()."""

    def test_assertion_failure_passes_through(self):
        """Test that local assertion failures are returned unchanged."""
        failure = AssertionFailure("nope")
        assert classify(failure, "a.py:1") is failure

    def test_foreign_assertion_is_adapted(self):
        """Test that a plain AssertionError becomes an AssertionFailure."""
        try:
            raise AssertionError("numbers differ")
        except AssertionError as e:
            adapted = classify(e, "a.py:1")

        assert isinstance(adapted, AssertionFailure)
        assert adapted.message == "numbers differ"
        assert adapted.location == "a.py:1"
        assert isinstance(adapted.__cause__, AssertionError)

    def test_bare_assertion_gets_default_message(self):
        """Test adapting an AssertionError without a message."""
        adapted = classify(AssertionError())
        assert adapted.message == "Assertion failed"

    def test_framework_error_is_not_wrapped(self):
        """Test that recognised framework errors are recorded as-is."""
        error = MissingAsyncHandleError("a.py:3")
        assert classify(error, "a.py:1") is error

    def test_other_exceptions_are_wrapped(self):
        """Test that anything else is wrapped with the case location."""
        cause = KeyError("token")
        wrapped = classify(cause, "a.py:7")

        assert isinstance(wrapped, UnhandledError)
        assert wrapped.cause is cause
        assert wrapped.location == "a.py:7"
        assert wrapped.type_name == "KeyError"
        assert wrapped.to_dict()["kind"] == "unhandled"
