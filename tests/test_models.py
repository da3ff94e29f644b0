"""Tests for the result models."""

import pytest

from deferunit.core.models import ResultStatus, RunStatistics, TestResult
from deferunit.errors import AssertionFailure, FrameworkError, UnhandledError


class TestResultStatus:
    """Tests for ResultStatus enum."""

    def test_status_values(self):
        """Test that all expected statuses exist."""
        assert ResultStatus.PENDING.value == "pending"
        assert ResultStatus.PASSED.value == "passed"
        assert ResultStatus.FAILED.value == "failed"
        assert ResultStatus.ERRORED.value == "errored"
        assert ResultStatus.IGNORED.value == "ignored"


class TestTestResult:
    """Tests for TestResult model."""

    def test_default_values(self):
        """Test default values."""
        result = TestResult()
        assert result.status == ResultStatus.PENDING
        assert result.terminal is False
        assert result.failure is None
        assert result.error is None
        assert result.execution_time == 0.0

    def test_full_name(self):
        """Test qualified name with and without class."""
        assert TestResult(name="adds", class_name="MathTest").full_name == "MathTest.adds"
        assert TestResult(name="adds").full_name == "adds"

    def test_mark_passed(self):
        """Test passing a result."""
        result = TestResult(name="adds")
        result.mark_passed(0.25)
        assert result.passed
        assert result.terminal
        assert result.execution_time == 0.25

    def test_mark_failed(self):
        """Test failing a result keeps the failure detail."""
        failure = AssertionFailure("expected 1 but was 2", expected=1, actual=2)
        result = TestResult(name="adds")
        result.mark_failed(failure, 0.1)
        assert result.status == ResultStatus.FAILED
        assert result.failure is failure

    def test_mark_errored(self):
        """Test erroring a result keeps the error detail."""
        error = UnhandledError(KeyError("missing"))
        result = TestResult(name="adds")
        result.mark_errored(error, 0.1)
        assert result.status == ResultStatus.ERRORED
        assert result.error is error

    def test_terminal_state_is_written_once(self):
        """Test that a terminal result cannot be rewritten."""
        result = TestResult(name="adds", class_name="MathTest")
        result.mark_passed(0.1)

        with pytest.raises(FrameworkError):
            result.mark_failed(AssertionFailure("late"), 0.2)

        assert result.status == ResultStatus.PASSED
        assert result.failure is None

    def test_to_dict(self):
        """Test converting to dictionary."""
        result = TestResult(name="adds", class_name="MathTest", location="math_test.py:12")
        result.mark_errored(UnhandledError(ValueError("bad")), 1.5)

        d = result.to_dict()
        assert d["name"] == "adds"
        assert d["status"] == "errored"
        assert d["duration_ms"] == 1500
        assert d["failure"] is None
        assert d["error"]["type"] == "ValueError"
        assert d["error"]["kind"] == "unhandled"


class TestRunStatistics:
    """Tests for RunStatistics model."""

    def test_successful_when_all_passed(self):
        """Test success is pass count equal to total."""
        assert RunStatistics(total=3, passed=3).successful
        assert not RunStatistics(total=3, passed=2, failed=1).successful

    def test_empty_run_is_successful(self):
        """Test a run with nothing executed counts as successful."""
        stats = RunStatistics(ignored=2)
        assert stats.successful
        assert stats.pass_rate == 0.0

    def test_pass_rate(self):
        """Test pass rate calculation."""
        assert RunStatistics(total=4, passed=3, failed=1).pass_rate == 0.75

    def test_to_dict(self):
        """Test converting to dictionary."""
        d = RunStatistics(total=2, passed=1, failed=1, elapsed=0.5).to_dict()
        assert d["total"] == 2
        assert d["failed"] == 1
        assert d["successful"] is False
