"""Tests for decorators and test class collection."""

from deferunit import decorators as du
from deferunit.core.async_handle import AsyncFactory
from deferunit.core.helper import TestClassHelper, source_location
from deferunit.core.models import ResultStatus
from deferunit.core.scheduler import ManualScheduler


class BaseCases:
    @du.before_class
    def base_setup_class(self):
        pass

    @du.before
    def base_setup(self):
        pass


class SampleCases(BaseCases):
    created = 0

    def __init__(self):
        SampleCases.created += 1

    @du.before
    def setup(self):
        pass

    @du.after
    def teardown(self):
        pass

    @du.after_class
    def teardown_class(self):
        pass

    @du.test
    def zeta(self):
        pass

    @du.test("adds two numbers")
    def alpha(self):
        pass

    @du.async_test
    def waits(self, factory):
        pass

    @du.ignore("flaky on CI")
    @du.test
    def skipped(self):
        pass

    @du.test
    @du.debug_only
    def only_in_debug(self):
        pass

    def helper_method(self):
        pass


def make_helper(debug=False):
    factory = AsyncFactory(ManualScheduler())
    return TestClassHelper(SampleCases, factory, debug=debug), factory


class TestDecorators:
    """Tests for the marker decorators."""

    def test_bare_and_described(self):
        """Test decorators work bare and with a description."""
        assert du.get_meta(SampleCases.zeta) == {"kind": "test", "async": False, "description": ""}
        assert du.get_meta(SampleCases.alpha)["description"] == "adds two numbers"

    def test_async_flag(self):
        """Test async_test marks the test as async."""
        assert du.get_meta(SampleCases.waits)["async"] is True

    def test_ignore_stacks_in_any_order(self):
        """Test ignore works above and below test."""

        @du.test
        @du.ignore
        def below():
            pass

        assert du.get_meta(below)["ignore"] is True
        assert du.get_meta(below)["kind"] == "test"
        assert du.get_meta(SampleCases.skipped)["ignore_reason"] == "flaky on CI"

    def test_functions_are_not_wrapped(self):
        """Test decorators return the original function."""

        def body():
            return "value"

        assert du.test(body) is body
        assert body() == "value"

    def test_undecorated_has_no_meta(self):
        """Test plain methods carry no metadata."""
        assert du.get_meta(SampleCases.helper_method) is None


class TestTestClassHelper:
    """Tests for TestClassHelper."""

    def test_instantiates_class_once(self):
        """Test the class is instantiated once per helper."""
        before = SampleCases.created
        make_helper()
        assert SampleCases.created == before + 1

    def test_collects_hooks_base_first(self):
        """Test hook lists are in definition order, base classes first."""
        helper, _ = make_helper()

        assert [h.__name__ for h in helper.before_class] == ["base_setup_class"]
        assert [h.__name__ for h in helper.before] == ["base_setup", "setup"]
        assert [h.__name__ for h in helper.after] == ["teardown"]
        assert [h.__name__ for h in helper.after_class] == ["teardown_class"]
        assert helper.hooks(du.BEFORE) is helper.before

    def test_cases_sorted_by_name(self):
        """Test cases are sorted by method name and debug tests dropped."""
        helper, _ = make_helper()
        assert [c.result.name for c in helper.cases] == ["alpha", "skipped", "waits", "zeta"]

    def test_debug_includes_debug_only(self):
        """Test debug mode includes debug-only tests."""
        helper, _ = make_helper(debug=True)
        assert "only_in_debug" in [c.result.name for c in helper.cases]

    def test_case_records(self):
        """Test case records carry arguments, flags and location."""
        helper, factory = make_helper()
        cases = {c.result.name: c for c in helper.cases}

        assert cases["alpha"].arguments == []
        assert cases["alpha"].result.description == "adds two numbers"
        assert cases["waits"].arguments == [factory]
        assert cases["waits"].result.async_ is True
        assert cases["skipped"].ignore is True
        assert cases["skipped"].result.description == "flaky on CI"
        assert cases["zeta"].result.class_name == "SampleCases"
        assert cases["zeta"].result.status == ResultStatus.PENDING
        assert cases["zeta"].result.location == source_location(SampleCases.zeta)

    def test_cursor(self):
        """Test the cursor survives breaking out of iteration."""
        helper, _ = make_helper()
        assert helper.current() is None

        for case in helper:
            if case.result.name == "skipped":
                break

        assert helper.current().result.name == "skipped"
        assert [c.result.name for c in helper] == ["waits", "zeta"]
        assert not helper.has_next()
        assert list(helper) == []

    def test_rebind(self):
        """Test rebinding a case to a continuation clears its arguments."""
        helper, _ = make_helper()
        case = helper.cases[2]
        case.rebind(lambda: "continued")

        assert case.arguments == []
        assert case.invoke() == "continued"
