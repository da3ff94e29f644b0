"""Collects hooks and test cases from a test class."""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from deferunit import decorators
from deferunit.core.async_handle import AsyncFactory
from deferunit.core.models import TestResult


def source_location(func: Callable) -> str:
    """Return ``file:line`` for a function or bound method."""
    func = inspect.unwrap(getattr(func, "__func__", func))
    code = getattr(func, "__code__", None)
    if code is None:
        return ""
    return f"{code.co_filename}:{code.co_firstlineno}"


@dataclass
class TestCaseData:
    """One test method with its arguments and outcome record."""

    __test__ = False

    target: Callable[..., Any]
    arguments: list = field(default_factory=list)
    result: TestResult = field(default_factory=TestResult)

    @property
    def ignore(self) -> bool:
        return self.result.ignore

    def invoke(self) -> Any:
        return self.target(*self.arguments)

    def rebind(self, target: Callable[..., Any]) -> None:
        """Point the case at an async continuation; it takes no arguments."""
        self.target = target
        self.arguments = []


class TestClassHelper:
    """Instantiates a test class and iterates its cases with an explicit cursor."""

    __test__ = False

    def __init__(self, test_class: type, async_factory: AsyncFactory, debug: bool = False):
        """Initialize the helper.

        Args:
            test_class: Class declaring tests with the decorators module
            async_factory: Factory passed to async tests
            debug: Include tests marked ``debug_only``
        """
        self.test_class = test_class
        self.async_factory = async_factory
        self.debug = debug
        self.class_name = test_class.__name__
        self.instance = test_class()

        self.before_class: list[Callable[[], Any]] = []
        self.after_class: list[Callable[[], Any]] = []
        self.before: list[Callable[[], Any]] = []
        self.after: list[Callable[[], Any]] = []
        self.cases: list[TestCaseData] = []
        self.index = 0

        self._collect()

    def _collect(self) -> None:
        hooks = {
            decorators.BEFORE_CLASS: self.before_class,
            decorators.AFTER_CLASS: self.after_class,
            decorators.BEFORE: self.before,
            decorators.AFTER: self.after,
        }
        tests: dict[str, dict] = {}
        seen: set[str] = set()

        # Base classes first so inherited hooks run before the subclass's own.
        for klass in reversed(self.test_class.__mro__):
            for name, value in vars(klass).items():
                meta = decorators.get_meta(value)
                if meta is None or "kind" not in meta:
                    continue
                if meta["kind"] == decorators.TEST:
                    tests[name] = meta
                elif name not in seen:
                    seen.add(name)
                    hooks[meta["kind"]].append(getattr(self.instance, name))

        for name in sorted(tests):
            meta = tests[name]
            if meta.get("debug") and not self.debug:
                continue
            self.cases.append(self._make_case(name, meta))

    def _make_case(self, name: str, meta: dict) -> TestCaseData:
        target = getattr(self.instance, name)
        async_ = bool(meta.get("async"))
        result = TestResult(
            name=name,
            class_name=self.class_name,
            description=meta.get("description") or meta.get("ignore_reason", ""),
            location=source_location(target),
            async_=async_,
            ignore=bool(meta.get("ignore")),
        )
        arguments = [self.async_factory] if async_ else []
        return TestCaseData(target=target, arguments=arguments, result=result)

    def hooks(self, kind: str) -> list[Callable[[], Any]]:
        return {
            decorators.BEFORE_CLASS: self.before_class,
            decorators.AFTER_CLASS: self.after_class,
            decorators.BEFORE: self.before,
            decorators.AFTER: self.after,
        }[kind]

    def has_next(self) -> bool:
        return self.index < len(self.cases)

    def next(self) -> TestCaseData:
        """Advance the cursor and return the case under it."""
        if not self.has_next():
            raise StopIteration
        case = self.cases[self.index]
        self.index += 1
        return case

    def current(self) -> Optional[TestCaseData]:
        """Return the most recently yielded case."""
        if self.index == 0:
            return None
        return self.cases[self.index - 1]

    def __iter__(self) -> "TestClassHelper":
        return self

    def __next__(self) -> TestCaseData:
        return self.next()
