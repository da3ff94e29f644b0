"""Test suites: ordered collections of test classes."""

from typing import Iterator


class TestSuite:
    """An ordered collection of test classes run together.

    Subclasses usually populate themselves in ``__init__``::

        class AllTests(TestSuite):
            def __init__(self):
                super().__init__()
                self.add(ParserTest)
                self.add(NetworkTest)
    """

    __test__ = False

    def __init__(self, *test_classes: type):
        self._classes: list[type] = []
        for test_class in test_classes:
            self.add(test_class)

    def add(self, test_class: type) -> None:
        """Append a test class to the suite."""
        self._classes.append(test_class)

    @property
    def test_classes(self) -> tuple[type, ...]:
        return tuple(self._classes)

    def __len__(self) -> int:
        return len(self._classes)

    def __getitem__(self, index: int) -> type:
        return self._classes[index]

    def __iter__(self) -> Iterator[type]:
        return iter(self._classes)

    def __repr__(self) -> str:
        names = ", ".join(c.__name__ for c in self._classes)
        return f"{type(self).__name__}([{names}])"
