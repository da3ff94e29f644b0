"""Markers that declare tests and lifecycle hooks on a test class.

Decorators only attach metadata to the function; they never wrap it.
"""

from typing import Any, Callable, Optional, Union

META_ATTR = "__deferunit__"

TEST = "test"
BEFORE_CLASS = "before_class"
AFTER_CLASS = "after_class"
BEFORE = "before"
AFTER = "after"

HOOK_KINDS = (BEFORE_CLASS, AFTER_CLASS, BEFORE, AFTER)


def get_meta(func: Any) -> Optional[dict]:
    """Return the metadata attached to ``func``, if any."""
    return getattr(func, META_ATTR, None)


def _meta(func: Callable) -> dict:
    meta = getattr(func, META_ATTR, None)
    if meta is None:
        meta = {}
        setattr(func, META_ATTR, meta)
    return meta


def _marker(kind: str, async_: bool = False):
    def decorator(arg: Union[Callable, str, None] = None):
        def apply(func: Callable, description: str = "") -> Callable:
            meta = _meta(func)
            meta["kind"] = kind
            if kind == TEST:
                meta["async"] = async_
                meta["description"] = description
            return func

        if callable(arg):
            return apply(arg)
        return lambda func: apply(func, arg or "")

    return decorator


test = _marker(TEST)
test.__doc__ = "Mark a synchronous test. Usable bare or as ``@test('description')``."

async_test = _marker(TEST, async_=True)
async_test.__doc__ = "Mark an async test; it receives the AsyncFactory as its argument."

before_class = _marker(BEFORE_CLASS)
after_class = _marker(AFTER_CLASS)
before = _marker(BEFORE)
after = _marker(AFTER)


def ignore(arg: Union[Callable, str, None] = None):
    """Mark a test as ignored, optionally with a reason."""

    def apply(func: Callable, reason: str = "") -> Callable:
        meta = _meta(func)
        meta["ignore"] = True
        meta["ignore_reason"] = reason
        return func

    if callable(arg):
        return apply(arg)
    return lambda func: apply(func, arg or "")


def debug_only(func: Callable) -> Callable:
    """Mark a test that only runs when the runner is started with ``debug``."""
    _meta(func)["debug"] = True
    return func
