"""Invoke helpers — call sync or async callables uniformly.

Perch handlers, guards, and hooks can be ``def`` or ``async def``. The
choice is resolved once, when the callable is registered: sync callables
are wrapped in a coroutine function so every call site simply awaits.

Usage::

    from perch._internal.invoke import ensure_async

    handler = ensure_async(handler)
    result = await handler(ctx, res)
"""

import functools
import inspect
from collections.abc import Awaitable, Callable
from typing import Any


def is_async_callable(func: Any) -> bool:
    """True for coroutine functions, partials of them, and async ``__call__``."""
    while isinstance(func, functools.partial):
        func = func.func
    if inspect.iscoroutinefunction(func):
        return True
    call = getattr(func, "__call__", None)  # noqa: B004
    return call is not None and inspect.iscoroutinefunction(call)


def ensure_async(func: Callable[..., Any]) -> Callable[..., Awaitable[Any]]:
    """Return *func* as a coroutine function.

    Async callables are returned unchanged. Sync callables are wrapped so
    their return value is delivered through an awaitable::

        def handler(ctx, res):
            return res.send("ok")

        wrapped = ensure_async(handler)
        response = await wrapped(ctx, res)
    """
    if is_async_callable(func):
        return func

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper
