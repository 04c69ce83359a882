"""@guarded and @tool decorators binding callables to a budget."""

from __future__ import annotations

import functools
import inspect
from typing import Any, Callable

from .budget import get_internals
from .guard import ApiCall, guarded_response


def guarded(budget: Any) -> Callable[[ApiCall], Callable[..., Any]]:
    """
    Decorator that routes every call of an async API function through
    guarded_response() against `budget`.

        @guarded(budget)
        async def respond(params):
            return await client.responses.create(**params)

        response = await respond({"model": "gpt-4.1", "input": "hi"})
    """
    get_internals(budget)  # fail at decoration time for a foreign object

    def decorator(fn: ApiCall) -> Callable[..., Any]:
        if not inspect.iscoroutinefunction(fn):
            raise TypeError(f"@guarded requires an async function, got {fn!r}")

        @functools.wraps(fn)
        async def wrapper(params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
            merged = {**(params or {}), **kwargs}
            return await guarded_response(budget, merged, fn)

        return wrapper

    return decorator


def tool(budget: Any) -> Callable[[Callable], Callable]:
    """
    Decorator that charges one tool-call unit to `budget` before each call.

    Works on sync and async functions. The function body only runs once
    record_tool_call() has succeeded; a BudgetExhausted leaves it uncalled.
    """
    get_internals(budget)

    def decorator(fn: Callable) -> Callable:
        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                budget.record_tool_call()
                return await fn(*args, **kwargs)

            wrapper: Callable = async_wrapper
        else:
            @functools.wraps(fn)
            def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
                budget.record_tool_call()
                return fn(*args, **kwargs)

            wrapper = sync_wrapper

        return wrapper

    return decorator
