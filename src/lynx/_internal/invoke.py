"""Invoke helpers — call sync or async callables uniformly.

Controller methods, interceptors and lifecycle hooks may be plain
``def`` or ``async def``. Verifiers declare which they are through
``@verify`` or ``@async_verify`` instead.
"""

import inspect
from collections.abc import Callable, Sequence
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def fit_positional(func: Callable[..., Any], args: Sequence[Any]) -> tuple[Any, ...]:
    """Trim *args* to the positional parameters *func* accepts.

    Handlers receive ``(*path_args, [body], request, res)`` but may stop
    declaring parameters early, e.g. ``async def index(self)``. Callables
    taking ``*args`` (or whose signature can't be read) get everything.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return tuple(args)

    count = 0
    for param in sig.parameters.values():
        match param.kind:
            case inspect.Parameter.VAR_POSITIONAL:
                return tuple(args)
            case inspect.Parameter.POSITIONAL_ONLY | inspect.Parameter.POSITIONAL_OR_KEYWORD:
                count += 1
    return tuple(args[:count])
