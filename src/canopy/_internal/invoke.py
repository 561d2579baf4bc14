"""Run a resolved handler whatever its calling style.

A registry hands back opaque callables: plain functions, ``async def``
functions, bound methods, ``functools.partial`` objects, or instances
with an ``async def __call__``. Dispatch helpers only ever go through
``invoke`` so they never branch on handler shape themselves.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler* with the dispatch payload; await whatever it returns.

    Checking the return value rather than the callable covers partials
    and callable objects, which ``inspect.iscoroutinefunction`` misses.
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result
