"""Dispatch helpers — resolve a pattern and run what answers it.

``ScopedRegistry.resolve()`` only hands back handlers; what to do with
them is the caller's convention. This module holds the convention the
surfaces use: call every handler with the same payload, keep going when
one fails, and raise every failure together at the end.

Usage from a surface::

    results = await execute(registry, "CREATE_CONTACT", user=user, data=body)
    status = await execute_one(registry, "USERS::PROFILE::READ", user=user)

Resolution and invocation are not atomic. A handler unregistered between
the two still runs.
"""

import logging
from typing import Any

import anyio

from canopy._internal.invoke import invoke
from canopy.errors import HandlerNotFoundError
from canopy.registry import Handler, ScopedRegistry

logger = logging.getLogger("canopy.execute")


async def execute(
    registry: ScopedRegistry,
    pattern: str,
    *args: Any,
    concurrent: bool = False,
    **kwargs: Any,
) -> list[Any]:
    """Run every handler resolved for *pattern*.

    Handlers run in registration order, or all at once in an anyio task
    group when *concurrent* is true. Results come back in handler order
    either way. If any handler raises, the others still run and an
    ``ExceptionGroup`` carrying every failure is raised afterwards.

    Returns an empty list when nothing answers the pattern.
    """
    handlers = registry.resolve(pattern)
    if not handlers:
        logger.debug("execute: nothing answers %r from %s", pattern, registry.domain_path)
        return []

    results: list[Any] = [None] * len(handlers)
    errors: list[Exception] = []

    async def _run(index: int, handler: Handler) -> None:
        try:
            results[index] = await invoke(handler, *args, **kwargs)
        except Exception as exc:
            errors.append(exc)

    if concurrent:
        async with anyio.create_task_group() as tg:
            for index, handler in enumerate(handlers):
                tg.start_soon(_run, index, handler)
    else:
        for index, handler in enumerate(handlers):
            await _run(index, handler)

    if errors:
        msg = f"{registry.domain_path}::execute {pattern!r}: {len(errors)} handler(s) failed"
        raise ExceptionGroup(msg, errors)

    return results


async def execute_one(
    registry: ScopedRegistry,
    pattern: str,
    *args: Any,
    **kwargs: Any,
) -> Any:
    """Run the first handler resolved for *pattern* and return its result.

    Raises ``HandlerNotFoundError`` when nothing answers the pattern.
    Exceptions from the handler propagate unchanged.
    """
    handlers = registry.resolve(pattern)
    if not handlers:
        raise HandlerNotFoundError(pattern)
    return await invoke(handlers[0], *args, **kwargs)
