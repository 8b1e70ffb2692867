"""Fan-out / fan-in helpers for concurrent probes on one connection.

A fan-out group is an ``asyncio.TaskGroup``: every unit is started without
waiting for the previous one, and the group only returns once all units have
finished. Results are placed by request index, so arrival order never leaks
into the aggregate.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

import structlog
from sqlcipher3 import dbapi2 as sqlcipher

T = TypeVar("T")

logger = structlog.get_logger(__name__)


async def fan_out(units: Iterable[Awaitable[T]]) -> list[T]:
    """Run every awaitable concurrently and return results in request order.

    A unit that raises aborts the whole group, and the first failure is
    re-raised as-is rather than wrapped in an ``ExceptionGroup``. Wrap units
    with :func:`probe` when individual failures should be absorbed instead.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(_as_coroutine(unit)) for unit in units]
    except ExceptionGroup as failures:
        raise failures.exceptions[0] from None
    return [task.result() for task in tasks]


async def probe(unit: Awaitable[T], default: T, **context: Any) -> T:
    """Await a single storage probe, substituting ``default`` on failure.

    Only storage-engine errors are absorbed; anything else is a bug and
    propagates.
    """
    try:
        return await unit
    except sqlcipher.Error as e:
        logger.warning("probe_failed", error=str(e), **context)
        return default


async def _as_coroutine(unit: Awaitable[T]) -> T:
    return await unit
