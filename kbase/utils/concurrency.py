"""Bounded-concurrency helpers for the ingestion pipeline.

Two patterns are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with a semaphore around each
   awaitable.  The upload orchestrator uses it to process files, and the
   vector upsert coordinator to process chunks, with a caller-configured
   level of parallelism.  A limit of 1 is strictly sequential.

2. **with_timeout** -- wraps a single external call (blob write, embedding,
   vector upsert, metadata write) in ``asyncio.wait_for`` so that a hung
   collaborator surfaces as an ordinary per-item failure.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    limit: int = 1,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables with at most *limit* executing at once.

    Parameters
    ----------
    coros:
        Awaitable objects to execute.
    limit:
        Maximum number running concurrently.  Values below 1 are treated
        as 1 so a bad setting cannot deadlock the batch.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list
        Results in the same order as the input awaitables.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *(_wrapped(c) for c in coros), return_exceptions=return_exceptions
    )


async def with_timeout(awaitable: Awaitable[_T], seconds: float | None) -> _T:
    """Await *awaitable*, raising ``asyncio.TimeoutError`` after *seconds*.

    ``None`` or a non-positive value disables the timeout.
    """
    if seconds is None or seconds <= 0:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=seconds)
