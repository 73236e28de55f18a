"""Bounded-concurrency helpers shared by ingestion and crawling.

``throttled_gather`` is a drop-in replacement for ``asyncio.gather`` that
wraps each awaitable in a semaphore acquire/release.  Callers own their
semaphore; the ingestion orchestrator creates one per batch sized to the
batch bound, the crawler one per crawl.

``batched`` splits a sequence into consecutive fixed-size slices and is
used to walk chunks batch by batch.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Iterator, Sequence, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Gather *coros* while holding *semaphore* around each one.

    Results keep input order.  With *return_exceptions* (the default) a
    failing awaitable yields its exception in place instead of cancelling
    the rest, which is how batch vectorization isolates bad chunks.
    """

    async def _guarded(awaitable: Awaitable[_T]) -> _T:
        async with semaphore:
            return await awaitable

    return await asyncio.gather(
        *(_guarded(item) for item in coros), return_exceptions=return_exceptions
    )


def batched(items: Sequence[_T], size: int) -> Iterator[tuple[int, Sequence[_T]]]:
    """Yield ``(start_index, slice)`` pairs of at most *size* items."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    for start in range(0, len(items), size):
        yield start, items[start : start + size]
