# scopefilter/limiter.py
"""
Bounded concurrency over a list of coroutine factories.

A fixed number of worker slots drain a queue of (index, factory) items.
Results land at their input index, so output order never depends on
completion order.

Failure policy: every task runs to completion, then the first failure by
input position is raised. No result is dropped silently.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_THREADS = 500


def resolve_max_threads(value: Any) -> int:
    """
    Parse a concurrency limit. Anything that is not a positive integer
    falls back to DEFAULT_MAX_THREADS.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_MAX_THREADS

    try:
        limit = int(str(value).strip())
    except ValueError:
        return DEFAULT_MAX_THREADS

    if limit <= 0:
        return DEFAULT_MAX_THREADS

    return limit


class ConcurrencyLimiter:
    def __init__(self, limit: int = DEFAULT_MAX_THREADS) -> None:
        if limit <= 0:
            raise ValueError("limit must be a positive integer")
        self.limit = limit
        self.active = 0
        self.peak = 0

    async def run(self, factories: Sequence[Callable[[], Awaitable[T]]]) -> List[T]:
        """
        Run every factory exactly once with at most `limit` in flight.

        Returns:
            results in the same order as factories
        """
        total = len(factories)
        if total == 0:
            return []

        queue: "asyncio.Queue[Tuple[int, Callable[[], Awaitable[T]]]]" = asyncio.Queue()
        for item in enumerate(factories):
            queue.put_nowait(item)

        results: List[Optional[T]] = [None] * total
        errors: List[Optional[BaseException]] = [None] * total

        async def worker() -> None:
            while True:
                try:
                    index, factory = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return

                self.active += 1
                self.peak = max(self.peak, self.active)
                try:
                    results[index] = await factory()
                except Exception as e:
                    errors[index] = e
                finally:
                    self.active -= 1

        workers = min(self.limit, total)
        logger.debug("Running %s tasks on %s worker slots", total, workers)

        await asyncio.gather(*(worker() for _ in range(workers)))

        for error in errors:
            if error is not None:
                raise error

        return results  # type: ignore[return-value]
