# scopefilter/cache.py
"""
Memoized changed-file lookups.

Each commit hash maps to a future, stored before the first await, so
concurrent first requests for the same hash share one underlying query.
The query runs as its own task. Entries are never invalidated and a
failed lookup stays failed; only a query that was itself cancelled is
dropped, since it never produced a result.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

FetchFiles = Callable[[str], Awaitable[List[str]]]


class ChangedFileCache:
    def __init__(self) -> None:
        self._entries: Dict[str, "asyncio.Future[List[str]]"] = {}

    def __contains__(self, commit_hash: str) -> bool:
        return commit_hash in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, commit_hash: str, fetch: FetchFiles) -> List[str]:
        entry = self._entries.get(commit_hash)

        if entry is None:
            logger.debug("Changed files cache miss for %s", commit_hash)
            # Callers only ever await the query through shield
            entry = asyncio.ensure_future(fetch(commit_hash))
            self._entries[commit_hash] = entry
            entry.add_done_callback(functools.partial(self._settle, commit_hash))
        else:
            logger.debug("Changed files cache hit for %s", commit_hash)

        return list(await asyncio.shield(entry))

    def _settle(self, commit_hash: str, entry: "asyncio.Future[List[str]]") -> None:
        if entry.cancelled():
            # Never computed, so the next lookup queries again
            if self._entries.get(commit_hash) is entry:
                del self._entries[commit_hash]
            return

        # Mark retrieved so a failure nobody awaits does not warn on GC
        entry.exception()

    def memoize(self, fetch: FetchFiles) -> FetchFiles:
        """
        Bind fetch to this cache, returning a one-argument coroutine function.
        """

        async def cached(commit_hash: str) -> List[str]:
            return await self.get(commit_hash, fetch)

        return cached


_default_cache: Optional[ChangedFileCache] = None


def default_cache() -> ChangedFileCache:
    """
    The cache shared by every pipeline in this process that is not given
    its own. Lives until the process exits.
    """
    global _default_cache
    if _default_cache is None:
        _default_cache = ChangedFileCache()
    return _default_cache
