# scopefilter/pipeline.py
"""
Commit filter pipeline.

Responsibilities:
- Attach changed files to every candidate commit, bounded and memoized
- Keep the commits that touched the package
- Wrap a downstream release plugin so it only sees those commits

This module does NOT:
- decide what a release is
- parse commit messages
"""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from scopefilter.cache import ChangedFileCache, FetchFiles, default_cache
from scopefilter.config import Settings, load_settings
from scopefilter.limiter import ConcurrencyLimiter
from scopefilter.paths import discover_package_paths
from scopefilter.repo import Commit, get_commit_files
from scopefilter.scope import filter_commits

logger = logging.getLogger(__name__)

CommitRecord = Union[Commit, Mapping[str, Any]]
Plugin = Callable[[Any, Mapping[str, Any]], Any]


class CommitFilterPipeline:
    def __init__(
        self,
        repo_root: Path,
        package_paths: Sequence[str],
        *,
        package_name: str = "",
        cache: Optional[ChangedFileCache] = None,
        limiter: Optional[ConcurrencyLimiter] = None,
        fetch: Optional[FetchFiles] = None,
    ) -> None:
        self.repo_root = repo_root
        self.package_paths = tuple(package_paths)
        self.package_name = package_name
        self.cache = cache if cache is not None else default_cache()
        self.limiter = limiter or ConcurrencyLimiter()

        if fetch is None:
            fetch = functools.partial(get_commit_files, repo_root)
        self._fetch_files = self.cache.memoize(fetch)

    @classmethod
    async def discover(
        cls,
        cwd: Path,
        settings: Optional[Settings] = None,
        *,
        cache: Optional[ChangedFileCache] = None,
        fetch: Optional[FetchFiles] = None,
    ) -> "CommitFilterPipeline":
        """
        Build a pipeline for the package whose manifest is nearest to cwd.
        """
        settings = settings or load_settings()
        scope = await discover_package_paths(cwd, settings.manifest, settings.extra_paths)

        return cls(
            scope.repo_root,
            scope.paths,
            package_name=scope.manifest.name,
            cache=cache,
            limiter=ConcurrencyLimiter(settings.max_threads),
            fetch=fetch,
        )

    async def _with_files(self, commit: Commit) -> Commit:
        files = await self._fetch_files(commit.hash)
        return commit.with_files(files)

    async def enrich(self, commits: Sequence[Commit]) -> List[Commit]:
        """
        Attach changed files to every commit, preserving input order.

        Raises CommitLookupError if any commit cannot be resolved.
        """
        return await self.limiter.run(
            [functools.partial(self._with_files, commit) for commit in commits]
        )

    async def filter_to_package_commits(
        self,
        commits: Sequence[Commit],
        reporter: Optional[Any] = None,
    ) -> List[Commit]:
        """
        Enrich, classify and report the count to reporter (any object with
        an .info method, defaulting to this module's logger).

        Nothing is reported when enrichment fails.
        """
        logger.debug("Filter commits by package paths: %s", self.package_paths)

        enriched = await self.enrich(commits)
        selected = filter_commits(enriched, self.package_paths)

        (reporter or logger).info(
            "Found %s commits for package %s since last release",
            len(selected),
            self.package_name,
        )
        return selected


def _to_commits(records: Sequence[CommitRecord]) -> List[Commit]:
    commits: List[Commit] = []
    for i, record in enumerate(records):
        commit = record if isinstance(record, Commit) else Commit.from_mapping(record)
        commits.append(replace(commit, index=i))
    return commits


def _to_record(original: CommitRecord, commit: Commit) -> CommitRecord:
    if isinstance(original, Commit):
        return replace(commit, index=original.index)

    record: Dict[str, Any] = dict(original)
    record["files"] = list(commit.files or ())
    return record


def with_only_package_commits(
    plugin: Plugin,
    *,
    cwd: Optional[Path] = None,
    settings: Optional[Settings] = None,
    cache: Optional[ChangedFileCache] = None,
    fetch: Optional[FetchFiles] = None,
) -> Callable[[Any, Mapping[str, Any]], Awaitable[Any]]:
    """
    Wrap a release plugin so it only sees the commits of one package.

    The returned coroutine function takes (plugin_config, context). The
    context must carry "commits" and "logger"; the plugin receives a copy
    of it with "commits" replaced by the filtered list, in input order.
    Records given as mappings come back as mappings with "files" added.
    """

    @functools.wraps(plugin)
    async def wrapped(plugin_config: Any, context: Mapping[str, Any]) -> Any:
        records: Sequence[CommitRecord] = context.get("commits") or []
        pipeline = await CommitFilterPipeline.discover(
            cwd or Path.cwd(),
            settings,
            cache=cache,
            fetch=fetch,
        )
        selected = await pipeline.filter_to_package_commits(
            _to_commits(records),
            reporter=context.get("logger"),
        )

        filtered = [_to_record(records[c.index], c) for c in selected]

        result = plugin(plugin_config, {**context, "commits": filtered})
        if inspect.isawaitable(result):
            result = await result
        return result

    return wrapped
