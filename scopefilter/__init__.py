"""Narrow commit history to the commits that touched one package of a monorepo."""

from scopefilter.errors import (
    CommitLookupError,
    ConfigError,
    GitRepositoryError,
    ManifestError,
    ManifestNotFoundError,
    RepoRootNotFoundError,
    ScopeError,
    ScopeFilterError,
)
from scopefilter.pipeline import CommitFilterPipeline, with_only_package_commits
from scopefilter.repo import Commit

__all__ = [
    "Commit",
    "CommitFilterPipeline",
    "CommitLookupError",
    "ConfigError",
    "GitRepositoryError",
    "ManifestError",
    "ManifestNotFoundError",
    "RepoRootNotFoundError",
    "ScopeError",
    "ScopeFilterError",
    "with_only_package_commits",
]
