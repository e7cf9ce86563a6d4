# scopefilter/errors.py
"""
Error taxonomy.

Every failure this package raises derives from ScopeFilterError so callers
can catch one type. Configuration and lookup failures are fatal for the
invocation; nothing here is retried.
"""

from __future__ import annotations


class ScopeFilterError(RuntimeError):
    pass


class ManifestError(ScopeFilterError):
    pass


class ManifestNotFoundError(ManifestError):
    pass


class GitRepositoryError(ScopeFilterError):
    pass


class RepoRootNotFoundError(GitRepositoryError):
    pass


class CommitLookupError(GitRepositoryError):
    """
    Raised when a commit id cannot be resolved in history.

    Attributes:
        commit_hash: the id that failed to resolve
    """

    def __init__(self, commit_hash: str, message: str) -> None:
        self.commit_hash = commit_hash
        super().__init__(f"{commit_hash}: {message}")


class ConfigError(ScopeFilterError):
    pass


class ScopeError(ScopeFilterError):
    pass
