# scopefilter/repo.py
"""
Repository introspection utilities.

Reads commit history and per-commit changed files from a Git repository.
Handles Git Bash ↔ Windows path normalisation.

This module does NOT:
- cache results (see scopefilter.cache)
- decide whether a commit is in scope
- write to the repository
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from scopefilter.errors import (
    CommitLookupError,
    GitRepositoryError,
    RepoRootNotFoundError,
)


# Single source of truth for git field separation
_FIELD_SEP = "\x00"


@dataclass(frozen=True)
class Commit:
    hash: str
    subject: str = ""

    # None until the changed files have been attached
    files: Optional[Tuple[str, ...]] = None
    index: int = 0

    def with_files(self, files: Sequence[str]) -> "Commit":
        return replace(self, files=tuple(files))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Commit":
        """
        Build a Commit from a plain record such as {"hash": ..., "subject": ...}.
        """
        commit_hash = raw.get("hash")
        if not isinstance(commit_hash, str) or not commit_hash:
            raise GitRepositoryError(f"Commit record without a hash: {raw!r}")

        files = raw.get("files")
        return cls(
            hash=commit_hash,
            subject=str(raw.get("subject") or ""),
            files=tuple(files) if files is not None else None,
            index=int(raw.get("index") or 0),
        )


@dataclass(frozen=True)
class GitResult:
    returncode: int
    stdout: str
    stderr: str


def _normalise_repo_path(repo_path: Path) -> Path:
    """
    Convert Git Bash paths (/c/Users/...) to native Windows paths (C:\\Users\\...).
    No-op on non-Windows systems.
    """
    if os.name != "nt":
        return repo_path

    p = str(repo_path)

    if p.startswith("/") and len(p) >= 3 and p[2] == "/":
        drive = p[1]
        if drive.isalpha():
            return Path(f"{drive.upper()}:/{p[3:]}")

    return Path(p)


async def _run_git(repo_path: Path, args: List[str]) -> GitResult:
    repo_path = _normalise_repo_path(repo_path)

    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "-C",
            str(repo_path),
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise GitRepositoryError(f"Unable to run git: {e}") from e

    stdout, stderr = await proc.communicate()

    return GitResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace").strip(),
    )


async def _run_git_command(repo_path: Path, args: List[str]) -> str:
    result = await _run_git(repo_path, args)

    if result.returncode != 0:
        raise GitRepositoryError(result.stderr if result.stderr else "git command failed")

    # Do not strip spaces — only remove trailing newlines
    return result.stdout.rstrip("\n")


async def ensure_git_repository(repo_path: Path) -> None:
    try:
        await _run_git_command(repo_path, ["rev-parse", "--is-inside-work-tree"])
    except GitRepositoryError as e:
        raise GitRepositoryError(f"Not a git repository: {repo_path}") from e


async def get_repo_root(cwd: Path) -> Path:
    """
    Absolute path of the top level of the working tree containing cwd.

    Raises RepoRootNotFoundError when cwd is not inside a work tree.
    """
    try:
        out = await _run_git_command(cwd, ["rev-parse", "--show-toplevel"])
    except GitRepositoryError as e:
        raise RepoRootNotFoundError(f"Unable to determine repository root from {cwd}: {e}") from e

    if not out:
        raise RepoRootNotFoundError(f"Unable to determine repository root from {cwd}")

    return _normalise_repo_path(Path(out)).resolve()


async def get_commit_files(repo_path: Path, commit_hash: str) -> List[str]:
    """
    Files touched by a commit, in the order git reports them.

    Paths are relative to the repository root and use forward slashes.
    The root commit is diffed against the empty tree. An empty list is a
    valid answer (for example an empty commit).

    Raises CommitLookupError when the hash does not resolve.
    """
    # Anything that git would parse as an option is not a commit id
    if not commit_hash or commit_hash.startswith("-"):
        raise CommitLookupError(commit_hash, "not a commit id")

    result = await _run_git(
        repo_path,
        ["diff-tree", "--root", "--no-commit-id", "--name-only", "-r", "-z", commit_hash],
    )

    if result.returncode != 0:
        raise CommitLookupError(commit_hash, result.stderr or "unknown commit")

    return [name for name in result.stdout.split(_FIELD_SEP) if name]


async def load_commit_history(repo_path: Path, rev_range: Optional[str] = None) -> List[Commit]:
    """
    Load commits in deterministic oldest → newest order.

    Fields per commit:
    - hash
    - subject (first line of message)
    - index (position in the loaded history)

    Files are not attached; that is the pipeline's job.
    """
    await ensure_git_repository(repo_path)

    args = [
        "log",
        "--reverse",
        "--pretty=format:%H%x00%s",
    ]
    if rev_range:
        if rev_range.startswith("-"):
            raise GitRepositoryError(f"Not a revision range: {rev_range!r}")
        args.append(rev_range)

    raw_log = await _run_git_command(repo_path, args)

    commits: List[Commit] = []

    if not raw_log:
        return commits

    for idx, line in enumerate(raw_log.split("\n")):
        parts = line.split(_FIELD_SEP)

        if len(parts) != 2:
            raise GitRepositoryError(f"Malformed git log line: {line!r}")

        commit_hash, subject = parts

        commits.append(
            Commit(
                hash=commit_hash,
                subject=subject,
                index=idx,
            )
        )

    return commits
