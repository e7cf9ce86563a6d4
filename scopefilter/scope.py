# scopefilter/scope.py
"""
Commit scope classification.

Decides whether a commit touched files inside a package, by comparing
path segments rather than strings so that directory boundaries hold:
packages/foo never matches packages/foobar.

Responsibilities:
- Normalise package paths and changed file paths
- Segment-prefix matching
- Filter a list of enriched commits, preserving order

This module does NOT:
- call git
- fetch or cache changed files
- await anything
"""

from __future__ import annotations

import logging
import os
import posixpath
from typing import Iterable, List, Optional, Sequence, Tuple

from scopefilter.errors import ScopeError
from scopefilter.repo import Commit

logger = logging.getLogger(__name__)


def normalize_package_path(path: str) -> str:
    """
    Express a path with "/" separators and collapse ".", ".." and
    repeated separators. The repository root normalises to "".
    """
    p = path.replace("\\", "/")
    if os.sep != "/":
        p = p.replace(os.sep, "/")

    if not p:
        return ""

    p = posixpath.normpath(p)
    if p == ".":
        return ""

    return p


def path_segments(path: str) -> Tuple[str, ...]:
    return tuple(
        segment
        for segment in normalize_package_path(path).split("/")
        if segment and segment != "."
    )


def belongs_to(file_path: str, package_segments: Sequence[str]) -> bool:
    """
    True when the package segments are a prefix of the file's segments.

    An empty segment list is the repository root and matches every file.
    """
    file_segments = path_segments(file_path)

    if len(file_segments) < len(package_segments):
        return False

    return all(
        package_segment == file_segments[i]
        for i, package_segment in enumerate(package_segments)
    )


def matching_file(commit: Commit, package_paths: Iterable[str]) -> Optional[str]:
    """
    Return the first changed file that lies at or under one of the
    package paths, or None.

    Raises:
        ScopeError: if the commit has no files attached.
    """
    if commit.files is None:
        raise ScopeError(f"Commit {commit.hash} has no changed files attached")

    if not commit.files:
        return None

    for package_path in package_paths:
        package_segments = path_segments(package_path)

        for file_path in commit.files:
            if belongs_to(file_path, package_segments):
                return file_path

    return None


def is_in_scope(commit: Commit, package_paths: Iterable[str]) -> bool:
    return matching_file(commit, package_paths) is not None


def filter_commits(commits: Sequence[Commit], package_paths: Sequence[str]) -> List[Commit]:
    """
    Keep the commits that touched at least one package path.

    Args:
        commits: commits with files attached
        package_paths: repository-root-relative package directories

    Returns:
        the in-scope commits, in input order
    """
    selected: List[Commit] = []

    for commit in commits:
        match = matching_file(commit, package_paths)
        if match is None:
            continue

        logger.debug(
            'Including commit "%s" because it modified package file "%s".',
            commit.subject,
            match,
        )
        selected.append(commit)

    return selected
