# scopefilter/paths.py
"""
Package path resolution.

Turns a manifest location and a repository root into the list of
repository-relative directories a commit is matched against.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from scopefilter.errors import ManifestError
from scopefilter.manifest import (
    DEFAULT_MANIFEST_NAME,
    PackageManifest,
    find_nearest_manifest,
    read_manifest,
)
from scopefilter.repo import get_repo_root
from scopefilter.scope import normalize_package_path

logger = logging.getLogger(__name__)


def package_path_for(manifest_path: Path, repo_root: Path) -> str:
    """
    Directory holding the manifest, relative to the repository root.
    "" when the manifest sits in the root itself.
    """
    package_dir = manifest_path.resolve().parent
    return normalize_package_path(os.path.relpath(package_dir, repo_root.resolve()))


def resolve_package_paths(
    manifest_path: Path,
    repo_root: Path,
    target_paths: Sequence[str] = (),
) -> List[str]:
    """
    Explicit target paths first, then the manifest's own directory.

    Raises ManifestError if a target path normalises to the repository
    root; a root package has to come from a manifest placed there.
    """
    implicit = package_path_for(manifest_path, repo_root)

    paths: List[str] = []
    for target in target_paths:
        normalized = normalize_package_path(target)
        if not normalized:
            raise ManifestError(f"Target path {target!r} resolves to the repository root")
        paths.append(normalized)

    paths.append(implicit)
    return paths


@dataclass(frozen=True)
class PackageScope:
    manifest: PackageManifest
    repo_root: Path
    paths: Tuple[str, ...]


async def discover_package_paths(
    cwd: Path,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
    extra_paths: Sequence[str] = (),
) -> PackageScope:
    """
    Locate the nearest manifest above cwd and resolve its package paths.

    Manifest targetDependencies come first, then extra_paths, then the
    manifest's own directory.

    Raises:
        ManifestNotFoundError: no manifest above cwd
        RepoRootNotFoundError: cwd is not inside a git work tree
    """
    manifest_path = find_nearest_manifest(cwd, manifest_name)
    repo_root = await get_repo_root(cwd)
    manifest = read_manifest(manifest_path)

    paths = resolve_package_paths(
        manifest_path,
        repo_root,
        [*manifest.target_paths, *extra_paths],
    )

    logger.debug("Package paths for %s: %s", manifest.name, paths)
    return PackageScope(manifest=manifest, repo_root=repo_root, paths=tuple(paths))
