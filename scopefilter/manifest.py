# scopefilter/manifest.py
"""
Package manifest discovery and reading.

Responsibilities:
- Find the nearest manifest file walking up from a directory
- Read the package name and the optional targetDependencies list

This module does NOT:
- interact with git
- resolve paths against the repository root
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

from scopefilter.errors import ManifestError, ManifestNotFoundError
from scopefilter.validation import schema_errors

DEFAULT_MANIFEST_NAME = "package.json"

# Only the fields we read are constrained; anything else is left alone
_MANIFEST_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "targetDependencies": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
        },
    },
}


@dataclass(frozen=True)
class PackageManifest:
    path: Path
    name: str
    target_paths: Tuple[str, ...] = ()

    @property
    def directory(self) -> Path:
        return self.path.parent


def find_nearest_manifest(start: Path, manifest_name: str = DEFAULT_MANIFEST_NAME) -> Path:
    """
    Walk up from start (inclusive) to the filesystem root looking for
    manifest_name.

    Raises ManifestNotFoundError if none exists.
    """
    start = start.expanduser().resolve()

    for directory in (start, *start.parents):
        candidate = directory / manifest_name
        if candidate.is_file():
            return candidate

    raise ManifestNotFoundError(f"No {manifest_name} found in {start} or any parent directory")


def read_manifest(manifest_path: Path) -> PackageManifest:
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Failed to read manifest: {manifest_path}") from e

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Manifest is not valid JSON: {manifest_path}") from e

    messages = schema_errors(_MANIFEST_SCHEMA, parsed)
    if messages:
        raise ManifestError(f"Invalid manifest {manifest_path}:\n" + "\n".join(messages))

    name = parsed.get("name") or manifest_path.parent.name

    return PackageManifest(
        path=manifest_path,
        name=name,
        target_paths=tuple(parsed.get("targetDependencies") or ()),
    )
