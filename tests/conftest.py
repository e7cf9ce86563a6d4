import asyncio
import json
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import pytest

from scopefilter.cache import ChangedFileCache
from scopefilter.errors import CommitLookupError

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        [
            "git",
            "-C",
            str(repo),
            "-c",
            "user.name=Test User",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit(repo: Path, message: str, files: Mapping[str, str] | None = None) -> str:
    for rel, content in (files or {}).items():
        target = repo / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        git(repo, "add", rel)

    args = ["commit", "-q", "-m", message]
    if not files:
        args.append("--allow-empty")
    git(repo, *args)

    return git(repo, "rev-parse", "HEAD")


class FakeGit:
    """
    Stand-in for get_commit_files: records every call and how many were in
    flight at once.
    """

    def __init__(self, files_by_hash: Mapping[str, Sequence[str]], delay: float = 0.01):
        self.files_by_hash = dict(files_by_hash)
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.peak = 0

    async def __call__(self, commit_hash: str) -> List[str]:
        self.calls.append(commit_hash)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            if commit_hash not in self.files_by_hash:
                raise CommitLookupError(commit_hash, "unknown commit")
            return list(self.files_by_hash[commit_hash])
        finally:
            self.active -= 1


@dataclass
class Monorepo:
    root: Path
    hashes: Dict[str, str] = field(default_factory=dict)


@pytest.fixture
def cache() -> ChangedFileCache:
    return ChangedFileCache()


@pytest.fixture
def monorepo(tmp_path: Path) -> Monorepo:
    """
    mono/
      package.json                    {"name": "mono"}
      readme.md
      packages/core/package.json      {"name": "@mono/core"}
      packages/core/index.js
      packages/core-utils/package.json
      packages/core-utils/x.js
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    root = tmp_path / "mono"
    root.mkdir()
    git(root, "init", "-q")

    repo = Monorepo(root=root.resolve())

    repo.hashes["init"] = commit(
        root,
        "chore: init",
        {
            "package.json": json.dumps({"name": "mono"}),
            "readme.md": "# mono\n",
        },
    )
    repo.hashes["core_manifest"] = commit(
        root,
        "chore(core): add manifest",
        {"packages/core/package.json": json.dumps({"name": "@mono/core"})},
    )
    repo.hashes["utils_manifest"] = commit(
        root,
        "chore(utils): add manifest",
        {"packages/core-utils/package.json": json.dumps({"name": "@mono/core-utils"})},
    )
    repo.hashes["core"] = commit(
        root,
        "feat(core): add index",
        {"packages/core/index.js": "module.exports = 1;\n"},
    )
    repo.hashes["utils"] = commit(
        root,
        "feat(utils): add x",
        {"packages/core-utils/x.js": "module.exports = 2;\n"},
    )
    repo.hashes["docs"] = commit(root, "docs: readme", {"readme.md": "# mono\n\nmore\n"})
    repo.hashes["empty"] = commit(root, "chore: empty")

    return repo
