import pytest

from conftest import commit
from scopefilter.errors import CommitLookupError, GitRepositoryError, RepoRootNotFoundError
from scopefilter.repo import (
    Commit,
    get_commit_files,
    get_repo_root,
    load_commit_history,
)


@pytest.mark.asyncio
async def test_load_commit_history_oldest_first(monorepo):
    commits = await load_commit_history(monorepo.root)

    assert [c.hash for c in commits] == list(monorepo.hashes.values())
    assert [c.index for c in commits] == list(range(len(commits)))
    assert commits[0].subject == "chore: init"
    assert all(c.files is None for c in commits)


@pytest.mark.asyncio
async def test_load_commit_history_with_range(monorepo):
    rev_range = f"{monorepo.hashes['utils_manifest']}..HEAD"

    commits = await load_commit_history(monorepo.root, rev_range)

    assert [c.subject for c in commits] == [
        "feat(core): add index",
        "feat(utils): add x",
        "docs: readme",
        "chore: empty",
    ]


@pytest.mark.asyncio
async def test_load_commit_history_outside_repo(tmp_path, monkeypatch):
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))

    with pytest.raises(GitRepositoryError, match="Not a git repository"):
        await load_commit_history(tmp_path)


@pytest.mark.asyncio
async def test_get_repo_root_from_subdirectory(monorepo):
    assert await get_repo_root(monorepo.root / "packages" / "core") == monorepo.root


@pytest.mark.asyncio
async def test_get_repo_root_outside_repo(tmp_path, monkeypatch):
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))

    with pytest.raises(RepoRootNotFoundError):
        await get_repo_root(tmp_path)


@pytest.mark.asyncio
async def test_get_commit_files(monorepo):
    assert await get_commit_files(monorepo.root, monorepo.hashes["core"]) == [
        "packages/core/index.js"
    ]


@pytest.mark.asyncio
async def test_root_commit_lists_its_files(monorepo):
    files = await get_commit_files(monorepo.root, monorepo.hashes["init"])

    assert sorted(files) == ["package.json", "readme.md"]


@pytest.mark.asyncio
async def test_empty_commit_has_no_files(monorepo):
    assert await get_commit_files(monorepo.root, monorepo.hashes["empty"]) == []


@pytest.mark.asyncio
async def test_multiple_files_and_unusual_names(monorepo):
    sha = commit(
        monorepo.root,
        "feat: spaces",
        {
            "packages/core/with space.js": "1\n",
            "packages/core/ünïcode.js": "2\n",
        },
    )

    files = await get_commit_files(monorepo.root, sha)

    assert sorted(files) == ["packages/core/with space.js", "packages/core/ünïcode.js"]


@pytest.mark.asyncio
async def test_unknown_commit(monorepo):
    with pytest.raises(CommitLookupError) as excinfo:
        await get_commit_files(monorepo.root, "0" * 40)

    assert excinfo.value.commit_hash == "0" * 40


@pytest.mark.asyncio
@pytest.mark.parametrize("commit_id", ["--output={target}", "--stdin", "-p", ""])
async def test_option_like_commit_id_is_rejected(monorepo, tmp_path, commit_id):
    target = tmp_path / "written-by-diff-tree"
    commit_id = commit_id.format(target=target)

    with pytest.raises(CommitLookupError) as excinfo:
        await get_commit_files(monorepo.root, commit_id)

    assert excinfo.value.commit_hash == commit_id
    assert not target.exists()


@pytest.mark.asyncio
async def test_option_like_rev_range_is_rejected(monorepo, tmp_path):
    with pytest.raises(GitRepositoryError, match="Not a revision range"):
        await load_commit_history(monorepo.root, f"--output={tmp_path / 'log'}")

    assert not (tmp_path / "log").exists()


@pytest.mark.asyncio
async def test_subject_with_unicode_line_separators(monorepo):
    subject = "feat: odd\u2028separator\x85and\x1cmore"
    sha = commit(monorepo.root, subject, {"packages/core/odd.js": "1\n"})

    commits = await load_commit_history(monorepo.root)

    assert commits[-1].hash == sha
    assert commits[-1].subject == subject
    assert len(commits) == len(monorepo.hashes) + 1


def test_commit_from_mapping():
    c = Commit.from_mapping({"hash": "abc", "subject": "feat: x", "extra": 1})

    assert c == Commit(hash="abc", subject="feat: x")


def test_commit_from_mapping_requires_hash():
    with pytest.raises(GitRepositoryError):
        Commit.from_mapping({"subject": "no hash"})


def test_with_files_returns_a_new_commit():
    c = Commit(hash="abc", subject="s")
    enriched = c.with_files(["a", "b"])

    assert c.files is None
    assert enriched.files == ("a", "b")
    assert enriched.hash == c.hash
