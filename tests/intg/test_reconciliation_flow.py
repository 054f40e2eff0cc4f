"""Integration tests: services built from settings against a real git workspace."""

from pathlib import Path

import pytest

from llm_checkpoint.config.settings import Settings
from llm_checkpoint.services import create_services_from_settings


@pytest.fixture
def services(tmp_path: Path, workspace: Path):
    settings = Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'db' / 'file_versions.db'}",
        WORKSPACE_ROOT=str(workspace),
        SAVE_ALL_CHANGES=False,
        AUTO_CLEANUP_AFTER_COMMIT=True,
        REPOSITORY_PATHS=[],
    )
    services = create_services_from_settings(settings)
    yield services
    services.close()


@pytest.mark.asyncio
async def test_commit_prunes_only_committed_files(services, commit_files, workspace):
    manager = services.lifecycle_manager
    reconciler = services.reconciler

    commit_files({"a.txt": "base\n", "b.txt": "base\n"}, "initial")
    (baseline,) = await reconciler.reconcile_now()
    assert baseline.status == "baseline"

    a_versions = ["1\n2\n3\n", "1\n2\n3\n4\n5\n6\n", "x\ny\nz\n4\n5\n6\n"]
    for content in a_versions:
        assert await manager.save_current("a.txt", content) is not None
    for content in ("p\nq\n", "p\nq\nr\ns\nt\n"):
        assert await manager.save_current(str(workspace / "b.txt"), content) is not None

    commit_files({"a.txt": a_versions[-1]}, "Rewrite header\n\nBody text")
    (result,) = await reconciler.reconcile_now()

    assert result.status == "reconciled"
    assert result.label == "Rewrite header"
    assert result.files_labeled == ["a.txt"]

    a_file = await manager.get_file("a.txt")
    (kept,) = await manager.list_snapshots(a_file.id)
    assert kept.version_number == 3
    assert kept.content == "[commit] Rewrite header\n" + a_versions[-1]

    b_file = await manager.get_file("b.txt")
    assert len(await manager.list_snapshots(b_file.id)) == 2

    # Nothing new: the next pass is idle
    (again,) = await reconciler.reconcile_now()
    assert again.status == "idle"


@pytest.mark.asyncio
async def test_staged_changes_wait_for_commit(services, commit_files, git_repo, workspace):
    reconciler = services.reconciler
    repo_path = str(workspace)

    first = commit_files({"a.txt": "one\n"}, "initial")
    await reconciler.reconcile_now()

    (workspace / "a.txt").write_text("two\n", encoding="utf-8")
    git_repo.index.add(["a.txt"])
    head = git_repo.index.commit("second").hexsha
    (workspace / "a.txt").write_text("three\n", encoding="utf-8")
    git_repo.index.add(["a.txt"])

    (result,) = await reconciler.reconcile_now()
    assert result.status == "pending"
    assert services.repository.get_commit_cursor(repo_path) == first

    git_repo.index.commit("third")
    (result,) = await reconciler.reconcile_now()
    assert result.status == "reconciled"
    assert services.repository.get_commit_cursor(repo_path) != head
