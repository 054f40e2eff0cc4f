from pathlib import Path
from typing import Callable, Dict, Generator

import pytest
from git import Actor, Repo
from sqlalchemy.engine import Engine

from llm_checkpoint.db import create_db_engine, create_session_factory, init_db
from llm_checkpoint.services import (
    AdmissionPolicy,
    HistoryExporter,
    SnapshotLifecycleManager,
    SnapshotRepository,
)

TEST_AUTHOR = Actor("Test User", "test@example.com")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty workspace directory."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path.resolve()


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """SQLite engine backed by a file in the test's temporary directory."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'store' / 'file_versions.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine: Engine) -> SnapshotRepository:
    return SnapshotRepository(create_session_factory(engine))


@pytest.fixture
def manager(repository: SnapshotRepository, workspace: Path) -> SnapshotLifecycleManager:
    """Lifecycle manager that admits every change."""
    return SnapshotLifecycleManager(
        repository=repository,
        policy=AdmissionPolicy(save_all_changes=True),
        exporter=HistoryExporter(str(workspace)),
    )


@pytest.fixture
def git_repo(workspace: Path) -> Repo:
    """Git repository initialised in the workspace, without commits."""
    return Repo.init(workspace)


@pytest.fixture
def commit_files(git_repo: Repo) -> Callable[[Dict[str, str], str], str]:
    """Write files into the git workspace and commit them. Returns the new HEAD hash."""

    def _commit(files: Dict[str, str], message: str) -> str:
        root = Path(git_repo.working_tree_dir)
        for relative_path, content in files.items():
            target = root / relative_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        git_repo.index.add(list(files))
        commit = git_repo.index.commit(
            message, author=TEST_AUTHOR, committer=TEST_AUTHOR
        )
        return commit.hexsha

    return _commit
