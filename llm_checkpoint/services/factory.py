"""Factory wiring the snapshot store services from settings."""

import logging
from pathlib import Path
from typing import Dict

from sqlalchemy import Engine

from llm_checkpoint.config.settings import Settings
from llm_checkpoint.db import create_db_engine, create_session_factory, init_db
from llm_checkpoint.protocols.git_inspector_protocol import GitInspectorProtocol

from .admission_policy import AdmissionPolicy
from .commit_reconciler import CommitReconciler
from .git_inspector import GitInspector
from .history_export import HistoryExporter
from .lifecycle_manager import SnapshotLifecycleManager
from .snapshot_repository import SnapshotRepository

logger = logging.getLogger(__name__)


class CheckpointServices:
    """The set of long-lived services shared by the API and background tasks."""

    def __init__(
        self,
        engine: Engine,
        repository: SnapshotRepository,
        lifecycle_manager: SnapshotLifecycleManager,
        reconciler: CommitReconciler,
    ):
        self.engine = engine
        self.repository = repository
        self.lifecycle_manager = lifecycle_manager
        self.reconciler = reconciler

    def close(self) -> None:
        self.engine.dispose()


def create_inspectors(settings: Settings) -> Dict[str, GitInspectorProtocol]:
    """
    Create one git inspector per configured repository path.

    Args:
        settings: Application settings. An empty REPOSITORY_PATHS tracks the
            workspace root itself.

    Returns:
        Mapping of resolved repository path to inspector
    """
    workspace_root = Path(settings.WORKSPACE_ROOT).resolve()
    repo_paths = settings.REPOSITORY_PATHS or [str(workspace_root)]

    inspectors: Dict[str, GitInspectorProtocol] = {}
    for repo_path in repo_paths:
        path = Path(repo_path)
        if not path.is_absolute():
            path = workspace_root / path
        resolved = str(path.resolve())
        inspectors[resolved] = GitInspector(resolved)
    return inspectors


def create_services_from_settings(settings: Settings) -> CheckpointServices:
    """
    Build the repository, lifecycle manager and reconciler.

    Args:
        settings: Application settings

    Returns:
        CheckpointServices sharing one database engine
    """
    engine = create_db_engine(settings.DATABASE_URL)
    init_db(engine)
    repository = SnapshotRepository(create_session_factory(engine))

    exporter = HistoryExporter(
        workspace_root=settings.WORKSPACE_ROOT,
        history_path=settings.HISTORY_CONTEXT_PATH,
    )
    lifecycle_manager = SnapshotLifecycleManager(
        repository=repository,
        policy=AdmissionPolicy(save_all_changes=settings.SAVE_ALL_CHANGES),
        exporter=exporter,
        list_limit=settings.SNAPSHOT_LIST_LIMIT,
    )
    reconciler = CommitReconciler(
        repository=repository,
        inspectors=create_inspectors(settings),
        workspace_root=settings.WORKSPACE_ROOT,
        auto_cleanup=settings.AUTO_CLEANUP_AFTER_COMMIT,
    )
    logger.info(
        "Snapshot store ready (save_all_changes=%s, auto_cleanup=%s)",
        settings.SAVE_ALL_CHANGES,
        settings.AUTO_CLEANUP_AFTER_COMMIT,
    )
    return CheckpointServices(engine, repository, lifecycle_manager, reconciler)
