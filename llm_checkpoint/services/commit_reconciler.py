"""Folds completed git commits into snapshot history.

For each tracked repository the reconciler compares the HEAD hash with the
stored commit cursor. When a new commit has landed and nothing is left staged,
the latest snapshot of every file touched by the commit range is labeled with
the commit summary, and with auto-cleanup enabled the older snapshots of those
files are removed. Files outside the commit keep their full history.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set

from llm_checkpoint.errors import CheckpointError, NotFound
from llm_checkpoint.protocols.git_inspector_protocol import GitInspectorProtocol
from llm_checkpoint.schemas import RepositoryReconcileResult

from .snapshot_repository import SnapshotRepository

logger = logging.getLogger(__name__)


class ReconcilerState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    APPLYING = "applying"


class CommitReconciler:
    """Watches git repositories and labels/prunes snapshots after commits."""

    def __init__(
        self,
        repository: SnapshotRepository,
        inspectors: Dict[str, GitInspectorProtocol],
        workspace_root: str,
        auto_cleanup: bool = True,
    ):
        self.repository = repository
        self.inspectors = dict(inspectors)
        self.workspace_root = Path(workspace_root).resolve()
        self.auto_cleanup = auto_cleanup

        self.states: Dict[str, ReconcilerState] = {
            repo_path: ReconcilerState.IDLE for repo_path in self.inspectors
        }
        self.last_seen: Dict[str, str] = {}
        self._tick_running = False
        self._tasks: Set[asyncio.Task] = set()

    # --- Scheduling ---

    async def tick(self) -> Optional[List[RepositoryReconcileResult]]:
        """Reconcile every repository once. Returns None when a tick is already running."""
        if self._tick_running:
            logger.debug("Reconciliation still in progress; skipping tick")
            return None

        self._tick_running = True
        try:
            results = []
            for repo_path in self.inspectors:
                result = await asyncio.to_thread(self.reconcile_repository, repo_path)
                results.append(result)
            return results
        finally:
            self._tick_running = False

    async def reconcile_now(self) -> Optional[List[RepositoryReconcileResult]]:
        return await self.tick()

    async def run(self, interval: float, stop_event: asyncio.Event) -> None:
        """Start a tick every ``interval`` seconds until ``stop_event`` is set."""
        logger.info(
            "Commit reconciler polling %d repositories every %.1fs",
            len(self.inspectors),
            interval,
        )
        while not stop_event.is_set():
            task = asyncio.create_task(self.tick())
            self._tasks.add(task)
            task.add_done_callback(self._on_tick_done)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Reconciliation tick failed: %s", task.exception())

    # --- Reconciliation ---

    def reconcile_repository(self, repo_path: str) -> RepositoryReconcileResult:
        """Run the idle → resolving → applying → idle cycle for one repository."""
        inspector = self.inspectors.get(repo_path)
        if inspector is None:
            raise NotFound(f"Repository not tracked: {repo_path}")

        result = RepositoryReconcileResult(repo_path=repo_path, status="idle")
        try:
            head = inspector.get_head_hash()
            if head is None:
                return result

            cursor = self.repository.get_commit_cursor(repo_path)
            if cursor == head:
                self.last_seen[repo_path] = head
                return result

            if inspector.has_pending_changes():
                logger.debug("Staged changes pending in %s; waiting for commit", repo_path)
                result.status = "pending"
                return result

            result.commit_hash = head
            if cursor is None:
                self.repository.set_commit_cursor(repo_path, head)
                self.last_seen[repo_path] = head
                logger.info("Recorded baseline commit %s for %s", head[:7], repo_path)
                result.status = "baseline"
                return result

            self.states[repo_path] = ReconcilerState.RESOLVING
            changes = inspector.get_changed_files(cursor, head)
            commit = inspector.get_commit_info(head)
            working_tree = inspector.working_tree_dir
        except CheckpointError as e:
            logger.warning("Skipping reconciliation of %s: %s", repo_path, e)
            self.states[repo_path] = ReconcilerState.IDLE
            result.status = "failed"
            result.errors[repo_path] = str(e)
            return result

        label = commit.summary or commit.commit_hash[:7]
        result.label = label

        self.states[repo_path] = ReconcilerState.APPLYING
        for change in changes:
            file_path = self._to_workspace_path(working_tree, change.file_path)
            if file_path is None:
                continue
            try:
                deleted = self._apply_commit_to_file(file_path, label)
            except CheckpointError as e:
                logger.error("Failed to reconcile %s with %s: %s", file_path, head[:7], e)
                result.errors[file_path] = str(e)
                continue
            if deleted is None:
                continue
            result.files_labeled.append(file_path)
            result.snapshots_deleted += deleted

        try:
            self.repository.set_commit_cursor(repo_path, head)
            self.last_seen[repo_path] = head
            result.status = "reconciled"
            logger.info(
                "Reconciled %s at %s: %d files labeled, %d snapshots removed",
                repo_path,
                head[:7],
                len(result.files_labeled),
                result.snapshots_deleted,
            )
        except CheckpointError as e:
            logger.error("Failed to store commit cursor for %s: %s", repo_path, e)
            result.status = "failed"
            result.errors[repo_path] = str(e)
        finally:
            self.states[repo_path] = ReconcilerState.IDLE

        return result

    def _apply_commit_to_file(self, file_path: str, label: str) -> Optional[int]:
        """Label the latest snapshot of a file. Returns snapshots deleted, or None if untracked."""
        tracked = self.repository.get_file(file_path)
        if tracked is None:
            return None

        labeled = self.repository.label_latest_snapshot(
            tracked.id, label, prune=self.auto_cleanup
        )
        if labeled is None:
            return None
        _, deleted = labeled
        return deleted

    def _to_workspace_path(self, working_tree: Path, repo_relative: str) -> Optional[str]:
        try:
            return (working_tree / repo_relative).relative_to(self.workspace_root).as_posix()
        except ValueError:
            return None
