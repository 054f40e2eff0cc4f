"""Caller-facing snapshot operations."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from llm_checkpoint.errors import CheckpointError, NotFound
from llm_checkpoint.schemas import BulkOperationResult, Snapshot, TrackedFile

from .admission_policy import AdmissionPolicy
from .history_export import HistoryExporter
from .label_marker import strip_label_marker
from .snapshot_repository import SnapshotRepository

logger = logging.getLogger(__name__)


class SnapshotLifecycleManager:
    """Coordinates saves, deletions and bulk pruning of snapshot history.

    All mutating operations take one store-wide lock, so an admission for a
    file never overlaps a bulk operation or another admission. Blocking
    storage calls run in worker threads.
    """

    def __init__(
        self,
        repository: SnapshotRepository,
        policy: AdmissionPolicy,
        exporter: HistoryExporter,
        list_limit: int = 10,
    ):
        self.repository = repository
        self.policy = policy
        self.exporter = exporter
        self.list_limit = list_limit
        self._lock = asyncio.Lock()
        self._queue: "asyncio.Queue[Tuple[str, str]]" = asyncio.Queue()

    def normalize_path(self, file_path: str) -> str:
        """Convert a path to the workspace-relative POSIX form used as file identity."""
        path = Path(file_path)
        if path.is_absolute():
            try:
                path = path.resolve().relative_to(self.exporter.workspace_root)
            except ValueError:
                return path.as_posix()
        return path.as_posix()

    # --- Admission ---

    async def save_current(self, file_path: str, content: str) -> Optional[Snapshot]:
        """Store a new snapshot when the admission policy accepts the content."""
        file_path = self.normalize_path(file_path)
        async with self._lock:
            tracked = await asyncio.to_thread(
                self.repository.get_or_create_file, file_path
            )
            latest = await asyncio.to_thread(
                self.repository.list_snapshots, tracked.id, 1
            )
            previous = strip_label_marker(latest[0].content) if latest else None

            if not self.policy.should_admit(previous, content):
                logger.debug("Change to %s not admitted", file_path)
                return None

            snapshot = await asyncio.to_thread(
                self.repository.create_snapshot, tracked.id, content
            )
        logger.info("Saved version %s of %s", snapshot.version_number, file_path)
        return snapshot

    async def enqueue_save(self, file_path: str, content: str) -> None:
        """Queue a save event for the consumer started by ``process_queue``."""
        await self._queue.put((file_path, content))

    async def process_queue(self) -> None:
        """Apply queued save events in arrival order until cancelled."""
        while True:
            file_path, content = await self._queue.get()
            try:
                await self.save_current(file_path, content)
            except CheckpointError as e:
                logger.error("Failed to save version of %s: %s", file_path, e)
            finally:
                self._queue.task_done()

    async def wait_for_queue(self) -> None:
        await self._queue.join()

    # --- Reads ---

    async def list_files(self) -> List[TrackedFile]:
        return await asyncio.to_thread(self.repository.list_files)

    async def get_file(self, file_path: str) -> Optional[TrackedFile]:
        return await asyncio.to_thread(
            self.repository.get_file, self.normalize_path(file_path)
        )

    async def list_snapshots(
        self, file_id: int, limit: Optional[int] = None
    ) -> List[Snapshot]:
        return await asyncio.to_thread(
            self.repository.list_snapshots, file_id, limit or self.list_limit
        )

    async def get_snapshot(self, snapshot_id: int) -> Snapshot:
        snapshot = await asyncio.to_thread(self.repository.get_snapshot, snapshot_id)
        if snapshot is None:
            raise NotFound(f"Snapshot {snapshot_id} not found")
        return snapshot

    # --- Deletion ---

    async def delete_one(self, snapshot_id: int) -> None:
        async with self._lock:
            await asyncio.to_thread(self.repository.delete_snapshot, snapshot_id)
        logger.info("Deleted snapshot %s", snapshot_id)

    async def quick_clean(self) -> BulkOperationResult:
        """Keep only the most recent snapshot of every file."""
        result = BulkOperationResult()
        async with self._lock:
            files = await asyncio.to_thread(self.repository.list_files)
            for tracked in files:
                try:
                    latest = await asyncio.to_thread(
                        self.repository.list_snapshots, tracked.id, 1
                    )
                    if not latest:
                        continue
                    deleted = await asyncio.to_thread(
                        self.repository.delete_snapshots_except,
                        tracked.id,
                        latest[0].id,
                    )
                except CheckpointError as e:
                    logger.error("Quick clean failed for %s: %s", tracked.file_path, e)
                    result.errors[tracked.file_path] = str(e)
                    continue
                result.files_processed += 1
                result.snapshots_deleted += deleted

        logger.info(
            "Quick clean removed %d snapshots across %d files",
            result.snapshots_deleted,
            result.files_processed,
        )
        return result

    async def clear_all(self, remove_files: bool = False) -> BulkOperationResult:
        """Delete every snapshot of every file.

        File records are kept as empty history entries unless ``remove_files``
        is set, in which case they are removed along with their snapshots.
        """
        clear = (
            self.repository.delete_file
            if remove_files
            else self.repository.delete_all_snapshots
        )
        result = BulkOperationResult()
        async with self._lock:
            files = await asyncio.to_thread(self.repository.list_files)
            for tracked in files:
                try:
                    deleted = await asyncio.to_thread(clear, tracked.id)
                except CheckpointError as e:
                    logger.error("Clear failed for %s: %s", tracked.file_path, e)
                    result.errors[tracked.file_path] = str(e)
                    continue
                result.files_processed += 1
                result.snapshots_deleted += deleted

        logger.info("Cleared %d snapshots", result.snapshots_deleted)
        return result

    # --- Export and restore ---

    async def _source_path(self, snapshot: Snapshot) -> str:
        tracked = await asyncio.to_thread(
            self.repository.get_file_by_id, snapshot.file_id
        )
        if tracked is None:
            raise NotFound(f"File {snapshot.file_id} not found")
        return tracked.file_path

    async def export_snapshot_to_path(
        self, snapshot: Snapshot, destination: Optional[str] = None
    ) -> Path:
        file_path = await self._source_path(snapshot)
        return await asyncio.to_thread(
            self.exporter.export_snapshot, snapshot, file_path, destination
        )

    async def append_snapshot_to_path(
        self, snapshot: Snapshot, destination: Optional[str] = None
    ) -> Path:
        file_path = await self._source_path(snapshot)
        return await asyncio.to_thread(
            self.exporter.append_snapshot, snapshot, file_path, destination
        )

    async def restore_snapshot(self, snapshot_id: int) -> Path:
        """Overwrite the workspace file with the content of a snapshot."""
        snapshot = await self.get_snapshot(snapshot_id)
        file_path = await self._source_path(snapshot)
        return await asyncio.to_thread(
            self.exporter.restore_snapshot, snapshot, file_path
        )
