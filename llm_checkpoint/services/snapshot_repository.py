"""Durable storage of tracked files, their snapshots and commit cursors.

Every mutation runs as a single SQLAlchemy transaction while holding the
store-wide write lock, so reading the highest version number and inserting the
next snapshot can never interleave with another writer. Records are returned
as detached pydantic models; callers never see live ORM objects.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from llm_checkpoint.errors import DuplicateKey, NotFound, StorageIOFailure
from llm_checkpoint.models import FileRecord, RepositoryCommitRecord, SnapshotRecord
from llm_checkpoint.schemas import Snapshot, TrackedFile

from .label_marker import apply_label_marker

logger = logging.getLogger(__name__)


class SnapshotRepository:
    """Keyed storage for files and their ordered snapshots."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory
        self._write_lock = threading.RLock()

    @contextmanager
    def _read(self) -> Iterator[Session]:
        try:
            with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            raise StorageIOFailure(f"Failed to read snapshot store: {e}") from e

    @contextmanager
    def _write(self) -> Iterator[Session]:
        with self._write_lock:
            try:
                with self._session_factory.begin() as session:
                    yield session
            except SQLAlchemyError as e:
                raise StorageIOFailure(f"Failed to write snapshot store: {e}") from e

    # --- Files ---

    def create_file(self, file_path: str) -> TrackedFile:
        with self._write() as session:
            existing = session.scalar(
                select(FileRecord).where(FileRecord.file_path == file_path)
            )
            if existing is not None:
                raise DuplicateKey(f"File already tracked: {file_path}")

            record = FileRecord(file_path=file_path)
            session.add(record)
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateKey(f"File already tracked: {file_path}") from e

            logger.debug("Created file record %s for %s", record.id, file_path)
            return TrackedFile.model_validate(record)

    def get_or_create_file(self, file_path: str) -> TrackedFile:
        """Return the file record for a path, creating it when unseen."""
        existing = self.get_file(file_path)
        if existing is not None:
            return existing
        try:
            return self.create_file(file_path)
        except DuplicateKey:
            found = self.get_file(file_path)
            if found is None:
                raise
            return found

    def get_file(self, file_path: str) -> Optional[TrackedFile]:
        with self._read() as session:
            record = session.scalar(
                select(FileRecord).where(FileRecord.file_path == file_path)
            )
            return TrackedFile.model_validate(record) if record else None

    def get_file_by_id(self, file_id: int) -> Optional[TrackedFile]:
        with self._read() as session:
            record = session.get(FileRecord, file_id)
            return TrackedFile.model_validate(record) if record else None

    def list_files(self) -> List[TrackedFile]:
        with self._read() as session:
            records = session.scalars(select(FileRecord).order_by(FileRecord.file_path))
            return [TrackedFile.model_validate(record) for record in records]

    # --- Snapshots ---

    def create_snapshot(self, file_id: int, content: str) -> Snapshot:
        """Insert the next numbered snapshot and point the file at it."""
        with self._write() as session:
            file_record = session.get(FileRecord, file_id)
            if file_record is None:
                raise NotFound(f"File {file_id} not found")

            max_version = session.scalar(
                select(func.coalesce(func.max(SnapshotRecord.version_number), 0)).where(
                    SnapshotRecord.file_id == file_id
                )
            )
            record = SnapshotRecord(
                file_id=file_id,
                content=content,
                version_number=max_version + 1,
            )
            session.add(record)
            session.flush()

            file_record.current_version_id = record.id
            session.flush()

            logger.debug(
                "Created version %s for %s", record.version_number, file_record.file_path
            )
            return Snapshot.model_validate(record)

    def list_snapshots(
        self, file_id: int, limit: Optional[int] = 10, newest_first: bool = True
    ) -> List[Snapshot]:
        """List snapshots of a file ordered by version number."""
        with self._read() as session:
            if session.get(FileRecord, file_id) is None:
                raise NotFound(f"File {file_id} not found")

            order = SnapshotRecord.version_number
            stmt = (
                select(SnapshotRecord)
                .where(SnapshotRecord.file_id == file_id)
                .order_by(order.desc() if newest_first else order.asc())
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            return [Snapshot.model_validate(record) for record in session.scalars(stmt)]

    def count_snapshots(self, file_id: int) -> int:
        with self._read() as session:
            return session.scalar(
                select(func.count())
                .select_from(SnapshotRecord)
                .where(SnapshotRecord.file_id == file_id)
            )

    def get_snapshot(self, snapshot_id: int) -> Optional[Snapshot]:
        with self._read() as session:
            record = session.get(SnapshotRecord, snapshot_id)
            return Snapshot.model_validate(record) if record else None

    def get_current_snapshot(self, file_id: int) -> Optional[Snapshot]:
        with self._read() as session:
            file_record = session.get(FileRecord, file_id)
            if file_record is None:
                raise NotFound(f"File {file_id} not found")
            if file_record.current_version_id is None:
                return None
            record = session.get(SnapshotRecord, file_record.current_version_id)
            return Snapshot.model_validate(record) if record else None

    def delete_snapshot(self, snapshot_id: int) -> None:
        """Delete one snapshot without renumbering its siblings."""
        with self._write() as session:
            record = session.get(SnapshotRecord, snapshot_id)
            if record is None:
                raise NotFound(f"Snapshot {snapshot_id} not found")

            file_record = session.get(FileRecord, record.file_id)
            session.delete(record)
            session.flush()

            if file_record is not None and file_record.current_version_id == snapshot_id:
                file_record.current_version_id = self._latest_snapshot_id(
                    session, file_record.id
                )

    def update_snapshot_content_and_label(
        self, snapshot_id: int, content: str, label: Optional[str]
    ) -> Snapshot:
        with self._write() as session:
            record = session.get(SnapshotRecord, snapshot_id)
            if record is None:
                raise NotFound(f"Snapshot {snapshot_id} not found")
            record.content = content
            record.label = label
            session.flush()
            return Snapshot.model_validate(record)

    def label_latest_snapshot(
        self, file_id: int, label: str, prune: bool = True
    ) -> Optional[Tuple[Snapshot, int]]:
        """Mark the newest snapshot of a file with a commit label.

        The newest version is read, relabeled and, with ``prune``, made the only
        remaining snapshot in one transaction, so a version saved concurrently
        is either the one labeled or saved afterwards. Returns the labeled
        snapshot and the number deleted, or None when the file has no history.
        """
        with self._write() as session:
            file_record = session.get(FileRecord, file_id)
            if file_record is None:
                raise NotFound(f"File {file_id} not found")

            latest_id = self._latest_snapshot_id(session, file_id)
            if latest_id is None:
                return None
            record = session.get(SnapshotRecord, latest_id)
            record.content = apply_label_marker(record.content, label)
            record.label = label

            deleted = 0
            if prune:
                result = session.execute(
                    delete(SnapshotRecord).where(
                        SnapshotRecord.file_id == file_id,
                        SnapshotRecord.id != latest_id,
                    )
                )
                deleted = result.rowcount or 0
            file_record.current_version_id = latest_id
            session.flush()
            return Snapshot.model_validate(record), deleted

    def delete_snapshots_except(self, file_id: int, keep_snapshot_id: int) -> int:
        """Delete every snapshot of a file except one. Returns the number deleted."""
        with self._write() as session:
            file_record = session.get(FileRecord, file_id)
            if file_record is None:
                raise NotFound(f"File {file_id} not found")
            keep = session.get(SnapshotRecord, keep_snapshot_id)
            if keep is None or keep.file_id != file_id:
                raise NotFound(f"Snapshot {keep_snapshot_id} not found for file {file_id}")

            result = session.execute(
                delete(SnapshotRecord).where(
                    SnapshotRecord.file_id == file_id,
                    SnapshotRecord.id != keep_snapshot_id,
                )
            )
            file_record.current_version_id = keep_snapshot_id
            return result.rowcount or 0

    def delete_file(self, file_id: int) -> int:
        """Remove a file record; its snapshots are cascade-deleted. Returns snapshots removed."""
        with self._write() as session:
            file_record = session.get(FileRecord, file_id)
            if file_record is None:
                raise NotFound(f"File {file_id} not found")

            removed = session.scalar(
                select(func.count())
                .select_from(SnapshotRecord)
                .where(SnapshotRecord.file_id == file_id)
            )
            session.delete(file_record)
            return removed or 0

    def delete_all_snapshots(self, file_id: int) -> int:
        """Delete the whole history of a file, keeping the file record."""
        with self._write() as session:
            file_record = session.get(FileRecord, file_id)
            if file_record is None:
                raise NotFound(f"File {file_id} not found")

            result = session.execute(
                delete(SnapshotRecord).where(SnapshotRecord.file_id == file_id)
            )
            file_record.current_version_id = None
            return result.rowcount or 0

    @staticmethod
    def _latest_snapshot_id(session: Session, file_id: int) -> Optional[int]:
        return session.scalar(
            select(SnapshotRecord.id)
            .where(SnapshotRecord.file_id == file_id)
            .order_by(SnapshotRecord.version_number.desc())
            .limit(1)
        )

    # --- Commit cursors ---

    def get_commit_cursor(self, repo_path: str) -> Optional[str]:
        with self._read() as session:
            record = session.get(RepositoryCommitRecord, repo_path)
            return record.commit_hash if record else None

    def set_commit_cursor(self, repo_path: str, commit_hash: str) -> None:
        with self._write() as session:
            record = session.get(RepositoryCommitRecord, repo_path)
            if record is None:
                session.add(
                    RepositoryCommitRecord(repo_path=repo_path, commit_hash=commit_hash)
                )
            else:
                record.commit_hash = commit_hash
