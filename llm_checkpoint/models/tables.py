"""SQLAlchemy ORM tables for the snapshot store.

The ``Base`` declarative base is shared with the Alembic migrations.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all snapshot store tables."""


class FileRecord(Base):
    """A tracked workspace file and its current snapshot pointer."""

    __tablename__ = "files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    file_path: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    # Maintained by SnapshotRepository, not by a foreign key
    current_version_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    snapshots: Mapped[List["SnapshotRecord"]] = relationship(
        back_populates="file",
        foreign_keys="SnapshotRecord.file_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class SnapshotRecord(Base):
    """One persisted content state of a file."""

    __tablename__ = "versions"
    __table_args__ = (
        UniqueConstraint("file_id", "version_number", name="uq_versions_file_version"),
        Index("idx_versions_file_id", "file_id"),
        Index("idx_versions_timestamp", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    file_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    label: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    file: Mapped[FileRecord] = relationship(
        back_populates="snapshots", foreign_keys=[file_id]
    )


class RepositoryCommitRecord(Base):
    """Last processed commit hash per version-control repository."""

    __tablename__ = "repository_commits"

    repo_path: Mapped[str] = mapped_column(String, primary_key=True)
    commit_hash: Mapped[str] = mapped_column(String, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
