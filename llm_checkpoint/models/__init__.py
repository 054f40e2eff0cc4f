"""Persistence models for the application."""

from .tables import Base, FileRecord, RepositoryCommitRecord, SnapshotRecord

__all__ = ["Base", "FileRecord", "RepositoryCommitRecord", "SnapshotRecord"]
