"""Schemas for the application."""

from .git import CommitInfo, FileChange, FileStatus
from .snapshot import (
    BulkOperationResult,
    ExportRequest,
    ExportResponse,
    RepositoryReconcileResult,
    SaveRequest,
    SaveResponse,
    Snapshot,
    TrackedFile,
)

__all__ = [
    "BulkOperationResult",
    "CommitInfo",
    "ExportRequest",
    "ExportResponse",
    "FileChange",
    "FileStatus",
    "RepositoryReconcileResult",
    "SaveRequest",
    "SaveResponse",
    "Snapshot",
    "TrackedFile",
]
