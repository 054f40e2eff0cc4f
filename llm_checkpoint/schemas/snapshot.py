from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TrackedFile(BaseModel):
    """A workspace file with snapshot history."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    file_path: str
    current_version_id: Optional[int] = None


class Snapshot(BaseModel):
    """One stored content state of a file."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    file_id: int
    content: str
    timestamp: datetime
    version_number: int
    label: Optional[str] = None


class SaveRequest(BaseModel):
    file_path: str
    content: str


class SaveResponse(BaseModel):
    admitted: bool
    file: TrackedFile
    snapshot: Optional[Snapshot] = None
    message: str


class ExportRequest(BaseModel):
    destination: Optional[str] = None  # Defaults to HISTORY_CONTEXT_PATH


class ExportResponse(BaseModel):
    snapshot_id: int
    destination: str
    message: str


class BulkOperationResult(BaseModel):
    """Outcome of an operation applied file by file."""

    files_processed: int = 0
    snapshots_deleted: int = 0
    errors: Dict[str, str] = Field(default_factory=dict)  # file path -> error

    @property
    def success(self) -> bool:
        return not self.errors


class RepositoryReconcileResult(BaseModel):
    """Outcome of one reconciliation pass over a repository."""

    repo_path: str
    status: str  # idle, baseline, pending, reconciled, failed
    commit_hash: Optional[str] = None
    label: Optional[str] = None
    files_labeled: List[str] = Field(default_factory=list)
    snapshots_deleted: int = 0
    errors: Dict[str, str] = Field(default_factory=dict)
