"""Services for the application."""

from .admission_policy import AdmissionPolicy, count_changed_lines
from .commit_reconciler import CommitReconciler, ReconcilerState
from .factory import CheckpointServices, create_services_from_settings
from .git_inspector import GitInspector
from .history_export import HistoryExporter
from .lifecycle_manager import SnapshotLifecycleManager
from .snapshot_repository import SnapshotRepository

__all__ = [
    "AdmissionPolicy",
    "CheckpointServices",
    "CommitReconciler",
    "GitInspector",
    "HistoryExporter",
    "ReconcilerState",
    "SnapshotLifecycleManager",
    "SnapshotRepository",
    "count_changed_lines",
    "create_services_from_settings",
]
