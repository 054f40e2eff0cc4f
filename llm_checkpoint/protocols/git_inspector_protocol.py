"""Git inspector protocol interface."""

from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from llm_checkpoint.schemas import CommitInfo, FileChange


@runtime_checkable
class GitInspectorProtocol(Protocol):
    """Protocol for the version-control inspection facility."""

    @property
    def working_tree_dir(self) -> Path:
        """Root directory of the repository's working tree."""
        ...

    def get_head_hash(self) -> Optional[str]:
        """Current HEAD commit hash, or None before the first commit."""
        ...

    def has_pending_changes(self) -> bool:
        """Whether staged changes are waiting to be committed."""
        ...

    def get_changed_files(self, old_hash: str, new_hash: str) -> List[FileChange]:
        """Files that differ between two commits."""
        ...

    def get_commit_info(self, commit_hash: str = "HEAD") -> CommitInfo:
        """Hash and message of a commit."""
        ...
