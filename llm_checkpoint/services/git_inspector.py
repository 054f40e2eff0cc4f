import logging
from pathlib import Path
from typing import List, Optional

from git import Repo
from git.exc import (
    BadName,
    GitCommandError,
    GitCommandNotFound,
    InvalidGitRepositoryError,
    NoSuchPathError,
)

from llm_checkpoint.errors import ExternalToolFailure
from llm_checkpoint.schemas import CommitInfo, FileChange, FileStatus

logger = logging.getLogger(__name__)

_GIT_ERRORS = (
    BadName,
    GitCommandError,
    GitCommandNotFound,
    InvalidGitRepositoryError,
    NoSuchPathError,
    ValueError,
)


class GitInspector:
    """Read-only inspection of a local git repository."""

    def __init__(self, repo_path: str):
        self.repo_path = Path(repo_path).resolve()
        self.repo: Optional[Repo] = None

    def open_repository(self) -> Repo:
        """Open the repository on first use."""
        if self.repo is None:
            try:
                self.repo = Repo(self.repo_path)
            except _GIT_ERRORS as e:
                raise ExternalToolFailure(
                    f"Not a git repository: {self.repo_path}: {e}"
                ) from e
            logger.debug("Opened git repository at %s", self.repo_path)
        return self.repo

    @property
    def working_tree_dir(self) -> Path:
        repo = self.open_repository()
        return Path(repo.working_tree_dir or self.repo_path).resolve()

    def get_head_hash(self) -> Optional[str]:
        """Return the HEAD commit hash, or None for a repository without commits."""
        repo = self.open_repository()
        try:
            if not repo.head.is_valid():
                return None
            return repo.head.commit.hexsha
        except _GIT_ERRORS as e:
            raise ExternalToolFailure(f"Failed to read HEAD of {self.repo_path}: {e}") from e

    def has_pending_changes(self) -> bool:
        """True when the index holds staged changes not yet committed."""
        repo = self.open_repository()
        try:
            if not repo.head.is_valid():
                return bool(repo.index.entries)
            return repo.is_dirty(index=True, working_tree=False, untracked_files=False)
        except _GIT_ERRORS as e:
            raise ExternalToolFailure(
                f"Failed to read index state of {self.repo_path}: {e}"
            ) from e

    def get_changed_files(self, old_hash: str, new_hash: str) -> List[FileChange]:
        """Get the files that differ between two commits."""
        repo = self.open_repository()
        try:
            old_commit = repo.commit(old_hash)
            new_commit = repo.commit(new_hash)
            diff_items = old_commit.diff(new_commit)
        except _GIT_ERRORS as e:
            raise ExternalToolFailure(
                f"Failed to diff {old_hash}..{new_hash} in {self.repo_path}: {e}"
            ) from e

        changes = []
        for item in diff_items:
            file_path = item.b_path or item.a_path
            if not file_path:
                continue
            changes.append(
                FileChange(
                    status=FileStatus(item.change_type),
                    file_path=file_path,
                    old_file_path=item.a_path if item.renamed_file else None,
                )
            )
        return changes

    def get_commit_info(self, commit_hash: str = "HEAD") -> CommitInfo:
        repo = self.open_repository()
        try:
            commit = repo.commit(commit_hash)
        except _GIT_ERRORS as e:
            raise ExternalToolFailure(
                f"Failed to read commit {commit_hash} in {self.repo_path}: {e}"
            ) from e

        message = commit.message
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        message = message.strip()
        return CommitInfo(
            commit_hash=commit.hexsha,
            summary=message.splitlines()[0] if message else "",
            message=message,
        )
