import logging
from pathlib import Path
from typing import Optional

from llm_checkpoint.errors import StorageIOFailure
from llm_checkpoint.schemas import Snapshot

from .label_marker import strip_label_marker

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_FILENAME = "history_context.txt"


def format_snapshot_block(destination: str, content: str) -> str:
    """Human-readable block written to the history context file."""
    return f"Version from {destination}\n\n{content}"


class HistoryExporter:
    """Writes snapshots out of the store: history context files and restores."""

    def __init__(self, workspace_root: str, history_path: str = DEFAULT_HISTORY_FILENAME):
        self.workspace_root = Path(workspace_root).resolve()
        self.history_path = history_path

    def resolve_destination(self, destination: Optional[str] = None) -> Path:
        """Resolve a configured destination to a concrete file path.

        Relative paths are taken from the workspace root. A directory, a path
        ending in a separator, or a missing path without a file suffix gets
        the default history filename appended.
        """
        raw = (destination if destination is not None else self.history_path).strip()
        if not raw:
            raw = DEFAULT_HISTORY_FILENAME

        path = Path(raw)
        if not path.is_absolute():
            path = self.workspace_root / path

        if (
            path.is_dir()
            or raw.endswith(("/", "\\"))
            or (not path.exists() and not path.suffix)
        ):
            path = path / DEFAULT_HISTORY_FILENAME
        return path

    def display_path(self, target: Path) -> str:
        """Workspace-relative POSIX form of a destination, absolute when outside."""
        try:
            return target.relative_to(self.workspace_root).as_posix()
        except ValueError:
            return target.as_posix()

    def export_snapshot(
        self, snapshot: Snapshot, file_path: str, destination: Optional[str] = None
    ) -> Path:
        """Overwrite the destination with a single snapshot block."""
        target = self.resolve_destination(destination)
        block = format_snapshot_block(self.display_path(target), snapshot.content)
        self._write(target, block, mode="w")
        logger.info("Exported version %s of %s to %s", snapshot.version_number, file_path, target)
        return target

    def append_snapshot(
        self, snapshot: Snapshot, file_path: str, destination: Optional[str] = None
    ) -> Path:
        """Append a snapshot block to the end of the destination."""
        target = self.resolve_destination(destination)
        block = "\n\n" + format_snapshot_block(
            self.display_path(target), snapshot.content
        )
        self._write(target, block, mode="a")
        logger.info("Appended version %s of %s to %s", snapshot.version_number, file_path, target)
        return target

    def restore_snapshot(self, snapshot: Snapshot, file_path: str) -> Path:
        """Write a snapshot's content back to its file, without the commit marker."""
        target = self.workspace_root / file_path
        self._write(target, strip_label_marker(snapshot.content), mode="w")
        logger.info("Restored %s to version %s", file_path, snapshot.version_number)
        return target

    @staticmethod
    def _write(target: Path, text: str, mode: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps the written length equal to len(text)
            with open(target, mode, encoding="utf-8", newline="") as handle:
                handle.write(text)
        except OSError as e:
            raise StorageIOFailure(f"Failed to write {target}: {e}") from e
