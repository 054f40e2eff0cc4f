"""Error taxonomy shared by the snapshot store, reconciler and API."""


class CheckpointError(Exception):
    """Base class for all snapshot store errors."""


class NotFound(CheckpointError):
    """Raised when a file id, snapshot id or repository path is unknown."""


class DuplicateKey(CheckpointError):
    """Raised when a file record already exists for a path."""


class StorageIOFailure(CheckpointError):
    """Raised when the backing store cannot be read or written."""


class ExternalToolFailure(CheckpointError):
    """Raised when the version-control inspection facility fails."""
