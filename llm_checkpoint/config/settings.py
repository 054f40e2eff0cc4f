import logging
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Values are read from the process environment and, when present, from a
    ``.env`` file in the working directory. Relative paths are resolved
    against ``WORKSPACE_ROOT``.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Storage
    DATABASE_URL: str = "sqlite:///./.llm_checkpoint/file_versions.db"

    # Workspace and export
    WORKSPACE_ROOT: str = "."
    HISTORY_CONTEXT_PATH: str = "history_context.txt"

    # Admission: save every change, or only multi-line changes
    SAVE_ALL_CHANGES: bool = False
    SNAPSHOT_LIST_LIMIT: int = 10

    # Commit reconciliation
    AUTO_CLEANUP_AFTER_COMMIT: bool = True
    REPOSITORY_PATHS: List[str] = []  # Empty means the workspace root
    COMMIT_POLL_INTERVAL: float = 5.0  # Seconds between reconciliation ticks

    # Development and debugging
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level to the root logger."""
    level = logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
