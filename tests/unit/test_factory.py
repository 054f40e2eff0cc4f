"""Unit tests for settings and the service factory."""

from pathlib import Path

from llm_checkpoint.config.settings import Settings
from llm_checkpoint.services import GitInspector, create_services_from_settings
from llm_checkpoint.services.factory import create_inspectors


class TestSettings:
    """Test cases for Settings defaults."""

    def test_defaults(self, monkeypatch):
        for name in (
            "DATABASE_URL",
            "SAVE_ALL_CHANGES",
            "SNAPSHOT_LIST_LIMIT",
            "AUTO_CLEANUP_AFTER_COMMIT",
            "HISTORY_CONTEXT_PATH",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.SAVE_ALL_CHANGES is False
        assert settings.SNAPSHOT_LIST_LIMIT == 10
        assert settings.AUTO_CLEANUP_AFTER_COMMIT is True
        assert settings.HISTORY_CONTEXT_PATH == "history_context.txt"
        assert settings.DATABASE_URL.endswith("file_versions.db")

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SAVE_ALL_CHANGES", "true")
        monkeypatch.setenv("REPOSITORY_PATHS", '["repo-a", "repo-b"]')

        settings = Settings(_env_file=None)

        assert settings.SAVE_ALL_CHANGES is True
        assert settings.REPOSITORY_PATHS == ["repo-a", "repo-b"]


class TestFactory:
    """Test cases for create_inspectors and create_services_from_settings."""

    def test_inspectors_default_to_workspace(self, workspace: Path):
        settings = Settings(WORKSPACE_ROOT=str(workspace), REPOSITORY_PATHS=[])

        inspectors = create_inspectors(settings)

        assert list(inspectors) == [str(workspace)]
        assert isinstance(inspectors[str(workspace)], GitInspector)

    def test_relative_repository_paths(self, workspace: Path, tmp_path: Path):
        settings = Settings(
            WORKSPACE_ROOT=str(workspace),
            REPOSITORY_PATHS=["sub", str(tmp_path / "other")],
        )

        inspectors = create_inspectors(settings)

        assert sorted(inspectors) == sorted(
            [str(workspace / "sub"), str((tmp_path / "other").resolve())]
        )

    def test_create_services(self, workspace: Path, tmp_path: Path):
        settings = Settings(
            DATABASE_URL=f"sqlite:///{tmp_path / 'nested' / 'store.db'}",
            WORKSPACE_ROOT=str(workspace),
            SAVE_ALL_CHANGES=True,
            SNAPSHOT_LIST_LIMIT=5,
            AUTO_CLEANUP_AFTER_COMMIT=False,
            REPOSITORY_PATHS=[],
        )

        services = create_services_from_settings(settings)
        try:
            assert (tmp_path / "nested" / "store.db").exists()
            assert services.lifecycle_manager.policy.save_all_changes is True
            assert services.lifecycle_manager.list_limit == 5
            assert services.reconciler.auto_cleanup is False
            assert services.lifecycle_manager.repository is services.repository
            assert services.reconciler.repository is services.repository
        finally:
            services.close()
