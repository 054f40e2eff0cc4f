from sqlalchemy import inspect, text
from sqlalchemy.orm import Session

from alembic import command
from llm_checkpoint.db import create_session_factory
from llm_checkpoint.services import SnapshotRepository


def test_db_connection(db_session: Session):
    """Smoke test for database connection using conftest fixture."""
    result = db_session.execute(text("SELECT 1")).fetchone()
    assert result[0] == 1


def test_foreign_keys_enabled(db_session: Session):
    result = db_session.execute(text("PRAGMA foreign_keys")).fetchone()
    assert result[0] == 1


def test_migration_creates_tables(migrated_engine):
    tables = set(inspect(migrated_engine).get_table_names())
    assert {"files", "versions", "repository_commits"} <= tables

    indexes = {index["name"] for index in inspect(migrated_engine).get_indexes("versions")}
    assert {"idx_versions_file_id", "idx_versions_timestamp"} <= indexes


def test_repository_on_migrated_schema(migrated_engine):
    repository = SnapshotRepository(create_session_factory(migrated_engine))
    tracked = repository.create_file("a.txt")
    first = repository.create_snapshot(tracked.id, "one")
    second = repository.create_snapshot(tracked.id, "two")

    assert (first.version_number, second.version_number) == (1, 2)
    assert repository.delete_file(tracked.id) == 2
    assert repository.get_snapshot(first.id) is None


def test_downgrade_drops_tables(migrated_engine, alembic_config):
    command.downgrade(alembic_config, "base")
    tables = set(inspect(migrated_engine).get_table_names())
    assert not {"files", "versions", "repository_commits"} & tables


async def test_api_health_check(client):
    """Test API health check endpoint."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
