from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from alembic import command
from alembic.config import Config
from llm_checkpoint.db import create_db_engine, create_session_factory
from llm_checkpoint.main import app

ALEMBIC_DIR = Path(__file__).resolve().parents[2] / "alembic"


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'migrated' / 'file_versions.db'}"


@pytest.fixture
def alembic_config(db_url: str) -> Config:
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    config.set_main_option("sqlalchemy.url", db_url)
    return config


@pytest.fixture
def migrated_engine(db_url: str, alembic_config: Config) -> Generator[Engine, None, None]:
    """
    Engine for a SQLite database created by running the migrations to head.
    """
    engine = create_db_engine(db_url)
    command.upgrade(alembic_config, "head")
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(migrated_engine: Engine) -> Generator[Session, None, None]:
    """
    Provides a session on the migrated database for each test function.
    """
    session = create_session_factory(migrated_engine)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c
