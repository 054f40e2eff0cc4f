"""Database engine and session helpers."""

from .database import create_db_engine, create_session_factory, init_db

__all__ = ["create_db_engine", "create_session_factory", "init_db"]
