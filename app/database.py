"""
Database engine, session factory and transaction helpers.
"""
import sqlite3
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless enforcement is switched on per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def engine_options(database_url: str, timeout: int) -> dict:
    """Connection options bounding how long a store call may block."""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    return {
        "pool_pre_ping": True,
        "pool_timeout": timeout,
        "connect_args": {"connect_timeout": timeout},
    }


engine = create_engine(
    settings.database_url,
    **engine_options(settings.database_url, settings.db_timeout_seconds),
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a block of writes as one transaction.

    Commits when the block finishes and rolls back on any exception, which is
    re-raised so callers can translate constraint violations.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
