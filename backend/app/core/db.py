"""Database utilities for SQLAlchemy and Alembic."""
from __future__ import annotations

import logging
from typing import Generator

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _create_engine() -> Engine:
    """Create the SQLAlchemy engine using application settings."""

    if settings.DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            settings.DATABASE_URL,
            future=True,
            connect_args={"check_same_thread": False},
        )
        enable_sqlite_foreign_keys(engine)
        return engine
    return create_engine(settings.DATABASE_URL, pool_pre_ping=True, future=True)


ENGINE: Engine = _create_engine()
SessionLocal = sessionmaker[
    Session
](bind=ENGINE, autoflush=False, autocommit=False, expire_on_commit=False)


def get_session() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def database_reachable(session: Session) -> bool:
    """Run a trivial query; ``False`` when the database cannot be reached."""

    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database connectivity check failed")
        return False
    return True
