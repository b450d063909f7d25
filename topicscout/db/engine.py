"""Database engine factory and session management."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from topicscout.db.models import create_tables

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _enable_sqlite_wal(dbapi_conn, _connection_record):
    """Enable WAL mode for SQLite for better concurrent access."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def init_engine(url: str) -> Engine:
    """Create the engine for *url*, create missing tables and return it."""
    global _engine, _session_factory

    is_sqlite = url.startswith("sqlite")
    kwargs: dict = {}
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url == "sqlite://":
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool

    _engine = create_engine(url, echo=False, **kwargs)
    if is_sqlite and "poolclass" not in kwargs:
        event.listen(_engine, "connect", _enable_sqlite_wal)

    create_tables(_engine)
    _session_factory = sessionmaker(bind=_engine)
    logger.info("Database engine initialised (%s)", _engine.url.get_backend_name())
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database engine not initialised - call init_engine() first")
    return _engine


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Provide a transactional database session."""
    if _session_factory is None:
        raise RuntimeError("Database engine not initialised - call init_engine() first")
    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
