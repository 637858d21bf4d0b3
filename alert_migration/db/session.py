"""Engine and session handling for the Grafana database being migrated."""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

DATABASE_URL_ENV_VARS = ("ALERT_MIGRATION_DATABASE_URL", "DATABASE_URL")

# Dialects whose default collation compares text case-insensitively.
CASE_INSENSITIVE_DIALECTS = frozenset({"mysql", "mariadb"})

_ENGINE: Engine | None = None
SessionLocal: sessionmaker[Session] | None = None


def get_database_url() -> str:
    for name in DATABASE_URL_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    raise RuntimeError(f"database url is not set (tried {', '.join(DATABASE_URL_ENV_VARS)})")


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Module engine; passing a url replaces it (and the session factory bound to it)."""
    global _ENGINE, SessionLocal
    if _ENGINE is None or database_url is not None:
        _ENGINE = create_engine(database_url or get_database_url(), future=True, pool_pre_ping=True)
        SessionLocal = None
    return _ENGINE


def _session_factory() -> sessionmaker[Session]:
    global SessionLocal
    engine = get_engine()
    if SessionLocal is None:
        SessionLocal = sessionmaker(bind=engine, future=True)
    return SessionLocal


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Read session; the caller commits if it writes."""
    session = _session_factory()()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Commit on success, roll back on error."""
    with get_session() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def titles_case_insensitive(engine: Optional[Engine] = None) -> bool:
    """Whether title uniqueness in the store ignores case."""
    engine = engine or get_engine()
    return engine.dialect.name in CASE_INSENSITIVE_DIALECTS
