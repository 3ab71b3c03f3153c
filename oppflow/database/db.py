"""Engine and session management.

One process-wide engine bound to ``DATABASE_URL``. Request handlers get a session
from ``get_db``; scripts and startup code use the ``get_db_session`` context
manager. ``reset_engine`` rebinds both, which tests use to point the layer at an
in-memory database.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from oppflow.core.config import get_config

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker | None = None
_active_url: str = ""


def _build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    echo = get_config().DEBUG
    if url.get_backend_name() == "sqlite":
        options: dict = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # Every checkout must see the same in-memory database.
            options["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **options)
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
        max_overflow=20,
    )


def reset_engine(database_url: str | None = None) -> None:
    """Rebind the engine and session factory to ``database_url`` (default: config)."""
    global _engine, _session_factory, _active_url
    if _engine is not None:
        _engine.dispose()
    _active_url = database_url or get_config().DATABASE_URL
    _engine = _build_engine(_active_url)
    _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)


def get_engine() -> Engine:
    if _engine is None:
        reset_engine()
    return _engine


def get_active_database_url() -> str:
    get_engine()
    return _active_url


def _new_session() -> Session:
    get_engine()
    return _session_factory()


def get_db() -> Generator[Session, None, None]:
    """Yield one session per request."""
    db = _new_session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Iterator[Session]:
    db = _new_session()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create missing tables on the active engine (local and test runs)."""
    from oppflow.models import Base

    Base.metadata.create_all(bind=get_engine())
    logger.info("database.tables.ensured", extra={"event": "database.tables.ensured"})


def verify_database_connection() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("database.connection_failed", extra={"event": "database.connection_failed"})
        return False
    return True
