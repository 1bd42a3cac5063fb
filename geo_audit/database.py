"""Database engine, session management, and initialization (SQLAlchemy)."""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///data/geo_audit.db"


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


_engine = None
_SessionFactory: sessionmaker | None = None


def _sqlite_pragmas(dbapi_conn, connection_record):
    """WAL journal, foreign keys and a busy timeout for SQLite connections."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA synchronous=NORMAL;")
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.execute("PRAGMA busy_timeout=5000;")
    cursor.close()


def get_engine(database_url: str | None = None, echo: bool = False):
    """Return (and cache) the global engine.

    Args:
        database_url: Connection string.  Falls back to the ``DATABASE_URL``
                      env-var, then to a SQLite file under ``data/``.
        echo: Whether to log every SQL statement.
    """
    global _engine
    if _engine is not None:
        return _engine

    if database_url is None:
        database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

    kwargs: dict = {"echo": echo, "pool_pre_ping": True}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url == "sqlite://":
            # One shared connection, otherwise each checkout sees an empty DB.
            kwargs["poolclass"] = StaticPool
        elif database_url.startswith("sqlite:///"):
            Path(database_url.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)

    _engine = create_engine(database_url, **kwargs)
    if is_sqlite:
        event.listen(_engine, "connect", _sqlite_pragmas)
    logger.info("Database engine created: %s", database_url)
    return _engine


def get_session_factory(engine=None) -> sessionmaker:
    """Return (and cache) the global session factory."""
    global _SessionFactory
    if _SessionFactory is not None:
        return _SessionFactory
    if engine is None:
        engine = get_engine()
    _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)
    return _SessionFactory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Provide a transactional session; commits on success, rolls back on error.

    Usage::

        with get_session() as session:
            session.add(obj)
    """
    factory = get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(database_url: str | None = None, echo: bool = False) -> None:
    """Create all tables that do not yet exist."""
    engine = get_engine(database_url=database_url, echo=echo)
    # Side-effect import: registers all models with Base.metadata
    import geo_audit.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("All database tables created / verified.")


def reset_db(database_url: str | None = None) -> None:
    """Drop and recreate every table.  **Destructive**; use only in tests."""
    engine = get_engine(database_url=database_url)
    import geo_audit.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.warning("Database has been reset (all tables dropped and recreated).")


def reset_engine() -> None:
    """Dispose of the cached engine and session factory (useful for tests)."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
