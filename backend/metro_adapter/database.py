"""
Database configuration and session management.

This module sets up SQLAlchemy against the bots store and provides
database session management for the application. The engine is
created lazily so the database URL can come from the CLI or tests.
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import StaticPool

from metro_adapter.config import get_settings

logger = logging.getLogger(__name__)

# Base class for all models
Base = declarative_base()

# Session factory, bound once init_engine() has run
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

_engine: Optional[Engine] = None


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def init_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create the SQLAlchemy engine and bind the session factory to it.

    Args:
        database_url: Connection URL (defaults to the configured one)
        echo: Log SQL statements (defaults to the configured flag)

    Returns:
        The bound engine
    """
    global _engine

    settings = get_settings()
    url = database_url or settings.database.DATABASE_URL
    echo = settings.database.ECHO_SQL if echo is None else echo

    kwargs = {"echo": echo}
    if _is_sqlite(url):
        kwargs["connect_args"] = {"check_same_thread": False}  # Needed for SQLite
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool

    _engine = create_engine(url, **kwargs)

    if _is_sqlite(url):
        event.listen(_engine, "connect", _set_sqlite_pragma)

    SessionLocal.configure(bind=_engine)
    return _engine


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints on SQLite connections."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    """Return the current engine, creating it from settings if needed."""
    if _engine is None:
        return init_engine()
    return _engine


def get_db() -> Session:
    """
    Dependency function to get database session.

    Yields:
        Session: Database session that will be automatically closed.

    Usage:
        @router.post("/approve")
        async def approve(payload: BotPayload, db: Session = Depends(get_db)):
            ...
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """
    Initialise the database.

    Creates the bots table if it doesn't exist. Production deployments
    normally point at an existing store, so this is a no-op there.
    """
    # Import models here so they are registered with Base
    from metro_adapter.models import bot  # noqa: F401

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialised at {engine.url.render_as_string(hide_password=True)}")
