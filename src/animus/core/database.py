"""
Local storage database configuration and session management.

This module sets up the SQLAlchemy engine backing the on-device key-value
store, session factories, and helpers for creating the schema.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from animus.core.config import STORAGE_DATABASE_URL

logger = logging.getLogger(__name__)


def create_storage_engine(database_url: str = STORAGE_DATABASE_URL) -> Engine:
    """
    Create an engine for the local storage database.

    SQLite URLs get thread-agnostic connections, and in-memory databases share
    a single connection so every session sees the same data.
    """
    kwargs: dict[str, object] = {"echo": False, "future": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(database_url, **kwargs)


def create_session_factory(bind: Engine) -> sessionmaker[Session]:
    """Create a configured session factory bound to ``bind``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=bind,
        expire_on_commit=False,  # Don't expire objects after commit
    )


engine = create_storage_engine()
SessionLocal = create_session_factory(engine)


class Base(DeclarativeBase):
    """Base class for all local storage models."""
    pass


@event.listens_for(Base, "before_insert", propagate=True)  # type: ignore
def receive_before_insert(mapper, connection, target):  # type: ignore
    """Set created_at and updated_at on insert using UTC."""
    # Import here to avoid circular import
    from animus.utils.datetime_utils import utc_now
    now = utc_now()
    for column_name in ("created_at", "updated_at"):
        if hasattr(mapper, "columns") and column_name in mapper.columns:  # type: ignore
            if getattr(target, column_name, None) is None:
                setattr(target, column_name, now)


@event.listens_for(Base, "before_update", propagate=True)  # type: ignore
def receive_before_update(mapper, connection, target):  # type: ignore
    """Set updated_at on update using UTC."""
    from animus.utils.datetime_utils import utc_now
    if hasattr(mapper, "columns") and "updated_at" in mapper.columns:  # type: ignore
        setattr(target, "updated_at", utc_now())


@contextmanager
def get_db_context(session_factory: Optional[sessionmaker[Session]] = None) -> Generator[Session, None, None]:
    """
    Context manager for storage sessions.

    Commits on success, rolls back and re-raises on any error.

    Example:
        ```python
        with get_db_context() as db:
            entry = db.get(KeyValueEntry, "history")
        ```
    """
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Storage transaction failed: {e}")
        raise
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def create_tables(bind: Optional[Engine] = None) -> None:
    """
    Create all storage tables.

    Safe to call multiple times - will not recreate existing tables.
    """
    # Import models so they're registered on Base.metadata
    import animus.models  # noqa: F401
    try:
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Storage tables created successfully")
    except SQLAlchemyError as e:
        logger.exception(f"Failed to create storage tables: {e}")
        raise


def drop_tables(bind: Optional[Engine] = None) -> None:
    """
    Drop all storage tables.

    WARNING: This will permanently delete all locally stored data!
    """
    try:
        Base.metadata.drop_all(bind=bind or engine)
        logger.info("Storage tables dropped successfully")
    except SQLAlchemyError as e:
        logger.exception(f"Failed to drop storage tables: {e}")
        raise
