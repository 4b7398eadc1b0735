"""
Database engine, session factory and declarative base.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, QueuePool

from models.config import settings


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on ON DELETE enforcement for every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_engine() -> Engine:
    """
    Create database engine with appropriate configuration.

    Uses NullPool for SQLite (one connection per session) and a tuned
    QueuePool for server databases.
    """
    if settings.DATABASE_URL.startswith("sqlite"):
        sqlite_engine = create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )
        enable_sqlite_foreign_keys(sqlite_engine)
        return sqlite_engine

    return create_engine(
        settings.DATABASE_URL,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """Request-scoped session; uncommitted work is discarded on close."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    One unit of work: commit when the block exits cleanly, otherwise roll
    back everything staged inside it and re-raise.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


@contextmanager
def session_scope() -> Iterator[Session]:
    """Standalone session for scripts such as init_db.py."""
    db = SessionLocal()
    try:
        with atomic(db):
            yield db
    finally:
        db.close()
