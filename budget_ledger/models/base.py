"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every ledger operation opens
its own session from SessionLocal.
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from budget_ledger.config import get_settings

settings = get_settings()


def engine_options(database_url: str) -> dict:
    """
    Connection options for the given database URL.

    SQLite connections are shared with FastAPI's worker threads,
    so the same-thread check has to be disabled.
    """
    options = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    return options


# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles a restarted database or a stale connection.
engine = create_engine(
    settings.DATABASE_URL,
    **engine_options(settings.DATABASE_URL),
)

# --- Session Factory ---
# Ledger operations run inside SessionLocal.begin(), which commits
# on success and rolls back on any exception.
# expire_on_commit=False keeps loaded attributes readable after the
# unit of work has closed its session.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Current time as naive UTC, the way timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    Used by endpoints that talk to the database directly rather
    than through the ledger. The session is always closed,
    even if the request fails.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
