"""
db/session.py

Lazy SQLAlchemy engine and session factory for the catalog database.

Nothing connects at import time; the engine is built on first use so tests and
tooling can import models without a reachable database.
"""

from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import DatabaseSettings, get_database_settings


def create_db_engine(settings: DatabaseSettings | None = None) -> Engine:
    settings = settings or get_database_settings()
    if not settings.url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_recycle=settings.pool_recycle,
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Shared process-wide engine."""
    return create_db_engine()


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def SessionLocal() -> Session:
    """Open a new session on the shared engine."""
    return _session_factory()()


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency: one session per request.

    Upload batches commit individually, so anything still open when the
    request ends belongs to a failed request and is rolled back on close.
    """

    with SessionLocal() as db:
        yield db
