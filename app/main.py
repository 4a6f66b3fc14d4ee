"""
app/main.py

FastAPI application factory for the product catalog.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_app_settings

logger = logging.getLogger(__name__)

API_PREFIXES: tuple[str, ...] = ("", "/api")


def _validate_env() -> None:
    """
    Fail fast when the catalog database is not configured.

    Every problem is reported in one RuntimeError so a single restart fixes them.
    """

    from db.config import resolve_database_url

    problems: list[str] = []
    try:
        url = resolve_database_url()
    except RuntimeError as exc:
        problems.append(str(exc))
    else:
        if not url.startswith("postgresql"):
            problems.append(f"Database URL must point at PostgreSQL, got scheme {url.split(':', 1)[0]!r}.")

    if problems:
        raise RuntimeError(
            "Catalog startup aborted:\n" + "\n".join(f"  - {problem}" for problem in problems)
        )


def _configure_logging() -> None:
    level_name = get_app_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _verify_database() -> None:
    """
    Check connectivity and that every mapped table exists.

    Migrations are never applied here; run ``alembic upgrade head`` first.
    """

    from sqlalchemy import inspect, text

    import db.models  # noqa: F401  registers ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
            existing = set(inspect(connection).get_table_names())
    except Exception as exc:
        raise RuntimeError("Catalog database is unreachable.") from exc

    missing = sorted(set(Base.metadata.tables) - existing)
    if missing:
        logger.critical("Catalog schema incomplete missing_tables=%s", ",".join(missing))
        raise RuntimeError(
            f"Missing table(s): {', '.join(missing)}. Run 'alembic upgrade head' and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_database()
    logger.info("Catalog database ready")
    try:
        yield
    finally:
        from db.session import get_engine

        get_engine().dispose()
        logger.info("Database engine disposed")


def create_app() -> FastAPI:
    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Product Catalog API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import product_upload_router, products_router

    # Served both at the root and under /api for browser and scripted clients.
    for prefix in API_PREFIXES:
        application.include_router(product_upload_router, prefix=prefix)
        application.include_router(products_router, prefix=prefix)

    @application.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
