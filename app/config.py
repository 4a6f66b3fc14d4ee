"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _env(name: str) -> str | None:
    """
    Stripped environment value, or None when unset or blank.

    `.env` / `.env.local` are loaded on first access without overriding
    variables already present in the process environment.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _get_bool_env(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int, *, minimum: int | None = None) -> int:
    """
    Integer setting; unparseable values fall back to ``default``.
    """

    value = _env(name)
    try:
        number = default if value is None else int(value)
    except ValueError:
        number = default
    if minimum is not None:
        number = max(minimum, number)
    return number


@dataclass(frozen=True)
class AppSettings:
    """
    Process-level settings.
    """

    log_level: str = "INFO"


@dataclass(frozen=True)
class CSVIngestionSettings:
    """
    Runtime settings for product CSV ingestion.

    ``parse_chunk_size`` bounds how many parsed rows are buffered ahead of
    validation; ``upsert_batch_size`` is the number of validated rows sent to
    the database per bulk upsert.
    """

    parse_chunk_size: int = 1000
    upsert_batch_size: int = 1000
    read_size: int = 64 * 1024
    log_validation_errors: bool = True
    upload_sample_size: int = 20


@dataclass(frozen=True)
class CatalogSettings:
    """
    Pagination settings for product listing endpoints.
    """

    default_page_size: int = 20
    max_page_size: int = 100


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Return cached process settings.
    """

    return AppSettings(log_level=(_env("LOG_LEVEL") or "INFO").upper())


@lru_cache(maxsize=1)
def get_csv_ingestion_settings() -> CSVIngestionSettings:
    """
    Return cached CSV ingestion settings from environment variables.
    """

    return CSVIngestionSettings(
        parse_chunk_size=_get_int_env("CSV_INGEST_PARSE_CHUNK_SIZE", 1000, minimum=1),
        upsert_batch_size=_get_int_env("CSV_INGEST_UPSERT_BATCH_SIZE", 1000, minimum=1),
        read_size=_get_int_env("CSV_INGEST_READ_SIZE", 64 * 1024, minimum=1),
        log_validation_errors=_get_bool_env("CSV_INGEST_LOG_VALIDATION_ERRORS", True),
        upload_sample_size=_get_int_env("CSV_UPLOAD_SAMPLE_SIZE", 20, minimum=0),
    )


@lru_cache(maxsize=1)
def get_catalog_settings() -> CatalogSettings:
    """
    Return cached catalog pagination settings from environment variables.
    """

    max_page_size = _get_int_env("CATALOG_MAX_PAGE_SIZE", 100, minimum=1)
    default_page_size = _get_int_env("CATALOG_DEFAULT_PAGE_SIZE", 20, minimum=1)
    return CatalogSettings(
        default_page_size=min(default_page_size, max_page_size),
        max_page_size=max_page_size,
    )
