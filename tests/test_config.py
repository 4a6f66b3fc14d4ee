"""
tests/test_config.py

Environment-driven settings.
"""

from __future__ import annotations

import pytest

from app.config import get_catalog_settings, get_csv_ingestion_settings
from db.config import normalize_postgres_url, resolve_database_url


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_csv_ingestion_settings.cache_clear()
    get_catalog_settings.cache_clear()
    yield
    get_csv_ingestion_settings.cache_clear()
    get_catalog_settings.cache_clear()


class TestCSVIngestionSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "CSV_INGEST_PARSE_CHUNK_SIZE",
            "CSV_INGEST_UPSERT_BATCH_SIZE",
            "CSV_INGEST_READ_SIZE",
            "CSV_INGEST_LOG_VALIDATION_ERRORS",
            "CSV_UPLOAD_SAMPLE_SIZE",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = get_csv_ingestion_settings()

        assert settings.parse_chunk_size == 1000
        assert settings.upsert_batch_size == 1000
        assert settings.read_size == 64 * 1024
        assert settings.log_validation_errors is True
        assert settings.upload_sample_size == 20

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSV_INGEST_PARSE_CHUNK_SIZE", "250")
        monkeypatch.setenv("CSV_INGEST_UPSERT_BATCH_SIZE", "500")
        monkeypatch.setenv("CSV_INGEST_LOG_VALIDATION_ERRORS", "false")
        monkeypatch.setenv("CSV_UPLOAD_SAMPLE_SIZE", "0")

        settings = get_csv_ingestion_settings()

        assert settings.parse_chunk_size == 250
        assert settings.upsert_batch_size == 500
        assert settings.log_validation_errors is False
        assert settings.upload_sample_size == 0

    def test_invalid_values_fall_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSV_INGEST_PARSE_CHUNK_SIZE", "lots")
        monkeypatch.setenv("CSV_INGEST_UPSERT_BATCH_SIZE", "0")

        settings = get_csv_ingestion_settings()

        assert settings.parse_chunk_size == 1000
        assert settings.upsert_batch_size == 1


class TestCatalogSettings:
    def test_default_page_size_capped_by_maximum(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CATALOG_DEFAULT_PAGE_SIZE", "500")
        monkeypatch.setenv("CATALOG_MAX_PAGE_SIZE", "50")

        settings = get_catalog_settings()

        assert settings.max_page_size == 50
        assert settings.default_page_size == 50


class TestDatabaseUrl:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("postgres://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
            ("postgresql://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
            ("postgresql+psycopg://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ],
    )
    def test_normalize_postgres_url(self, raw: str, expected: str) -> None:
        assert normalize_postgres_url(raw) == expected

    def test_database_url_takes_priority(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgres://direct/db")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")

        assert resolve_database_url() == "postgresql+psycopg://direct/db"

    def test_cloud_url_in_cloud_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("POSTGRES_URL", raising=False)
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/db")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")

        assert resolve_database_url() == "postgresql+psycopg://cloud/db"
