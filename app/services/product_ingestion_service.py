"""
app/services/product_ingestion_service.py

Service layer for product CSV ingestion.

Drives the streaming parser over an upload, validates every row, drops
repeated SKUs within the run (first occurrence wins), and hands validated
products to a Sink in bulk-upsert batches. Rejected rows are collected as
data; only malformed CSV framing and Sink failures abort the run.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from functools import lru_cache
from typing import Any, Protocol

from app.config import get_csv_ingestion_settings
from app.domain.product import (
    IngestionSummary,
    RawRecord,
    RowFailure,
    UpsertResult,
    ValidatedProduct,
)
from app.parsers.csv_stream import DEFAULT_READ_SIZE, parse_stream
from app.validators.product_validator import ProductRowValidator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ProductPersistenceError(RuntimeError):
    """
    Raised when the Sink rejects a batch.

    ``stored`` counts rows committed by earlier batches; they are left in place.
    """

    def __init__(self, message: str, *, stored: int) -> None:
        super().__init__(message)
        self.stored = stored


# ---------------------------------------------------------------------------
# Sink boundary
# ---------------------------------------------------------------------------


class ProductSink(Protocol):
    """
    Persistence collaborator: insert-or-update products keyed by sku.
    """

    async def upsert_batch(self, rows: Sequence[ValidatedProduct]) -> UpsertResult:
        ...


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class _IngestionRun:
    """
    Mutable state for one ingestion call.
    """

    def __init__(self) -> None:
        self.failed: list[RowFailure] = []
        self.seen_skus: set[str] = set()
        self.pending: list[ValidatedProduct] = []
        self.stored = 0
        self.row_number = 0
        self.duplicates = 0
        self.batches_flushed = 0


class ProductIngestionService:
    """
    Coordinates CSV parsing, row validation, per-run deduplication and persistence.
    """

    def __init__(
        self,
        *,
        parse_chunk_size: int = 1000,
        upsert_batch_size: int = 1000,
        read_size: int = DEFAULT_READ_SIZE,
        log_validation_errors: bool = True,
        validator: ProductRowValidator | None = None,
    ) -> None:
        self._parse_chunk_size = max(1, parse_chunk_size)
        self._upsert_batch_size = max(1, upsert_batch_size)
        self._read_size = max(1, read_size)
        self._log_validation_errors = log_validation_errors
        self._validator = validator or ProductRowValidator()

    async def ingest(self, source: Any, sink: ProductSink) -> IngestionSummary:
        """
        Stream ``source`` into ``sink`` and return the run summary.

        Raises CSVParseError when the CSV framing is malformed and
        ProductPersistenceError when the Sink fails a batch. Batches committed
        before either failure are not rolled back.
        """

        run = _IngestionRun()

        async def on_batch(records: list[RawRecord]) -> None:
            for record in records:
                self._accept_record(run, record)
                if len(run.pending) >= self._upsert_batch_size:
                    await self._flush(run, sink)

        await parse_stream(
            source,
            on_batch,
            self._parse_chunk_size,
            read_size=self._read_size,
        )
        if run.pending:
            await self._flush(run, sink)

        logger.info(
            "Product ingestion completed rows=%d stored=%d failed=%d duplicates=%d",
            run.row_number,
            run.stored,
            len(run.failed),
            run.duplicates,
        )
        return IngestionSummary(
            stored=run.stored,
            failed=run.failed,
            duplicates=run.duplicates,
            rows_seen=run.row_number,
        )

    # ------------------------------------------------------------------
    # Ingestion internals
    # ------------------------------------------------------------------

    def _accept_record(self, run: _IngestionRun, record: RawRecord) -> None:
        run.row_number += 1
        result = self._validator.validate(record)
        if not result.valid:
            self._record_failure(
                run,
                RowFailure(row=run.row_number, errors=result.errors, raw=record),
            )
            return

        product = result.to_product()
        if product.sku in run.seen_skus:
            run.duplicates += 1
            return
        run.seen_skus.add(product.sku)
        run.pending.append(product)

    async def _flush(self, run: _IngestionRun, sink: ProductSink) -> None:
        batch, run.pending = run.pending, []
        try:
            await sink.upsert_batch(batch)
        except Exception as exc:
            logger.error(
                "Product batch upsert failed batch=%d size=%d stored_before=%d",
                run.batches_flushed + 1,
                len(batch),
                run.stored,
            )
            raise ProductPersistenceError(
                f"Failed to persist products after {run.stored} rows were stored.",
                stored=run.stored,
            ) from exc

        run.stored += len(batch)
        run.batches_flushed += 1
        logger.info(
            "Product batch upserted batch=%d size=%d total_stored=%d",
            run.batches_flushed,
            len(batch),
            run.stored,
        )

    def _record_failure(self, run: _IngestionRun, failure: RowFailure) -> None:
        if self._log_validation_errors:
            logger.warning(
                "CSV validation error row=%s sku=%r errors=%s",
                failure.row,
                failure.raw.get("sku"),
                "; ".join(failure.errors),
            )
        run.failed.append(failure)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_product_ingestion_service() -> ProductIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """

    settings = get_csv_ingestion_settings()
    return ProductIngestionService(
        parse_chunk_size=settings.parse_chunk_size,
        upsert_batch_size=settings.upsert_batch_size,
        read_size=settings.read_size,
        log_validation_errors=settings.log_validation_errors,
    )
