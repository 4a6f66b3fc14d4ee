"""
tests/test_product_ingestion_service.py

Ingestion orchestration against an in-memory sink: summaries, row numbering,
per-run deduplication, batching and failure semantics.
"""

from __future__ import annotations

import asyncio
import io
import logging

import pytest

from app.parsers.csv_stream import CSVParseError
from app.services.product_ingestion_service import (
    ProductIngestionService,
    ProductPersistenceError,
)

HEADER = "sku,name,brand,color,size,mrp,price,quantity\n"


def _valid_rows(count: int, *, start: int = 1) -> str:
    return "".join(
        f"SKU-{index:04d},Item {index},Brand,Blue,L,200,150,{index}\n"
        for index in range(start, start + count)
    )


class TestIngestSummary:
    @pytest.mark.asyncio
    async def test_mixed_upload(self, sink, sample_csv: str) -> None:
        service = ProductIngestionService()

        summary = await service.ingest(sample_csv, sink)

        assert summary.stored == 2
        assert summary.rows_seen == 3
        assert len(summary.failed) == 1
        failure = summary.failed[0]
        assert failure.row == 3
        assert "price is required" in failure.errors
        assert "price must be a number" in failure.errors
        assert failure.raw["sku"] == "BAD-ROW"
        assert set(sink.rows) == {"TSHIRT-RED-001", "JEANS-BLU-032"}
        assert sink.rows["TSHIRT-RED-001"].price == 499

    @pytest.mark.asyncio
    async def test_row_numbers_ignore_blank_lines(self, sink) -> None:
        text = HEADER + "\n" + _valid_rows(1) + "\n\n" + "X,,Brand,,,10,5,1\n"

        summary = await ProductIngestionService().ingest(text, sink)

        assert summary.stored == 1
        assert [failure.row for failure in summary.failed] == [2]
        assert summary.failed[0].errors == ("name is required",)

    @pytest.mark.asyncio
    async def test_header_only_upload(self, sink) -> None:
        summary = await ProductIngestionService().ingest(HEADER, sink)

        assert summary.stored == 0
        assert summary.failed == []
        assert sink.calls == 0

    @pytest.mark.asyncio
    async def test_all_rows_invalid(self, sink) -> None:
        text = HEADER + ",,,,,abc,,-1\n" + ",,,,,,,\n"

        summary = await ProductIngestionService().ingest(text, sink)

        assert summary.stored == 0
        assert [failure.row for failure in summary.failed] == [1, 2]
        assert sink.calls == 0

    @pytest.mark.asyncio
    async def test_stored_plus_failed_accounts_for_every_row(self, sink) -> None:
        rows = []
        for index in range(1, 51):
            price = "999" if index % 5 == 0 else "150"
            rows.append(f"SKU-{index:04d},Item,Brand,,,200,{price},1\n")

        summary = await ProductIngestionService(parse_chunk_size=7, upsert_batch_size=6).ingest(
            HEADER + "".join(rows), sink
        )

        assert summary.stored == 40
        assert len(summary.failed) == 10
        assert summary.stored + len(summary.failed) == 50
        assert [failure.row for failure in summary.failed] == list(range(5, 51, 5))


class TestDeduplication:
    @pytest.mark.asyncio
    async def test_first_occurrence_wins(self, sink) -> None:
        text = (
            HEADER
            + "DUP-1,First,Brand,,,100,80,1\n"
            + "OTHER,Other,Brand,,,100,80,1\n"
            + "DUP-1,Second,Brand,,,100,70,2\n"
        )

        summary = await ProductIngestionService().ingest(text, sink)

        assert summary.stored == 2
        assert summary.duplicates == 1
        assert sink.rows["DUP-1"].name == "First"

    @pytest.mark.asyncio
    async def test_duplicates_across_batches(self, sink) -> None:
        text = HEADER + _valid_rows(5) + _valid_rows(5)

        summary = await ProductIngestionService(parse_chunk_size=2, upsert_batch_size=3).ingest(text, sink)

        assert summary.stored == 5
        assert summary.duplicates == 5
        flushed = [product.sku for batch in sink.batches for product in batch]
        assert len(flushed) == len(set(flushed))

    @pytest.mark.asyncio
    async def test_invalid_duplicate_does_not_claim_sku(self, sink) -> None:
        text = HEADER + "DUP-1,Bad,Brand,,,100,500,1\n" + "DUP-1,Good,Brand,,,100,50,1\n"

        summary = await ProductIngestionService().ingest(text, sink)

        assert summary.stored == 1
        assert summary.duplicates == 0
        assert sink.rows["DUP-1"].name == "Good"


class TestBatching:
    @pytest.mark.asyncio
    async def test_upsert_batches_follow_configured_size(self, sink) -> None:
        service = ProductIngestionService(parse_chunk_size=4, upsert_batch_size=10)

        summary = await service.ingest(HEADER + _valid_rows(25), sink)

        assert summary.stored == 25
        assert [len(batch) for batch in sink.batches] == [10, 10, 5]

    @pytest.mark.asyncio
    async def test_rows_reach_sink_in_input_order(self, sink) -> None:
        service = ProductIngestionService(parse_chunk_size=3, upsert_batch_size=4)

        await service.ingest(io.BytesIO((HEADER + _valid_rows(11)).encode("utf-8")), sink)

        flushed = [product.sku for batch in sink.batches for product in batch]
        assert flushed == [f"SKU-{index:04d}" for index in range(1, 12)]

    @pytest.mark.asyncio
    async def test_service_runs_do_not_share_state(self, sink, second_sink) -> None:
        service = ProductIngestionService(parse_chunk_size=2, upsert_batch_size=3)

        first, second = await asyncio.gather(
            service.ingest(HEADER + _valid_rows(7), sink),
            service.ingest(HEADER + _valid_rows(4, start=1), second_sink),
        )

        assert (first.stored, second.stored) == (7, 4)
        assert [len(batch) for batch in sink.batches] == [3, 3, 1]
        assert [len(batch) for batch in second_sink.batches] == [3, 1]
        assert set(second_sink.rows) == {f"SKU-{index:04d}" for index in range(1, 5)}


class TestFailures:
    @pytest.mark.asyncio
    async def test_sink_failure_reports_rows_already_stored(self, failing_sink) -> None:
        sink = failing_sink
        service = ProductIngestionService(parse_chunk_size=5, upsert_batch_size=5)

        with pytest.raises(ProductPersistenceError) as excinfo:
            await service.ingest(HEADER + _valid_rows(12), sink)

        assert excinfo.value.stored == 5
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert len(sink.rows) == 5

    @pytest.mark.asyncio
    async def test_malformed_csv_raises_parse_error(self, sink) -> None:
        text = HEADER + _valid_rows(2) + 'BROKEN,"unterminated\n'

        with pytest.raises(CSVParseError):
            await ProductIngestionService().ingest(text, sink)

    @pytest.mark.asyncio
    async def test_values_too_large_to_store_are_row_failures(self, sink) -> None:
        text = (
            HEADER
            + _valid_rows(1)
            + "HUGE-1,Huge,Brand,,,1e15,1e14,1\n"
            + "HUGE-2,Huge,Brand,,,200,150,3000000000\n"
        )

        summary = await ProductIngestionService().ingest(text, sink)

        assert summary.stored == 1
        assert [failure.row for failure in summary.failed] == [2, 3]
        assert summary.failed[0].errors == (
            "mrp must be <= 9999999999.99",
            "price must be <= 9999999999.99",
        )
        assert summary.failed[1].errors == ("quantity must be <= 2147483647",)
        assert list(sink.rows) == ["SKU-0001"]

    @pytest.mark.asyncio
    async def test_validation_warnings_are_logged(
        self, sink, sample_csv: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="app.services.product_ingestion_service"):
            await ProductIngestionService().ingest(sample_csv, sink)

        assert any("BAD-ROW" in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    async def test_validation_logging_can_be_disabled(
        self, sink, sample_csv: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        service = ProductIngestionService(log_validation_errors=False)

        with caplog.at_level(logging.WARNING, logger="app.services.product_ingestion_service"):
            summary = await service.ingest(sample_csv, sink)

        assert len(summary.failed) == 1
        assert not [record for record in caplog.records if record.levelno == logging.WARNING]
