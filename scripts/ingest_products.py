"""
Ingest a product CSV file from the CLI.

Usage:
    python -m scripts.ingest_products --file tmp/sample_products_10000.csv
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from app.config import get_csv_ingestion_settings
from app.parsers.csv_stream import CSVParseError
from app.repositories.product_repository import SQLAlchemyProductSink
from app.services.product_ingestion_service import (
    ProductPersistenceError,
    get_product_ingestion_service,
)
from db.session import SessionLocal

logger = logging.getLogger(__name__)


async def _ingest(path: str, failure_limit: int) -> dict[str, object]:
    settings = get_csv_ingestion_settings()
    service = get_product_ingestion_service()

    with SessionLocal() as db, open(path, "rb") as source:
        sink = SQLAlchemyProductSink(db, batch_size=settings.upsert_batch_size)
        summary = await service.ingest(source, sink)

    return {
        "file": path,
        "rows": summary.rows_seen,
        "stored": summary.stored,
        "duplicates": summary.duplicates,
        "failed_count": len(summary.failed),
        "failed": [
            {"row": failure.row, "errors": list(failure.errors)}
            for failure in summary.failed[:failure_limit]
        ],
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Ingest a product CSV into the catalog database.")
    parser.add_argument("--file", required=True, help="Path to the CSV file.")
    parser.add_argument(
        "--show-failures",
        type=int,
        default=20,
        help="How many rejected rows to print.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        payload = asyncio.run(_ingest(args.file, max(0, args.show_failures)))
    except CSVParseError as exc:
        logger.error("Malformed CSV line=%s: %s", exc.line_number, exc)
        return 2
    except ProductPersistenceError as exc:
        logger.error("Ingestion aborted after %d stored rows: %s", exc.stored, exc)
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
