"""
app/api/routers/product_upload.py

Product CSV upload endpoint.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.api.dependencies import get_product_csv_upload
from app.config import get_csv_ingestion_settings
from app.parsers.csv_stream import CSVParseError
from app.repositories.product_repository import SQLAlchemyProductSink
from app.schemas.product import ProductResponse, ProductUploadResponse, RowFailureResponse
from app.services.catalog_service import CatalogService
from app.services.product_ingestion_service import (
    ProductIngestionService,
    ProductPersistenceError,
    get_product_ingestion_service,
)
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])


@router.post("/upload", response_model=ProductUploadResponse)
async def upload_products(
    file: UploadFile = Depends(get_product_csv_upload),
    db: Session = Depends(get_db),
    ingestion_service: ProductIngestionService = Depends(get_product_ingestion_service),
) -> ProductUploadResponse:
    """
    Ingest one product CSV. Rejected rows are reported, not fatal.
    """

    settings = get_csv_ingestion_settings()
    sink = SQLAlchemyProductSink(db, batch_size=settings.upsert_batch_size)

    try:
        summary = await ingestion_service.ingest(file, sink)
    except CSVParseError as exc:
        logger.warning("Rejected malformed CSV upload filename=%r: %s", file.filename, exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "line": exc.line_number},
        ) from exc
    except ProductPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Unable to persist products.", "stored": exc.stored},
        ) from exc
    finally:
        await file.close()

    catalog = CatalogService(db)
    recent = await run_in_threadpool(catalog.recent_products, settings.upload_sample_size)

    return ProductUploadResponse(
        stored=summary.stored,
        duplicates=summary.duplicates,
        failed=[
            RowFailureResponse(row=failure.row, errors=list(failure.errors), raw=dict(failure.raw))
            for failure in summary.failed
        ],
        items=[ProductResponse.model_validate(product) for product in recent],
    )
