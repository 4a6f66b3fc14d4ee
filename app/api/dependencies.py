"""
app/api/dependencies.py

Shared FastAPI dependencies for uploads, pagination and product filters.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import File, HTTPException, Query, UploadFile, status

from app.config import get_catalog_settings
from app.domain.product import ProductFilters

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}

_catalog_settings = get_catalog_settings()


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int


def get_product_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Accept the upload only when it looks like a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").split(";", 1)[0].strip().lower()

    if not filename.endswith(".csv") and content_type not in CSV_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def get_pagination(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(
        default=_catalog_settings.default_page_size,
        ge=1,
        le=_catalog_settings.max_page_size,
        description="Page size",
    ),
) -> Pagination:
    return Pagination(page=page, limit=limit)


def get_product_filters(
    brand: str | None = Query(default=None, description="Exact brand match"),
    color: str | None = Query(default=None, description="Exact color match"),
    min_price: float | None = Query(default=None, alias="minPrice", ge=0),
    max_price: float | None = Query(default=None, alias="maxPrice", ge=0),
) -> ProductFilters:
    """
    Collect optional search filters; blank text filters are ignored downstream.
    """

    return ProductFilters(
        brand=brand,
        color=color,
        min_price=min_price,
        max_price=max_price,
    )
