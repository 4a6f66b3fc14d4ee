"""
app/api/routers/products.py

Product listing, search and bulk delete endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import Pagination, get_pagination, get_product_filters
from app.domain.product import ProductFilters
from app.schemas.product import ProductDeleteResponse, ProductPageResponse, ProductResponse
from app.services.catalog_service import CatalogService, ProductPage
from db.session import get_db

router = APIRouter(tags=["products"])


def _to_response(page: ProductPage) -> ProductPageResponse:
    return ProductPageResponse(
        items=[ProductResponse.model_validate(product) for product in page.items],
        total=page.total,
        page=page.page,
        limit=page.limit,
    )


@router.get("/products", response_model=ProductPageResponse)
def list_products(
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
) -> ProductPageResponse:
    """
    Newest products first.
    """

    page = CatalogService(db).list_products(page=pagination.page, limit=pagination.limit)
    return _to_response(page)


@router.get("/products/search", response_model=ProductPageResponse)
def search_products(
    filters: ProductFilters = Depends(get_product_filters),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
) -> ProductPageResponse:
    """
    Filter by brand, color and price range; cheapest first.
    """

    page = CatalogService(db).search_products(
        filters,
        page=pagination.page,
        limit=pagination.limit,
    )
    return _to_response(page)


@router.delete("/products", response_model=ProductDeleteResponse)
def delete_products(db: Session = Depends(get_db)) -> ProductDeleteResponse:
    try:
        deleted = CatalogService(db).delete_all()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete products.",
        ) from exc
    return ProductDeleteResponse(deleted=deleted)
