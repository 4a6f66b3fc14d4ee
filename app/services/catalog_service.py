"""
app/services/catalog_service.py

Paginated product listing, filtered search and bulk delete.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from app.domain.product import ProductFilters
from app.repositories.product_repository import ProductRepository
from db.models.product import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductPage:
    """
    One page of products plus the unpaged match count.
    """

    page: int
    limit: int
    total: int
    items: list[Product] = field(default_factory=list)

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class CatalogService:
    """
    Read-side operations over the persisted catalog.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._repository = ProductRepository(session)

    def list_products(self, *, page: int, limit: int) -> ProductPage:
        total = self._repository.count()
        items = self._repository.list_newest(offset=self._offset(page, limit), limit=limit)
        return ProductPage(page=page, limit=limit, total=total, items=items)

    def search_products(self, filters: ProductFilters, *, page: int, limit: int) -> ProductPage:
        normalized = normalize_filters(filters)
        total = self._repository.count(normalized)
        items = self._repository.search(
            normalized,
            offset=self._offset(page, limit),
            limit=limit,
        )
        return ProductPage(page=page, limit=limit, total=total, items=items)

    def recent_products(self, limit: int) -> list[Product]:
        if limit <= 0:
            return []
        return self._repository.list_newest(offset=0, limit=limit)

    def delete_all(self) -> int:
        removed = self._repository.delete_all()
        self._session.commit()
        logger.info("Catalog cleared removed=%d", removed)
        return removed

    @staticmethod
    def _offset(page: int, limit: int) -> int:
        return (max(1, page) - 1) * limit


def normalize_filters(filters: ProductFilters) -> ProductFilters:
    """
    Trim text filters and drop blank ones.
    """

    brand = filters.brand.strip() if filters.brand else None
    color = filters.color.strip() if filters.color else None
    return ProductFilters(
        brand=brand or None,
        color=color or None,
        min_price=filters.min_price,
        max_price=filters.max_price,
    )
