"""
app/repositories/product_repository.py

Persistence layer for catalog products.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import Select, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.product import ProductFilters, UpsertResult, ValidatedProduct
from db.models.product import Product

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 1000
_UPDATABLE_COLUMNS: tuple[str, ...] = (
    "name",
    "brand",
    "color",
    "size",
    "mrp",
    "price",
    "quantity",
)


class ProductRepository:
    """
    Repository for bulk upserts and filtered reads of products.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert_many(
        self,
        rows: Sequence[ValidatedProduct],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert products, overwriting existing rows with the same sku.

        Does not commit; the caller owns the transaction.
        """

        if not rows:
            return 0

        size = max(1, batch_size)
        payloads = self._deduplicate_payloads([self._to_payload(row) for row in rows])
        insert = self._dialect_insert()
        applied = 0

        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = insert(Product).values(chunk)
            update_values: dict[str, Any] = {
                column: stmt.excluded[column] for column in _UPDATABLE_COLUMNS
            }
            update_values["updated_at"] = func.now()
            stmt = stmt.on_conflict_do_update(
                index_elements=[Product.sku],
                set_=update_values,
            )
            result = self._session.execute(stmt)
            applied += result.rowcount if result.rowcount and result.rowcount > 0 else len(chunk)

        return applied

    def count(self, filters: ProductFilters | None = None) -> int:
        stmt = self._apply_filters(select(func.count()).select_from(Product), filters)
        return int(self._session.execute(stmt).scalar_one())

    def list_newest(self, *, offset: int, limit: int) -> list[Product]:
        stmt = (
            select(Product)
            .order_by(Product.updated_at.desc(), Product.sku.asc())
            .offset(offset)
            .limit(limit)
        )
        return list(self._session.execute(stmt).scalars().all())

    def search(self, filters: ProductFilters, *, offset: int, limit: int) -> list[Product]:
        stmt = self._apply_filters(select(Product), filters)
        stmt = stmt.order_by(Product.price.asc(), Product.sku.asc()).offset(offset).limit(limit)
        return list(self._session.execute(stmt).scalars().all())

    def delete_all(self) -> int:
        """
        Remove every product and return how many rows were removed.
        """

        removed = self.count()
        self._session.execute(delete(Product))
        return removed

    @staticmethod
    def _apply_filters(stmt: Select, filters: ProductFilters | None) -> Select:
        if filters is None:
            return stmt
        if filters.brand:
            stmt = stmt.where(Product.brand == filters.brand)
        if filters.color:
            stmt = stmt.where(Product.color == filters.color)
        if filters.min_price is not None:
            stmt = stmt.where(Product.price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(Product.price <= filters.max_price)
        return stmt

    def _dialect_insert(self) -> Any:
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise RuntimeError(f"Upsert is not supported for the '{dialect}' dialect.")

    @staticmethod
    def _to_payload(row: ValidatedProduct) -> dict[str, Any]:
        return {
            "sku": row.sku,
            "name": row.name,
            "brand": row.brand,
            "color": row.color,
            "size": row.size,
            "mrp": Decimal(str(row.mrp)),
            "price": Decimal(str(row.price)),
            "quantity": row.quantity,
        }

    @staticmethod
    def _deduplicate_payloads(payloads: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        # ON CONFLICT DO UPDATE cannot touch the same row twice in one statement.
        seen: set[str] = set()
        deduped_payloads: list[dict[str, Any]] = []
        for payload in payloads:
            if payload["sku"] in seen:
                continue
            seen.add(payload["sku"])
            deduped_payloads.append(payload)
        return deduped_payloads


class SQLAlchemyProductSink:
    """
    Sink that upserts each batch in its own committed transaction.

    Database work runs on a worker thread so the event loop keeps serving
    other requests while a batch is written.
    """

    def __init__(self, session: Session, *, batch_size: int = _DEFAULT_BATCH_SIZE) -> None:
        self._session = session
        self._repository = ProductRepository(session)
        self._batch_size = max(1, batch_size)

    async def upsert_batch(self, rows: Sequence[ValidatedProduct]) -> UpsertResult:
        if not rows:
            return UpsertResult(applied=0)
        applied = await run_in_threadpool(self._upsert_and_commit, list(rows))
        return UpsertResult(applied=applied)

    def _upsert_and_commit(self, rows: list[ValidatedProduct]) -> int:
        try:
            applied = self._repository.upsert_many(rows, batch_size=self._batch_size)
            self._session.commit()
            return applied
        except SQLAlchemyError:
            self._session.rollback()
            logger.exception("Product upsert rolled back rows=%d", len(rows))
            raise
