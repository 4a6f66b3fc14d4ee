"""
db/models/product.py

Catalog product keyed by SKU. Written by CSV ingestion via upsert.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    sku: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        comment="Merchant stock keeping unit; upsert key",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[str] = mapped_column(String(120), nullable=False)
    color: Mapped[str | None] = mapped_column(String(64), nullable=True)
    size: Mapped[str | None] = mapped_column(String(32), nullable=True)
    mrp: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Maximum retail price",
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Selling price; never above mrp",
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_products_brand", "brand"),
        Index("ix_products_color", "color"),
        Index("ix_products_price", "price"),
        Index("ix_products_brand_price", "brand", "price"),
    )
