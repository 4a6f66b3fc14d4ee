"""
app/domain/product.py

Domain models used by the product CSV ingestion flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

RawRecord = dict[str, str]

REQUIRED_FIELDS: tuple[str, ...] = ("sku", "name", "brand", "mrp", "price")

# Largest values the products table can hold: Numeric(12, 2) and a 32-bit Integer.
MAX_AMOUNT = 9_999_999_999.99
MAX_QUANTITY = 2_147_483_647

PRODUCT_COLUMNS: tuple[str, ...] = (
    "sku",
    "name",
    "brand",
    "color",
    "size",
    "mrp",
    "price",
    "quantity",
)


@dataclass(frozen=True)
class ValidatedProduct:
    """
    Typed product row that passed every validation rule.
    """

    sku: str
    name: str
    brand: str
    color: str | None
    size: str | None
    mrp: float
    price: float
    quantity: int = 0

    def to_payload(self) -> dict[str, object]:
        return {
            "sku": self.sku,
            "name": self.name,
            "brand": self.brand,
            "color": self.color,
            "size": self.size,
            "mrp": self.mrp,
            "price": self.price,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class PartialProduct:
    """
    Best-effort parse of a row; numeric fields are None when unparseable.
    """

    sku: str
    name: str
    brand: str
    color: str | None
    size: str | None
    mrp: float | None
    price: float | None
    quantity: int | None


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one raw row.
    """

    errors: tuple[str, ...]
    parsed: PartialProduct

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_product(self) -> ValidatedProduct:
        """
        Promote the partial parse to a ValidatedProduct.

        Raises ValueError when the result carries errors.
        """

        if not self.valid:
            raise ValueError("Cannot build a product from an invalid row.")
        parsed = self.parsed
        return ValidatedProduct(
            sku=parsed.sku,
            name=parsed.name,
            brand=parsed.brand,
            color=parsed.color,
            size=parsed.size,
            mrp=parsed.mrp,  # type: ignore[arg-type]
            price=parsed.price,  # type: ignore[arg-type]
            quantity=parsed.quantity or 0,
        )


@dataclass(frozen=True)
class RowFailure:
    """
    One rejected row: 1-based position in the upload plus every violated rule.
    """

    row: int
    errors: tuple[str, ...]
    raw: Mapping[str, str]


@dataclass(frozen=True)
class UpsertResult:
    """
    Sink acknowledgement for one batch.
    """

    applied: int


@dataclass(frozen=True)
class IngestionSummary:
    """
    End-of-run ingestion summary.
    """

    stored: int
    failed: list[RowFailure] = field(default_factory=list)
    duplicates: int = 0
    rows_seen: int = 0


@dataclass(frozen=True)
class ProductFilters:
    """
    Optional listing filters; None means "not filtered".
    """

    brand: str | None = None
    color: str | None = None
    min_price: float | None = None
    max_price: float | None = None
