"""
app/domain package marker.
"""

from app.domain.product import (
    IngestionSummary,
    PartialProduct,
    ProductFilters,
    RawRecord,
    RowFailure,
    UpsertResult,
    ValidatedProduct,
    ValidationResult,
)

__all__ = [
    "IngestionSummary",
    "PartialProduct",
    "ProductFilters",
    "RawRecord",
    "RowFailure",
    "UpsertResult",
    "ValidatedProduct",
    "ValidationResult",
]
