"""
app/schemas package marker.
"""

from app.schemas.product import (
    ProductDeleteResponse,
    ProductPageResponse,
    ProductResponse,
    ProductUploadResponse,
    RowFailureResponse,
)

__all__ = [
    "ProductDeleteResponse",
    "ProductPageResponse",
    "ProductResponse",
    "ProductUploadResponse",
    "RowFailureResponse",
]
