"""
app/schemas/product.py

Response schemas for product upload and listing endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProductResponse(BaseModel):
    """
    API response model for one persisted product.
    """

    model_config = ConfigDict(from_attributes=True)

    sku: str
    name: str
    brand: str
    color: str | None = None
    size: str | None = None
    mrp: float
    price: float
    quantity: int = Field(..., ge=0)
    updated_at: datetime | None = None


class RowFailureResponse(BaseModel):
    """
    API response model for one rejected CSV row.
    """

    row: int = Field(..., ge=1)
    errors: list[str]
    raw: dict[str, str] = Field(default_factory=dict)


class ProductUploadResponse(BaseModel):
    """
    API response model for a product CSV upload.
    """

    stored: int = Field(..., ge=0)
    failed: list[RowFailureResponse] = Field(default_factory=list)
    duplicates: int = Field(0, ge=0)
    items: list[ProductResponse] = Field(default_factory=list)


class ProductPageResponse(BaseModel):
    """
    API response model for a page of products.
    """

    items: list[ProductResponse] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)


class ProductDeleteResponse(BaseModel):
    deleted: int = Field(..., ge=0)
