"""
app/services package marker.
"""

from app.services.catalog_service import CatalogService, ProductPage
from app.services.product_ingestion_service import (
    ProductIngestionService,
    ProductPersistenceError,
    ProductSink,
    get_product_ingestion_service,
)

__all__ = [
    "CatalogService",
    "ProductPage",
    "ProductIngestionService",
    "ProductPersistenceError",
    "ProductSink",
    "get_product_ingestion_service",
]
