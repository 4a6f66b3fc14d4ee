"""
app/repositories package marker.
"""

from app.repositories.product_repository import ProductRepository, SQLAlchemyProductSink

__all__ = [
    "ProductRepository",
    "SQLAlchemyProductSink",
]
