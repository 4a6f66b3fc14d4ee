"""
app/validators package marker.
"""

from app.validators.product_validator import ProductRowValidator, validate_row

__all__ = [
    "ProductRowValidator",
    "validate_row",
]
