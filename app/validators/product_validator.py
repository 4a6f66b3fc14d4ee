"""
app/validators/product_validator.py

Row-level validation and type parsing for product CSV ingestion.

Every rule is evaluated independently so a rejected row reports all of its
problems at once.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from app.domain.product import (
    MAX_AMOUNT,
    MAX_QUANTITY,
    REQUIRED_FIELDS,
    PartialProduct,
    ValidationResult,
)

_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


class ProductRowValidator:
    """
    Validates and parses one raw product row.
    """

    def validate(self, raw: Mapping[str, Any]) -> ValidationResult:
        errors: list[str] = []

        for column in REQUIRED_FIELDS:
            if self._is_blank(raw.get(column)):
                errors.append(f"{column} is required")

        mrp = self._parse_number(raw.get("mrp"))
        if mrp is None:
            errors.append("mrp must be a number")

        price = self._parse_number(raw.get("price"))
        if price is None:
            errors.append("price must be a number")

        quantity = self._parse_quantity(raw.get("quantity"))
        if quantity is None:
            errors.append("quantity must be a number")

        if mrp is not None and price is not None and price > mrp:
            errors.append("price must be <= mrp")

        if quantity is not None and quantity < 0:
            errors.append("quantity must be >= 0")

        # Storage bounds: values the products table cannot hold are row errors.
        if quantity is not None and not quantity.is_integer():
            errors.append("quantity must be a whole number")
        for column, amount in (("mrp", mrp), ("price", price)):
            if amount is not None and abs(round(amount, 2)) > MAX_AMOUNT:
                errors.append(f"{column} must be <= {MAX_AMOUNT:.2f}")
        if quantity is not None and quantity > MAX_QUANTITY:
            errors.append(f"quantity must be <= {MAX_QUANTITY}")

        parsed = PartialProduct(
            sku=self._parse_string(raw.get("sku")),
            name=self._parse_string(raw.get("name")),
            brand=self._parse_string(raw.get("brand")),
            color=self._parse_optional_string(raw.get("color")),
            size=self._parse_optional_string(raw.get("size")),
            mrp=mrp,
            price=price,
            quantity=int(quantity) if quantity is not None and quantity.is_integer() else None,
        )
        return ValidationResult(errors=tuple(errors), parsed=parsed)

    def _parse_quantity(self, value: Any) -> float | None:
        # Missing or blank quantity means "no stock recorded".
        if self._is_blank(value):
            return 0.0
        return self._parse_number(value)

    @staticmethod
    def _parse_number(value: Any) -> float | None:
        if value is None:
            return None
        raw = str(value).strip()
        if not _NUMBER_PATTERN.match(raw):
            return None
        number = float(raw)
        if not math.isfinite(number):
            return None
        return number

    @staticmethod
    def _parse_string(value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    def _parse_optional_string(self, value: Any) -> str | None:
        if self._is_blank(value):
            return None
        return str(value).strip()

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        return str(value).strip() == ""


_default_validator = ProductRowValidator()


def validate_row(raw: Mapping[str, Any]) -> ValidationResult:
    """
    Validate one raw row with the shared stateless validator.
    """

    return _default_validator.validate(raw)
