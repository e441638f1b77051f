# Overview: Decimal parsing and rounding rules for amounts, unit costs and quantities.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from .errors import ValidationError

"""
Numeric conventions (authoritative)

- All arithmetic is done in Decimal; floats from JSON are converted through
  their string form so 0.1 stays 0.1.
- Money (balances, payments, sale totals) is rounded half-up to 2 places.
- Unit costs and HPP figures are rounded half-up to 4 places.
- Stock quantities keep 3 places (kg/litre fractions of raw materials).
"""

MONEY_PLACES = Decimal("0.01")
COST_PLACES = Decimal("0.0001")
QUANTITY_PLACES = Decimal("0.001")
ZERO = Decimal("0")


def to_decimal(value: Any, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    # bool is a subclass of int; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def positive_decimal(value: Any, field: str) -> Decimal:
    result = to_decimal(value, field)
    if result <= ZERO:
        raise ValidationError(f"{field} must be positive")
    return result


def non_negative_decimal(value: Any, field: str) -> Decimal:
    result = to_decimal(value, field)
    if result < ZERO:
        raise ValidationError(f"{field} cannot be negative")
    return result


def positive_money(value: Any, field: str) -> Decimal:
    """Positive amount at money precision; values that round to zero are rejected."""
    result = quantize_money(to_decimal(value, field))
    if result <= ZERO:
        raise ValidationError(f"{field} must be positive")
    return result


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def quantize_cost(value: Decimal) -> Decimal:
    return Decimal(value).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def quantize_quantity(value: Decimal) -> Decimal:
    return Decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def as_decimal(value: Optional[Any]) -> Decimal:
    """Column values may come back as Decimal, int or float depending on the dialect."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_number(value: Optional[Any]) -> Optional[float]:
    """JSON representation of a stored amount."""
    if value is None:
        return None
    return float(value)
