from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from ..core.exceptions import ValidationError

ZERO = Decimal("0")
_UNIT = Decimal("1")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Convert DB/JSON numbers to Decimal without going through float repr."""
    if value is None:
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValidationError(f"{field_name} is not a number: {value!r}") from exc
    if not number.is_finite():
        raise ValidationError(f"{field_name} must be a finite number, got {value!r}")
    return number


def round_half_up(amount: Decimal) -> Decimal:
    """Round to whole currency units, halves away from zero."""
    return amount.quantize(_UNIT, rounding=ROUND_HALF_UP)
