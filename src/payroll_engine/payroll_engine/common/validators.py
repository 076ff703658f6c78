from __future__ import annotations

import math
from typing import Any

from ..core.constants import MIN_YEAR, MAX_YEAR
from ..core.exceptions import InvalidPeriod, ValidationError


def _to_int(value: Any) -> int:
    """int() that refuses bools, non-finite and fractional floats."""
    if isinstance(value, bool):
        raise TypeError("bool is not an integer")
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise ValueError(f"{value!r} is not a whole number")
    return int(value)


def require_positive_int(value: Any, field_name: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        number = _to_int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError(f"{field_name} must be an integer") from exc
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def require_period(year: Any, month: Any) -> tuple[int, int]:
    """Validate a (year, month) pair and return it as ints."""
    try:
        y = _to_int(year)
        m = _to_int(month)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidPeriod(f"Invalid period: {year!r}-{month!r}") from exc
    if not MIN_YEAR <= y <= MAX_YEAR:
        raise InvalidPeriod(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    if not 1 <= m <= 12:
        raise InvalidPeriod("Month must be between 1 and 12")
    return y, m
