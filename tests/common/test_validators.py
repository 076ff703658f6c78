from __future__ import annotations

import pytest

from src.payroll_engine.payroll_engine.common.validators import require_period, require_positive_int
from src.payroll_engine.payroll_engine.core.exceptions import InvalidPeriod, ValidationError


@pytest.mark.parametrize("year", [float("inf"), float("-inf"), float("nan"), 2025.5, 1e400, True, "twenty"])
def test_require_period_rejects_non_integral_years(year):
    with pytest.raises(InvalidPeriod):
        require_period(year, 8)


def test_require_period_accepts_whole_floats_and_strings():
    assert require_period(2025.0, "8") == (2025, 8)


@pytest.mark.parametrize("value", [float("inf"), float("nan"), 3.5, 1e400, False])
def test_require_positive_int_rejects_non_integral_values(value):
    with pytest.raises(ValidationError):
        require_positive_int(value, "user_id")


def test_require_positive_int_rejects_zero():
    with pytest.raises(ValidationError, match="positive"):
        require_positive_int(0, "user_id")
