from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.constants import PAY_BASIS_BY_EMPLOYMENT_TYPE
from ..core.enums import EmploymentType, PayBasis
from ..rates.model import RateSet


@dataclass(frozen=True)
class WorkerPaySetting:
    """Per-worker pay terms, effective from a date until superseded."""

    user_id: int
    employment_type: EmploymentType
    daily_rate: Decimal
    effective_from: date
    hourly_rate: Optional[Decimal] = None
    monthly_allowance: Decimal = Decimal("0")
    custom_rates: Optional[RateSet] = None

    @property
    def pay_basis(self) -> PayBasis:
        return PAY_BASIS_BY_EMPLOYMENT_TYPE[self.employment_type]

    def effective_hourly_rate(self, standard_daily_hours: int) -> Decimal:
        if self.hourly_rate is not None:
            return self.hourly_rate
        return self.daily_rate / Decimal(standard_daily_hours)
