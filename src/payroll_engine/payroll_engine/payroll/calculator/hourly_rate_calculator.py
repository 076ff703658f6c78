from __future__ import annotations

from decimal import Decimal

from ...workers.model import WorkerPaySetting
from .base import PayBasisCalculator


class HourlyRatePayCalculator(PayBasisCalculator):
    """Hourly rule: hours * hourly rate (derived from the daily rate when unset)."""

    def pay_for_hours(self, hours: Decimal, setting: WorkerPaySetting, *, standard_daily_hours: int) -> Decimal:
        return hours * setting.effective_hourly_rate(standard_daily_hours)
