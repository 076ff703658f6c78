from __future__ import annotations

from decimal import Decimal

from ...workers.model import WorkerPaySetting
from .base import PayBasisCalculator


class DailyRatePayCalculator(PayBasisCalculator):
    """Daily-rate rule: (hours / standard day) * daily rate."""

    def pay_for_hours(self, hours: Decimal, setting: WorkerPaySetting, *, standard_daily_hours: int) -> Decimal:
        return hours / Decimal(standard_daily_hours) * setting.daily_rate
