from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import PayBasis
from ..workers.model import WorkerPaySetting
from .calculator.base import PayBasisCalculator
from .calculator.daily_rate_calculator import DailyRatePayCalculator
from .calculator.hourly_rate_calculator import HourlyRatePayCalculator


@dataclass
class PayBasisCalculatorFactory:
    """Factory Pattern: choose the pay-basis strategy for a worker."""

    def for_setting(self, setting: WorkerPaySetting) -> PayBasisCalculator:
        if setting.pay_basis == PayBasis.HOURLY:
            return HourlyRatePayCalculator()
        return DailyRatePayCalculator()
