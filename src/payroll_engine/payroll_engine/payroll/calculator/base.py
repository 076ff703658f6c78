from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...workers.model import WorkerPaySetting


class PayBasisCalculator(ABC):
    """Calculator interface (Strategy Pattern for pay basis)."""

    @abstractmethod
    def pay_for_hours(self, hours: Decimal, setting: WorkerPaySetting, *, standard_daily_hours: int) -> Decimal:
        """Unrounded pay for ``hours`` worked under ``setting``."""

        raise NotImplementedError
