from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ..core.enums import EmploymentType
from .model import RateSet


class RateConfigRepository(Protocol):
    def get_active_rates(self, employment_type: EmploymentType, as_of: date) -> Optional[RateSet]:
        """Row with the latest ``effective_from <= as_of``, or None."""

        raise NotImplementedError
