from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Sequence

from ..core.enums import EmploymentType


@dataclass(frozen=True)
class TrendEntry:
    month_label: str
    count: int
    gross_sum: Decimal
    deductions_sum: Decimal
    net_sum: Decimal

    def as_dict(self) -> dict:
        return {
            "month": self.month_label,
            "count": self.count,
            "gross_sum": str(self.gross_sum),
            "deductions_sum": str(self.deductions_sum),
            "net_sum": str(self.net_sum),
        }


@dataclass(frozen=True)
class EmploymentTypeSummary:
    employment_type: EmploymentType
    worker_count: int
    total_gross_pay: Decimal
    total_deductions: Decimal
    total_net_pay: Decimal
    total_hours: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    month_label: str
    snapshot_count: int
    status_counts: Mapping[str, int] = field(default_factory=dict)
    by_employment_type: Sequence[EmploymentTypeSummary] = field(default_factory=tuple)
