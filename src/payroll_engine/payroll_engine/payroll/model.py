from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..common.money import ZERO, to_decimal
from ..core.enums import EmploymentType, RateSource
from ..core.exceptions import ComputationError
from ..rates.model import RateSet


@dataclass(frozen=True)
class DeductionBreakdown:
    """Four line items, each already rounded to whole currency units."""

    income_tax: Decimal
    pension: Decimal
    health_insurance: Decimal
    employment_insurance: Decimal

    @property
    def total(self) -> Decimal:
        return self.income_tax + self.pension + self.health_insurance + self.employment_insurance

    def as_dict(self) -> dict[str, str]:
        return {
            "income_tax": str(self.income_tax),
            "pension": str(self.pension),
            "health_insurance": str(self.health_insurance),
            "employment_insurance": str(self.employment_insurance),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DeductionBreakdown":
        return cls(
            income_tax=to_decimal(data.get("income_tax", 0), "income_tax"),
            pension=to_decimal(data.get("pension", 0), "pension"),
            health_insurance=to_decimal(data.get("health_insurance", 0), "health_insurance"),
            employment_insurance=to_decimal(data.get("employment_insurance", 0), "employment_insurance"),
        )


@dataclass(frozen=True)
class MonthlySalary:
    """One worker's computed pay for one month.

    ``warnings`` is response-only and never persisted with a snapshot.
    """

    user_id: int
    year: int
    month: int
    employment_type: EmploymentType
    total_hours: Decimal
    record_count: int
    total_gross_pay: Decimal
    deductions: DeductionBreakdown
    total_deductions: Decimal
    net_pay: Decimal
    site_id: Optional[int] = None
    daily_rate: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    rate_source: Optional[RateSource] = None
    rates: Optional[RateSet] = None
    warnings: tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        if self.total_deductions != self.deductions.total:
            raise ComputationError("total_deductions does not match the sum of line items")
        if self.total_deductions < ZERO or self.total_deductions > self.total_gross_pay:
            raise ComputationError(
                f"Deductions {self.total_deductions} exceed gross pay {self.total_gross_pay}"
            )
        if self.net_pay != self.total_gross_pay - self.total_deductions:
            raise ComputationError("net_pay must equal gross pay minus deductions")

    @property
    def has_rate_annotation(self) -> bool:
        return self.rate_source is not None and self.rates is not None

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "year": self.year,
            "month": self.month,
            "site_id": self.site_id,
            "employment_type": self.employment_type.value,
            "total_hours": str(self.total_hours),
            "record_count": self.record_count,
            "total_gross_pay": str(self.total_gross_pay),
            "deductions": self.deductions.as_dict(),
            "total_deductions": str(self.total_deductions),
            "net_pay": str(self.net_pay),
            "daily_rate": str(self.daily_rate) if self.daily_rate is not None else None,
            "hourly_rate": str(self.hourly_rate) if self.hourly_rate is not None else None,
            "rate_source": self.rate_source.value if self.rate_source else None,
            "rates": self.rates.as_dict() if self.rates else None,
        }

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "MonthlySalary":
        rates = data.get("rates")
        rate_source = data.get("rate_source")
        daily_rate = data.get("daily_rate")
        hourly_rate = data.get("hourly_rate")
        return cls(
            user_id=int(data["user_id"]),
            year=int(data["year"]),
            month=int(data["month"]),
            site_id=int(data["site_id"]) if data.get("site_id") is not None else None,
            employment_type=EmploymentType(data["employment_type"]),
            total_hours=to_decimal(data.get("total_hours", 0), "total_hours"),
            record_count=int(data.get("record_count", 0)),
            total_gross_pay=to_decimal(data["total_gross_pay"], "total_gross_pay"),
            deductions=DeductionBreakdown.from_dict(data.get("deductions") or {}),
            total_deductions=to_decimal(data["total_deductions"], "total_deductions"),
            net_pay=to_decimal(data["net_pay"], "net_pay"),
            daily_rate=to_decimal(daily_rate, "daily_rate") if daily_rate is not None else None,
            hourly_rate=to_decimal(hourly_rate, "hourly_rate") if hourly_rate is not None else None,
            rate_source=RateSource(rate_source) if rate_source else None,
            rates=RateSet.from_dict(rates) if rates else None,
        )
