from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from ..common.money import to_decimal
from ..core.enums import EmploymentType, RateSource
from ..core.exceptions import ValidationError

RATE_FIELDS = (
    "income_tax_rate",
    "pension_rate",
    "health_insurance_rate",
    "employment_insurance_rate",
)


@dataclass(frozen=True)
class RateSet:
    """Tax/insurance fractions for one employment type (0.03 == 3%).

    Published rows are never edited; a newer ``effective_from`` supersedes.
    """

    employment_type: EmploymentType
    income_tax_rate: Decimal
    pension_rate: Decimal
    health_insurance_rate: Decimal
    employment_insurance_rate: Decimal
    effective_from: date

    def __post_init__(self) -> None:
        for name in RATE_FIELDS:
            value = getattr(self, name)
            if not Decimal("0") <= value <= Decimal("1"):
                raise ValidationError(f"{name} must be between 0 and 1, got {value}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "employment_type": self.employment_type.value,
            "income_tax_rate": str(self.income_tax_rate),
            "pension_rate": str(self.pension_rate),
            "health_insurance_rate": str(self.health_insurance_rate),
            "employment_insurance_rate": str(self.employment_insurance_rate),
            "effective_from": self.effective_from.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RateSet":
        effective_from = data.get("effective_from")
        if isinstance(effective_from, str):
            effective_from = date.fromisoformat(effective_from[:10])
        return cls(
            employment_type=EmploymentType(data["employment_type"]),
            income_tax_rate=to_decimal(data["income_tax_rate"], "income_tax_rate"),
            pension_rate=to_decimal(data["pension_rate"], "pension_rate"),
            health_insurance_rate=to_decimal(data["health_insurance_rate"], "health_insurance_rate"),
            employment_insurance_rate=to_decimal(data["employment_insurance_rate"], "employment_insurance_rate"),
            effective_from=effective_from,
        )


@dataclass(frozen=True)
class ResolvedRates:
    rates: RateSet
    source: RateSource
