from __future__ import annotations

from decimal import Decimal

from ..common.money import round_half_up
from ..rates.model import RateSet
from .model import DeductionBreakdown


def compute_deductions(gross: Decimal, rates: RateSet) -> DeductionBreakdown:
    """Each line item is rounded half-up on its own; the total is never rounded."""
    return DeductionBreakdown(
        income_tax=round_half_up(gross * rates.income_tax_rate),
        pension=round_half_up(gross * rates.pension_rate),
        health_insurance=round_half_up(gross * rates.health_insurance_rate),
        employment_insurance=round_half_up(gross * rates.employment_insurance_rate),
    )
