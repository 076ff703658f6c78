from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..core.enums import EmploymentType, RateSource
from ..core.exceptions import RateNotFound
from .model import RateSet, ResolvedRates
from .repository import RateConfigRepository

logger = logging.getLogger(__name__)


class RateResolver:
    """Pick the rate set for an employment type at a point in time.

    A worker-level override wins over the published default table. Rates
    already stored on a snapshot are not passed through here at all; the
    calculator only calls ``resolve`` when it has nothing to reuse.
    """

    def __init__(self, rates: RateConfigRepository):
        self._rates = rates

    def resolve(
        self,
        employment_type: EmploymentType,
        as_of: date,
        *,
        override: Optional[RateSet] = None,
    ) -> ResolvedRates:
        if override is not None:
            return ResolvedRates(rates=override, source=RateSource.CUSTOM)

        rate_set = self._rates.get_active_rates(employment_type, as_of)
        if rate_set is None:
            raise RateNotFound(f"No rate set for {employment_type.value} effective on {as_of.isoformat()}")

        logger.debug(
            "Resolved %s rates effective %s for %s",
            employment_type.value,
            rate_set.effective_from.isoformat(),
            as_of.isoformat(),
        )
        return ResolvedRates(rates=rate_set, source=RateSource.DEFAULT)
