from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from ..common.deadline import Deadline
from ..common.money import ZERO
from ..core.constants import TREND_CACHE_TTL_SECONDS, TREND_MAX_MONTHS, TREND_SNAPSHOTS_PER_MONTH
from ..core.exceptions import ValidationError
from ..snapshots.model import SnapshotFilter
from ..snapshots.store import SnapshotStore
from .cache import InMemoryTTLCache, TrendCache
from .model import TrendEntry

logger = logging.getLogger(__name__)


class TrendAggregator:
    """Monthly totals over recent snapshots, cached per window size.

    Every status is counted (calculated, approved and paid), so a month shows
    up in the trend as soon as its salaries are computed, before approval.

    A cache hit is returned as-is even if snapshots changed since; staleness
    is bounded by the cache TTL.
    """

    def __init__(
        self,
        snapshots: SnapshotStore,
        cache: Optional[TrendCache] = None,
        *,
        snapshots_per_month: int = TREND_SNAPSHOTS_PER_MONTH,
    ):
        self._snapshots = snapshots
        self._cache = cache if cache is not None else InMemoryTTLCache(TREND_CACHE_TTL_SECONDS)
        self._snapshots_per_month = snapshots_per_month

    def get_trend(self, months: int, *, deadline: Optional[Deadline] = None) -> list[TrendEntry]:
        try:
            months = int(months)
        except (TypeError, ValueError, OverflowError):
            raise ValidationError("months must be an integer")
        if not 1 <= months <= TREND_MAX_MONTHS:
            raise ValidationError(f"months must be between 1 and {TREND_MAX_MONTHS}")

        cached = self._cache.get(months)
        if cached is not None:
            logger.debug("Trend cache hit (months=%d)", months)
            return list(cached)

        logger.debug("Trend cache miss (months=%d)", months)
        entries = self._build(months, deadline=deadline)
        self._cache.set(months, tuple(entries))
        return entries

    def invalidate(self) -> None:
        self._cache.invalidate()

    def _build(self, months: int, *, deadline: Optional[Deadline]) -> list[TrendEntry]:
        snapshots = self._snapshots.list(
            SnapshotFilter(limit=months * self._snapshots_per_month),
            deadline=deadline,
        )

        buckets: dict[str, list] = {}
        for s in snapshots:
            bucket = buckets.setdefault(s.month_label, [0, ZERO, ZERO, ZERO])
            bucket[0] += 1
            bucket[1] += s.salary.total_gross_pay
            bucket[2] += s.salary.total_deductions
            bucket[3] += s.salary.net_pay

        entries = [
            TrendEntry(
                month_label=label,
                count=count,
                gross_sum=Decimal(gross),
                deductions_sum=Decimal(deductions),
                net_sum=Decimal(net),
            )
            for label, (count, gross, deductions, net) in sorted(buckets.items())
        ]
        return entries[-months:]
