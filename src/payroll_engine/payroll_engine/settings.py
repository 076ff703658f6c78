from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .core.constants import (
    STANDARD_DAILY_HOURS,
    TREND_CACHE_TTL_SECONDS,
    TREND_SNAPSHOTS_PER_MONTH,
    WORK_RECORD_MAX_PAGES,
    WORK_RECORD_PAGE_SIZE,
)
from .core.exceptions import ValidationError


@dataclass(frozen=True)
class PayrollSettings:
    """Tunables read from the ``PAYROLL_CONFIG`` mapping of the settings module."""

    standard_daily_hours: int = STANDARD_DAILY_HOURS
    work_record_page_size: int = WORK_RECORD_PAGE_SIZE
    work_record_max_pages: int = WORK_RECORD_MAX_PAGES
    trend_cache_ttl_seconds: float = TREND_CACHE_TTL_SECONDS
    trend_snapshots_per_month: int = TREND_SNAPSHOTS_PER_MONTH

    def __post_init__(self) -> None:
        if self.standard_daily_hours <= 0:
            raise ValidationError("standard_daily_hours must be positive")
        if self.work_record_page_size <= 0 or self.work_record_max_pages <= 0:
            raise ValidationError("work record paging limits must be positive")
        if self.trend_cache_ttl_seconds < 0:
            raise ValidationError("trend_cache_ttl_seconds cannot be negative")

    @classmethod
    def from_mapping(cls, config: Optional[Mapping[str, Any]]) -> "PayrollSettings":
        defaults = cls()
        config = config or {}
        return cls(
            standard_daily_hours=int(config.get("standard_daily_hours", defaults.standard_daily_hours)),
            work_record_page_size=int(config.get("work_record_page_size", defaults.work_record_page_size)),
            work_record_max_pages=int(config.get("work_record_max_pages", defaults.work_record_max_pages)),
            trend_cache_ttl_seconds=float(config.get("trend_cache_ttl_seconds", defaults.trend_cache_ttl_seconds)),
            trend_snapshots_per_month=int(
                config.get("trend_snapshots_per_month", defaults.trend_snapshots_per_month)
            ),
        )
