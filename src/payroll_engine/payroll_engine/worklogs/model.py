from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence


@dataclass(frozen=True)
class WorkRecord:
    """Hours one worker put in on one site for one day (timekeeping output)."""

    record_id: int
    user_id: int
    site_id: Optional[int]
    work_date: date
    hours: Decimal


@dataclass(frozen=True)
class WorkRecordPage:
    records: Sequence[WorkRecord] = field(default_factory=tuple)
    next_cursor: Optional[str] = None
