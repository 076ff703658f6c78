from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import month_label
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import SnapshotStatus
from ..payroll.model import MonthlySalary


@dataclass(frozen=True)
class SalarySnapshot:
    """Domain entity: the persisted salary of one worker for one month.

    ``salary`` is frozen once the status leaves ``calculated``.
    ``version`` is bumped on every row change (optimistic lock).
    """

    snapshot_id: int
    user_id: int
    year: int
    month: int
    status: SnapshotStatus
    salary: MonthlySalary
    version: int
    created_at: datetime
    updated_at: datetime
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    @property
    def month_label(self) -> str:
        return month_label(self.year, self.month)

    @property
    def is_frozen(self) -> bool:
        return self.status != SnapshotStatus.CALCULATED


@dataclass(frozen=True)
class SnapshotVersion:
    """A superseded payload kept after a forced recalculation."""

    user_id: int
    year: int
    month: int
    version: int
    status: SnapshotStatus
    salary: MonthlySalary
    archived_at: datetime


@dataclass(frozen=True)
class SnapshotFilter:
    """List filter; the date range applies to the snapshot's pay month."""

    limit: int = DEFAULT_LIST_LIMIT
    offset: int = 0
    user_id: Optional[int] = None
    status: Optional[SnapshotStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
