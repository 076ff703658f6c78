from __future__ import annotations

from datetime import date
from typing import Optional

from ..common.datetime_utils import month_label
from ..common.deadline import Deadline
from ..common.money import ZERO
from ..common.validators import require_period
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import SnapshotStatus
from ..snapshots.model import SnapshotFilter
from ..snapshots.store import SnapshotStore
from .model import EmploymentTypeSummary, MonthlySummary


class PayrollSummaryService:
    """Per-month totals grouped by employment type (admin dashboard)."""

    def __init__(self, snapshots: SnapshotStore, *, page_size: int = DEFAULT_LIST_LIMIT):
        self._snapshots = snapshots
        self._page_size = page_size

    def monthly_summary(self, *, year: int, month: int, deadline: Optional[Deadline] = None) -> MonthlySummary:
        year, month = require_period(year, month)
        day = date(year, month, 1)

        status_counts = {s.value: 0 for s in SnapshotStatus}
        groups: dict = {}
        total = 0
        offset = 0
        while True:
            page = self._snapshots.list(
                SnapshotFilter(limit=self._page_size, offset=offset, date_from=day, date_to=day),
                deadline=deadline,
            )
            for s in page:
                total += 1
                status_counts[s.status.value] += 1
                g = groups.setdefault(s.salary.employment_type, {"users": set(), "gross": ZERO, "ded": ZERO, "net": ZERO, "hours": ZERO})
                g["users"].add(s.user_id)
                g["gross"] += s.salary.total_gross_pay
                g["ded"] += s.salary.total_deductions
                g["net"] += s.salary.net_pay
                g["hours"] += s.salary.total_hours
            if len(page) < self._page_size:
                break
            offset += self._page_size

        by_type = [
            EmploymentTypeSummary(
                employment_type=employment_type,
                worker_count=len(g["users"]),
                total_gross_pay=g["gross"],
                total_deductions=g["ded"],
                total_net_pay=g["net"],
                total_hours=g["hours"],
            )
            for employment_type, g in sorted(groups.items(), key=lambda kv: kv[0].value)
        ]
        return MonthlySummary(
            month_label=month_label(year, month),
            snapshot_count=total,
            status_counts=status_counts,
            by_employment_type=tuple(by_type),
        )
