from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence, Union

from .approvals.model import ApprovalEntry, BatchResult
from .approvals.service import ApprovalCoordinator
from .common.deadline import Deadline
from .core.enums import RateSource
from .payroll.batch import MonthSnapshotBatch
from .payroll.model import MonthlySalary
from .payroll.service import SalaryCalculator
from .rates.model import ResolvedRates
from .snapshots.model import SalarySnapshot, SnapshotFilter, SnapshotVersion
from .snapshots.store import SnapshotStore
from .trends.model import MonthlySummary, TrendEntry
from .trends.service import TrendAggregator
from .trends.summary import PayrollSummaryService


class PayrollEngine:
    """Entry point used by the HTTP layer and batch jobs.

    Thin delegation only; each call maps to one service operation.
    """

    def __init__(
        self,
        *,
        calculator: SalaryCalculator,
        snapshots: SnapshotStore,
        approvals: ApprovalCoordinator,
        trends: TrendAggregator,
        summary: PayrollSummaryService,
        batch: MonthSnapshotBatch,
    ):
        self._calculator = calculator
        self._snapshots = snapshots
        self._approvals = approvals
        self._trends = trends
        self._summary = summary
        self._batch = batch

    def calculate_monthly_salary(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        site_id: Optional[int] = None,
        force_recalculate: bool = False,
        refresh_rates: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> MonthlySalary:
        return self._calculator.calculate(
            user_id=user_id,
            year=year,
            month=month,
            site_id=site_id,
            force_recalculate=force_recalculate,
            refresh_rates=refresh_rates,
            deadline=deadline,
        )

    def get_or_create_snapshot(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        deadline: Optional[Deadline] = None,
    ) -> SalarySnapshot:
        def compute() -> MonthlySalary:
            return self._calculator.compute(user_id=int(user_id), year=int(year), month=int(month), deadline=deadline)

        return self._snapshots.get_or_create(user_id, year, month, compute)

    def create_month_snapshots(
        self,
        *,
        year: int,
        month: int,
        site_id: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> BatchResult:
        """get_or_create for every worker with records that month; per-worker outcomes."""
        return self._batch.run(year=year, month=month, site_id=site_id, deadline=deadline)

    def recalculate_snapshot(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        refresh_rates: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> SalarySnapshot:
        """Replace a ``calculated`` snapshot's payload; approved/paid ones are frozen."""
        current = self._snapshots.require(user_id, year, month)
        carried = None
        if not refresh_rates and current.salary.has_rate_annotation:
            carried = ResolvedRates(rates=current.salary.rates, source=RateSource.SNAPSHOT)

        def compute() -> MonthlySalary:
            return self._calculator.compute(
                user_id=current.user_id,
                year=current.year,
                month=current.month,
                carried_rates=carried,
                deadline=deadline,
            )

        return self._snapshots.recalculate(current.user_id, current.year, current.month, compute)

    def approve_snapshot(self, *, user_id: int, year: int, month: int, approver_id: int) -> bool:
        return self._approvals.approve(user_id=user_id, year=year, month=month, approver_id=approver_id)

    def bulk_approve_snapshots(
        self,
        entries: Iterable[Union[ApprovalEntry, Mapping]],
        *,
        approver_id: int,
    ) -> BatchResult:
        return self._approvals.bulk_approve(entries, approver_id=approver_id)

    def mark_snapshot_paid(self, *, user_id: int, year: int, month: int) -> SalarySnapshot:
        return self._snapshots.mark_paid(user_id, year, month)

    def list_snapshots(
        self,
        flt: Optional[SnapshotFilter] = None,
        *,
        deadline: Optional[Deadline] = None,
    ) -> list[SalarySnapshot]:
        return self._snapshots.list(flt, deadline=deadline)

    def snapshot_history(self, *, user_id: int, year: int, month: int) -> Sequence[SnapshotVersion]:
        return self._snapshots.history(user_id, year, month)

    def get_trend(self, months: int, *, deadline: Optional[Deadline] = None) -> list[TrendEntry]:
        return self._trends.get_trend(months, deadline=deadline)

    def monthly_summary(self, *, year: int, month: int, deadline: Optional[Deadline] = None) -> MonthlySummary:
        return self._summary.monthly_summary(year=year, month=month, deadline=deadline)
