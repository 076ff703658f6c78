from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SnapshotStatus
from ..payroll.model import MonthlySalary
from .model import SalarySnapshot, SnapshotFilter, SnapshotVersion


class SnapshotRepository(Protocol):
    def get(self, *, user_id: int, year: int, month: int) -> Optional[SalarySnapshot]:
        raise NotImplementedError

    def insert(self, *, salary: MonthlySalary, created_at: datetime) -> SalarySnapshot:
        """Insert a ``calculated`` version-1 row.

        Raises DuplicateSnapshot when the (user, year, month) key already exists.
        """

        raise NotImplementedError

    def list(self, flt: SnapshotFilter) -> Sequence[SalarySnapshot]:
        """Most recent pay month first."""

        raise NotImplementedError

    def update_status(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        expected_version: int,
        from_status: SnapshotStatus,
        to_status: SnapshotStatus,
        updated_at: datetime,
        approved_by: Optional[int] = None,
        approved_at: Optional[datetime] = None,
        paid_at: Optional[datetime] = None,
    ) -> bool:
        """Compare-and-swap on (version, status); False when the row moved on."""

        raise NotImplementedError

    def replace_salary(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        expected_version: int,
        salary: MonthlySalary,
        updated_at: datetime,
    ) -> bool:
        """Archive the current payload into history, then store ``salary``.

        Only applies to ``calculated`` rows at ``expected_version``.
        """

        raise NotImplementedError

    def update_rate_annotation(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        expected_version: int,
        salary: MonthlySalary,
        updated_at: datetime,
    ) -> bool:
        """Write ``salary`` (same totals, new rate_source/rates) at ``expected_version``."""

        raise NotImplementedError

    def history(self, *, user_id: int, year: int, month: int) -> Sequence[SnapshotVersion]:
        raise NotImplementedError
