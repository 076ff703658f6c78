from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterator, Optional, Sequence

from ..common.datetime_utils import month_label, now_local
from ..common.deadline import Deadline, check_deadline
from ..common.validators import require_period, require_positive_int
from ..core.enums import RateSource, SnapshotStatus
from ..core.exceptions import ComputationError, DuplicateSnapshot, InvalidTransition, SnapshotNotFound, ValidationError
from ..payroll.model import MonthlySalary
from ..rates.model import RateSet
from .model import SalarySnapshot, SnapshotFilter, SnapshotVersion
from .repository import SnapshotRepository

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    (SnapshotStatus.CALCULATED, SnapshotStatus.APPROVED),
    (SnapshotStatus.APPROVED, SnapshotStatus.PAID),
}

SnapshotKey = tuple[int, int, int]


class _KeyedLocks:
    """One lock per (user, year, month), dropped when nobody holds it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[SnapshotKey, list] = {}

    @contextmanager
    def hold(self, key: SnapshotKey) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)


class SnapshotStore:
    def __init__(
        self,
        snapshots: SnapshotRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._snapshots = snapshots
        self._clock = clock
        self._locks = _KeyedLocks()

    @staticmethod
    def _key(user_id, year, month) -> SnapshotKey:
        y, m = require_period(year, month)
        return require_positive_int(user_id, "user_id"), y, m

    def get(self, user_id: int, year: int, month: int) -> Optional[SalarySnapshot]:
        user_id, year, month = self._key(user_id, year, month)
        return self._snapshots.get(user_id=user_id, year=year, month=month)

    def require(self, user_id: int, year: int, month: int) -> SalarySnapshot:
        snapshot = self.get(user_id, year, month)
        if snapshot is None:
            raise SnapshotNotFound(f"No snapshot for user {user_id} {month_label(int(year), int(month))}")
        return snapshot

    def get_or_create(
        self,
        user_id: int,
        year: int,
        month: int,
        compute_fn: Callable[[], MonthlySalary],
    ) -> SalarySnapshot:
        key = self._key(user_id, year, month)
        user_id, year, month = key

        existing = self._snapshots.get(user_id=user_id, year=year, month=month)
        if existing is not None:
            return existing

        with self._locks.hold(key):
            # Another thread may have created it while we waited.
            existing = self._snapshots.get(user_id=user_id, year=year, month=month)
            if existing is not None:
                return existing

            salary = self._checked(compute_fn(), key)
            try:
                created = self._snapshots.insert(salary=salary, created_at=self._clock())
            except DuplicateSnapshot:
                # Lost the race to another process; the unique key decides.
                logger.info("Snapshot %s for user %s created concurrently; re-reading", month_label(year, month), user_id)
                winner = self._snapshots.get(user_id=user_id, year=year, month=month)
                if winner is None:
                    raise
                return winner

        logger.info("Created snapshot %s for user %s (net=%s)", created.month_label, user_id, salary.net_pay)
        return created

    def list(self, flt: Optional[SnapshotFilter] = None, *, deadline: Optional[Deadline] = None) -> list[SalarySnapshot]:
        flt = flt or SnapshotFilter()
        if flt.limit <= 0:
            raise ValidationError("limit must be positive")
        if flt.offset < 0:
            raise ValidationError("offset cannot be negative")
        if flt.date_from and flt.date_to and flt.date_to < flt.date_from:
            raise ValidationError("date_to must be >= date_from")
        check_deadline(deadline, "list snapshots")
        return list(self._snapshots.list(flt))

    def transition(
        self,
        user_id: int,
        year: int,
        month: int,
        from_status: SnapshotStatus,
        to_status: SnapshotStatus,
        *,
        actor_id: Optional[int] = None,
        at: Optional[datetime] = None,
    ) -> SalarySnapshot:
        """Guarded status change; compare-and-swap on the row version."""
        current = self.require(user_id, year, month)
        if (from_status, to_status) not in ALLOWED_TRANSITIONS:
            raise InvalidTransition(f"{from_status.value} -> {to_status.value} is not allowed")
        if current.status != from_status:
            raise InvalidTransition(
                f"Snapshot {current.month_label} for user {current.user_id} is {current.status.value}, "
                f"expected {from_status.value}"
            )

        now = at or self._clock()
        ok = self._snapshots.update_status(
            user_id=current.user_id,
            year=current.year,
            month=current.month,
            expected_version=current.version,
            from_status=from_status,
            to_status=to_status,
            updated_at=now,
            approved_by=actor_id if to_status == SnapshotStatus.APPROVED else None,
            approved_at=now if to_status == SnapshotStatus.APPROVED else None,
            paid_at=now if to_status == SnapshotStatus.PAID else None,
        )
        if not ok:
            latest = self.require(user_id, year, month)
            raise InvalidTransition(
                f"Snapshot {latest.month_label} for user {latest.user_id} changed concurrently "
                f"(now {latest.status.value})"
            )

        logger.info(
            "Snapshot %s for user %s: %s -> %s",
            current.month_label,
            current.user_id,
            from_status.value,
            to_status.value,
        )
        return self.require(user_id, year, month)

    def mark_paid(self, user_id: int, year: int, month: int) -> SalarySnapshot:
        """Disbursement callback: approved -> paid."""
        return self.transition(user_id, year, month, SnapshotStatus.APPROVED, SnapshotStatus.PAID)

    def recalculate(
        self,
        user_id: int,
        year: int,
        month: int,
        compute_fn: Callable[[], MonthlySalary],
    ) -> SalarySnapshot:
        """Store a fresh payload as a new version; the old one goes to history."""
        key = self._key(user_id, year, month)
        with self._locks.hold(key):
            current = self.require(*key)
            if current.is_frozen:
                raise InvalidTransition(
                    f"Snapshot {current.month_label} for user {current.user_id} is {current.status.value}; "
                    "its salary can no longer change"
                )

            salary = self._checked(compute_fn(), key)
            ok = self._snapshots.replace_salary(
                user_id=current.user_id,
                year=current.year,
                month=current.month,
                expected_version=current.version,
                salary=salary,
                updated_at=self._clock(),
            )
            if not ok:
                raise InvalidTransition(
                    f"Snapshot {current.month_label} for user {current.user_id} changed during recalculation"
                )

        logger.info("Recalculated snapshot %s for user %s (was v%s)", current.month_label, current.user_id, current.version)
        return self.require(*key)

    def backfill_rates(self, snapshot: SalarySnapshot, rate_source: RateSource, rates: RateSet) -> SalarySnapshot:
        """Attach missing rate metadata; monetary totals are left untouched."""
        if snapshot.salary.has_rate_annotation:
            return snapshot

        salary = replace(snapshot.salary, rate_source=rate_source, rates=rates, warnings=())
        ok = self._snapshots.update_rate_annotation(
            user_id=snapshot.user_id,
            year=snapshot.year,
            month=snapshot.month,
            expected_version=snapshot.version,
            salary=salary,
            updated_at=self._clock(),
        )
        latest = self.require(snapshot.user_id, snapshot.year, snapshot.month)
        if not ok and not latest.salary.has_rate_annotation:
            raise InvalidTransition(
                f"Snapshot {snapshot.month_label} for user {snapshot.user_id} changed during rate backfill"
            )
        return latest

    def history(self, user_id: int, year: int, month: int) -> Sequence[SnapshotVersion]:
        user_id, year, month = self._key(user_id, year, month)
        return list(self._snapshots.history(user_id=user_id, year=year, month=month))

    @staticmethod
    def _checked(salary: MonthlySalary, key: SnapshotKey) -> MonthlySalary:
        if (salary.user_id, salary.year, salary.month) != key:
            raise ComputationError(
                f"Computed salary for {(salary.user_id, salary.year, salary.month)} does not match snapshot key {key}"
            )
        if salary.site_id is not None:
            raise ComputationError("Snapshots cover the whole month; site-filtered salaries cannot be stored")
        return replace(salary, warnings=())
