"""In-memory repositories shared by the payroll tests (no database)."""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from src.payroll_engine.payroll_engine.core.enums import EmploymentType, SnapshotStatus
from src.payroll_engine.payroll_engine.core.exceptions import DuplicateSnapshot
from src.payroll_engine.payroll_engine.payroll.model import DeductionBreakdown, MonthlySalary
from src.payroll_engine.payroll_engine.rates.model import RateSet
from src.payroll_engine.payroll_engine.snapshots.model import SalarySnapshot, SnapshotFilter, SnapshotVersion
from src.payroll_engine.payroll_engine.workers.model import WorkerPaySetting
from src.payroll_engine.payroll_engine.worklogs.model import WorkRecord, WorkRecordPage


def make_rates(
    employment_type=EmploymentType.REGULAR_EMPLOYEE,
    *,
    income_tax="0.03",
    pension="0.045",
    health="0.0343",
    employment="0.009",
    effective_from=date(2024, 1, 1),
) -> RateSet:
    return RateSet(
        employment_type=employment_type,
        income_tax_rate=Decimal(income_tax),
        pension_rate=Decimal(pension),
        health_insurance_rate=Decimal(health),
        employment_insurance_rate=Decimal(employment),
        effective_from=effective_from,
    )


def make_setting(
    user_id=1,
    *,
    employment_type=EmploymentType.REGULAR_EMPLOYEE,
    daily_rate="100000",
    hourly_rate=None,
    monthly_allowance="0",
    custom_rates=None,
    effective_from=date(2024, 1, 1),
) -> WorkerPaySetting:
    return WorkerPaySetting(
        user_id=user_id,
        employment_type=employment_type,
        daily_rate=Decimal(daily_rate),
        hourly_rate=Decimal(hourly_rate) if hourly_rate is not None else None,
        monthly_allowance=Decimal(monthly_allowance),
        custom_rates=custom_rates,
        effective_from=effective_from,
    )


def make_salary(user_id=1, year=2025, month=8, *, gross="200000", employment_type=EmploymentType.REGULAR_EMPLOYEE):
    gross = Decimal(gross)
    deductions = DeductionBreakdown(
        income_tax=Decimal("0"),
        pension=Decimal("0"),
        health_insurance=Decimal("0"),
        employment_insurance=Decimal("0"),
    )
    return MonthlySalary(
        user_id=user_id,
        year=year,
        month=month,
        employment_type=employment_type,
        total_hours=Decimal("16"),
        record_count=2,
        total_gross_pay=gross,
        deductions=deductions,
        total_deductions=deductions.total,
        net_pay=gross - deductions.total,
    )


class FakeWorkRecordRepo:
    def __init__(self, records=()):
        self.records: list[WorkRecord] = list(records)
        self.query_calls = 0
        self.list_user_ids_calls = 0

    def add(self, user_id, work_date, hours, *, site_id=None):
        record = WorkRecord(
            record_id=len(self.records) + 1,
            user_id=user_id,
            site_id=site_id,
            work_date=work_date,
            hours=Decimal(str(hours)),
        )
        self.records.append(record)
        return record

    def query(self, *, user_id, date_from, date_to, site_id=None, cursor=None, limit=500):
        self.query_calls += 1
        matching = sorted(
            (
                r
                for r in self.records
                if r.user_id == user_id
                and date_from <= r.work_date <= date_to
                and (site_id is None or r.site_id == site_id)
            ),
            key=lambda r: (r.work_date, r.record_id),
        )
        start = int(cursor) if cursor else 0
        page = matching[start : start + limit]
        next_cursor = str(start + limit) if start + limit < len(matching) else None
        return WorkRecordPage(records=tuple(page), next_cursor=next_cursor)

    def list_user_ids(self, *, date_from, date_to, site_id=None, after_user_id=None, limit=500):
        self.list_user_ids_calls += 1
        user_ids = sorted(
            {
                r.user_id
                for r in self.records
                if date_from <= r.work_date <= date_to
                and (site_id is None or r.site_id == site_id)
                and (after_user_id is None or r.user_id > after_user_id)
            }
        )
        return user_ids[:limit]


class EndlessWorkRecordRepo:
    """Always claims there is another page."""

    def __init__(self):
        self.query_calls = 0

    def query(self, *, user_id, date_from, date_to, site_id=None, cursor=None, limit=500):
        self.query_calls += 1
        record = WorkRecord(
            record_id=self.query_calls,
            user_id=user_id,
            site_id=None,
            work_date=date_from,
            hours=Decimal("1"),
        )
        return WorkRecordPage(records=(record,), next_cursor=str(self.query_calls))


class FakeRateRepo:
    def __init__(self, rate_sets=()):
        self.rate_sets: list[RateSet] = list(rate_sets)
        self.calls = 0
        self.fail_with: Optional[Exception] = None

    def get_active_rates(self, employment_type, as_of):
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        candidates = [
            r for r in self.rate_sets if r.employment_type == employment_type and r.effective_from <= as_of
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda r: r.effective_from)


class FakePaySettingRepo:
    def __init__(self, settings=()):
        self.settings: list[WorkerPaySetting] = list(settings)

    def get_effective(self, user_id, as_of):
        candidates = [s for s in self.settings if s.user_id == user_id and s.effective_from <= as_of]
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.effective_from)


class FakeSnapshotRepo:
    """Thread-safe store honouring the unique key and version compare-and-swap."""

    def __init__(self, *, insert_delay: float = 0.0):
        self._lock = threading.Lock()
        self._rows: dict[tuple, SalarySnapshot] = {}
        self._history: list[SnapshotVersion] = []
        self._next_id = 1
        self.insert_delay = insert_delay
        self.insert_calls = 0

    def get(self, *, user_id, year, month):
        with self._lock:
            return self._rows.get((user_id, year, month))

    def put(self, snapshot: SalarySnapshot) -> SalarySnapshot:
        with self._lock:
            self._rows[(snapshot.user_id, snapshot.year, snapshot.month)] = snapshot
            self._next_id = max(self._next_id, snapshot.snapshot_id + 1)
        return snapshot

    def insert(self, *, salary, created_at):
        if self.insert_delay:
            time.sleep(self.insert_delay)
        key = (salary.user_id, salary.year, salary.month)
        with self._lock:
            self.insert_calls += 1
            if key in self._rows:
                raise DuplicateSnapshot(f"duplicate {key}")
            snapshot = SalarySnapshot(
                snapshot_id=self._next_id,
                user_id=salary.user_id,
                year=salary.year,
                month=salary.month,
                status=SnapshotStatus.CALCULATED,
                salary=salary,
                version=1,
                created_at=created_at,
                updated_at=created_at,
            )
            self._next_id += 1
            self._rows[key] = snapshot
            return snapshot

    def list(self, flt: SnapshotFilter):
        with self._lock:
            rows = list(self._rows.values())
        if flt.user_id is not None:
            rows = [s for s in rows if s.user_id == flt.user_id]
        if flt.status is not None:
            rows = [s for s in rows if s.status == flt.status]
        if flt.date_from is not None:
            rows = [s for s in rows if (s.year, s.month) >= (flt.date_from.year, flt.date_from.month)]
        if flt.date_to is not None:
            rows = [s for s in rows if (s.year, s.month) <= (flt.date_to.year, flt.date_to.month)]
        rows.sort(key=lambda s: (s.year, s.month, s.snapshot_id), reverse=True)
        return rows[flt.offset : flt.offset + flt.limit]

    def _swap(self, key, expected_version, **changes) -> bool:
        current = self._rows.get(key)
        if current is None or current.version != expected_version:
            return False
        self._rows[key] = replace(current, version=current.version + 1, **changes)
        return True

    def update_status(
        self,
        *,
        user_id,
        year,
        month,
        expected_version,
        from_status,
        to_status,
        updated_at,
        approved_by=None,
        approved_at=None,
        paid_at=None,
    ):
        key = (user_id, year, month)
        with self._lock:
            current = self._rows.get(key)
            if current is None or current.status != from_status:
                return False
            return self._swap(
                key,
                expected_version,
                status=to_status,
                updated_at=updated_at,
                approved_by=approved_by if approved_by is not None else current.approved_by,
                approved_at=approved_at or current.approved_at,
                paid_at=paid_at or current.paid_at,
            )

    def replace_salary(self, *, user_id, year, month, expected_version, salary, updated_at):
        key = (user_id, year, month)
        with self._lock:
            current = self._rows.get(key)
            if current is None or current.status != SnapshotStatus.CALCULATED:
                return False
            if current.version != expected_version:
                return False
            self._history.append(
                SnapshotVersion(
                    user_id=user_id,
                    year=year,
                    month=month,
                    version=current.version,
                    status=current.status,
                    salary=current.salary,
                    archived_at=updated_at,
                )
            )
            return self._swap(key, expected_version, salary=salary, updated_at=updated_at)

    def update_rate_annotation(self, *, user_id, year, month, expected_version, salary, updated_at):
        with self._lock:
            return self._swap((user_id, year, month), expected_version, salary=salary, updated_at=updated_at)

    def history(self, *, user_id, year, month):
        with self._lock:
            return sorted(
                (h for h in self._history if (h.user_id, h.year, h.month) == (user_id, year, month)),
                key=lambda h: h.version,
            )


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def fixed_now() -> datetime:
    return datetime(2025, 9, 1, 9, 0, 0)
