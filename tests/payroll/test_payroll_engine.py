from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.payroll_engine.payroll_engine.approvals.service import ApprovalCoordinator
from src.payroll_engine.payroll_engine.core.enums import RateSource, SnapshotStatus
from src.payroll_engine.payroll_engine.core.exceptions import InvalidTransition, SnapshotNotFound
from src.payroll_engine.payroll_engine.engine import PayrollEngine
from src.payroll_engine.payroll_engine.payroll.batch import MonthSnapshotBatch
from src.payroll_engine.payroll_engine.payroll.service import SalaryCalculator
from src.payroll_engine.payroll_engine.rates.resolver import RateResolver
from src.payroll_engine.payroll_engine.snapshots.store import SnapshotStore
from src.payroll_engine.payroll_engine.trends.cache import InMemoryTTLCache
from src.payroll_engine.payroll_engine.trends.service import TrendAggregator
from src.payroll_engine.payroll_engine.trends.summary import PayrollSummaryService
from tests.fakes import (
    FakePaySettingRepo,
    FakeRateRepo,
    FakeSnapshotRepo,
    FakeWorkRecordRepo,
    fixed_now,
    make_rates,
    make_setting,
)


@pytest.fixture()
def records():
    repo = FakeWorkRecordRepo()
    repo.add(1, date(2025, 8, 4), 8)
    repo.add(1, date(2025, 8, 5), 8)
    return repo


@pytest.fixture()
def rate_repo():
    return FakeRateRepo([make_rates()])


@pytest.fixture()
def engine(records, rate_repo):
    store = SnapshotStore(FakeSnapshotRepo(), clock=fixed_now)
    calculator = SalaryCalculator(
        records,
        FakePaySettingRepo([make_setting(1), make_setting(2)]),
        RateResolver(rate_repo),
        store,
    )
    return PayrollEngine(
        calculator=calculator,
        snapshots=store,
        approvals=ApprovalCoordinator(store),
        trends=TrendAggregator(store, InMemoryTTLCache(60)),
        summary=PayrollSummaryService(store),
        batch=MonthSnapshotBatch(records, calculator, store),
    )


def _new_tax_year(records, rate_repo):
    # One more day worked and a higher income tax rate from August on.
    records.add(1, date(2025, 8, 6), 8)
    rate_repo.rate_sets.append(make_rates(income_tax="0.05", effective_from=date(2025, 8, 1)))


def test_recalculate_reuses_snapshot_rates_by_default(engine, records, rate_repo):
    engine.get_or_create_snapshot(user_id=1, year=2025, month=8)
    _new_tax_year(records, rate_repo)

    updated = engine.recalculate_snapshot(user_id=1, year=2025, month=8)

    assert updated.salary.total_gross_pay == Decimal("300000")
    assert updated.salary.deductions.income_tax == Decimal("9000")
    assert updated.salary.rate_source == RateSource.SNAPSHOT
    assert updated.salary.rates.income_tax_rate == Decimal("0.03")


def test_recalculate_with_refresh_rates_uses_current_rates(engine, records, rate_repo):
    engine.get_or_create_snapshot(user_id=1, year=2025, month=8)
    _new_tax_year(records, rate_repo)

    updated = engine.recalculate_snapshot(user_id=1, year=2025, month=8, refresh_rates=True)

    assert updated.salary.deductions.income_tax == Decimal("15000")
    assert updated.salary.rate_source == RateSource.DEFAULT
    assert updated.salary.rates.income_tax_rate == Decimal("0.05")


def test_history_grows_by_one_version_per_recalculation(engine, records):
    engine.get_or_create_snapshot(user_id=1, year=2025, month=8)
    assert list(engine.snapshot_history(user_id=1, year=2025, month=8)) == []

    records.add(1, date(2025, 8, 6), 8)
    engine.recalculate_snapshot(user_id=1, year=2025, month=8)
    records.add(1, date(2025, 8, 7), 8)
    latest = engine.recalculate_snapshot(user_id=1, year=2025, month=8)

    history = engine.snapshot_history(user_id=1, year=2025, month=8)
    assert [h.version for h in history] == [1, 2]
    assert [h.salary.total_gross_pay for h in history] == [Decimal("200000"), Decimal("300000")]
    assert latest.version == 3
    assert latest.salary.total_gross_pay == Decimal("400000")


def test_recalculating_an_approved_snapshot_is_rejected(engine, records):
    engine.get_or_create_snapshot(user_id=1, year=2025, month=8)
    engine.approve_snapshot(user_id=1, year=2025, month=8, approver_id=9)
    records.add(1, date(2025, 8, 6), 8)

    with pytest.raises(InvalidTransition):
        engine.recalculate_snapshot(user_id=1, year=2025, month=8)

    listed = engine.list_snapshots()
    assert listed[0].status == SnapshotStatus.APPROVED
    assert listed[0].salary.total_gross_pay == Decimal("200000")
    assert list(engine.snapshot_history(user_id=1, year=2025, month=8)) == []


def test_recalculating_a_missing_snapshot_raises(engine):
    with pytest.raises(SnapshotNotFound):
        engine.recalculate_snapshot(user_id=1, year=2025, month=8)


def test_create_month_snapshots_covers_every_worker(engine, records):
    records.add(2, date(2025, 8, 4), 8)
    records.add(3, date(2025, 8, 4), 8)  # no pay setting

    result = engine.create_month_snapshots(year=2025, month=8)

    assert [o.entry.user_id for o in result.succeeded] == [1, 2]
    assert [o.entry.user_id for o in result.skipped] == [3]
    assert {s.user_id for s in engine.list_snapshots()} == {1, 2}
