from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .approvals.service import ApprovalCoordinator
from .database.connection import DBConfig, DatabaseConnection
from .engine import PayrollEngine
from .payroll.batch import MonthSnapshotBatch
from .payroll.factory import PayBasisCalculatorFactory
from .payroll.service import SalaryCalculator
from .rates.mysql_rate_repository import MySQLRateConfigRepository
from .rates.resolver import RateResolver
from .settings import PayrollSettings
from .snapshots.mysql_snapshot_repository import MySQLSnapshotRepository
from .snapshots.store import SnapshotStore
from .trends.cache import InMemoryTTLCache
from .trends.service import TrendAggregator
from .trends.summary import PayrollSummaryService
from .workers.mysql_pay_setting_repository import MySQLWorkerPaySettingRepository
from .worklogs.mysql_work_record_repository import MySQLWorkRecordRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    settings: PayrollSettings

    rates_repo: MySQLRateConfigRepository
    work_records_repo: MySQLWorkRecordRepository
    pay_settings_repo: MySQLWorkerPaySettingRepository
    snapshots_repo: MySQLSnapshotRepository

    rate_resolver: RateResolver
    snapshot_store: SnapshotStore
    salary_calculator: SalaryCalculator
    approval_coordinator: ApprovalCoordinator
    trend_aggregator: TrendAggregator
    summary_service: PayrollSummaryService
    month_batch: MonthSnapshotBatch
    engine: PayrollEngine


def build_container(*, db_config: dict, payroll_config: Optional[dict] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    settings = PayrollSettings.from_mapping(payroll_config)

    rates_repo = MySQLRateConfigRepository(conn)
    work_records_repo = MySQLWorkRecordRepository(conn)
    pay_settings_repo = MySQLWorkerPaySettingRepository(conn)
    snapshots_repo = MySQLSnapshotRepository(conn)

    rate_resolver = RateResolver(rates_repo)
    snapshot_store = SnapshotStore(snapshots_repo)
    salary_calculator = SalaryCalculator(
        work_records_repo,
        pay_settings_repo,
        rate_resolver,
        snapshot_store,
        settings=settings,
        factory=PayBasisCalculatorFactory(),
    )
    approval_coordinator = ApprovalCoordinator(snapshot_store)
    trend_aggregator = TrendAggregator(
        snapshot_store,
        InMemoryTTLCache(settings.trend_cache_ttl_seconds),
        snapshots_per_month=settings.trend_snapshots_per_month,
    )
    summary_service = PayrollSummaryService(snapshot_store)
    month_batch = MonthSnapshotBatch(work_records_repo, salary_calculator, snapshot_store, settings=settings)
    engine = PayrollEngine(
        calculator=salary_calculator,
        snapshots=snapshot_store,
        approvals=approval_coordinator,
        trends=trend_aggregator,
        summary=summary_service,
        batch=month_batch,
    )

    return Container(
        conn=conn,
        settings=settings,
        rates_repo=rates_repo,
        work_records_repo=work_records_repo,
        pay_settings_repo=pay_settings_repo,
        snapshots_repo=snapshots_repo,
        rate_resolver=rate_resolver,
        snapshot_store=snapshot_store,
        salary_calculator=salary_calculator,
        approval_coordinator=approval_coordinator,
        trend_aggregator=trend_aggregator,
        summary_service=summary_service,
        month_batch=month_batch,
        engine=engine,
    )
