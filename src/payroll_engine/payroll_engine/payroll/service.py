from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterator, Optional

from ..common.datetime_utils import month_bounds, month_label
from ..common.deadline import Deadline, check_deadline
from ..common.money import ZERO, round_half_up
from ..common.validators import require_period, require_positive_int
from ..core.enums import PayBasis, RateSource
from ..core.exceptions import ComputationError, NoWorkRecords, SalarySettingNotFound
from ..rates.model import ResolvedRates
from ..rates.resolver import RateResolver
from ..settings import PayrollSettings
from ..snapshots.model import SalarySnapshot
from ..snapshots.store import SnapshotStore
from ..workers.repository import WorkerPaySettingRepository
from ..worklogs.model import WorkRecord
from ..worklogs.repository import WorkRecordRepository
from .deductions import compute_deductions
from .factory import PayBasisCalculatorFactory
from .model import MonthlySalary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateBackfill:
    """Outcome of annotating a snapshot that predates rate tracking."""

    salary: MonthlySalary
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.warning is None


class SalaryCalculator:
    """Turns a month of work records into a ``MonthlySalary``.

    An existing snapshot short-circuits the calculation unless the caller
    forces it; rates stored on a snapshot are reused unless ``refresh_rates``.
    """

    def __init__(
        self,
        work_records: WorkRecordRepository,
        pay_settings: WorkerPaySettingRepository,
        resolver: RateResolver,
        snapshots: SnapshotStore,
        *,
        settings: Optional[PayrollSettings] = None,
        factory: Optional[PayBasisCalculatorFactory] = None,
    ):
        self._work_records = work_records
        self._pay_settings = pay_settings
        self._resolver = resolver
        self._snapshots = snapshots
        self._settings = settings or PayrollSettings()
        self._factory = factory or PayBasisCalculatorFactory()

    def calculate(
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
        user_id = require_positive_int(user_id, "user_id")
        year, month = require_period(year, month)
        if site_id is not None:
            site_id = require_positive_int(site_id, "site_id")

        existing = self._snapshots.get(user_id, year, month)

        if existing is not None and not force_recalculate and existing.salary.site_id == site_id:
            if existing.salary.has_rate_annotation:
                return existing.salary
            backfill = self._backfill_rates(existing)
            if backfill.ok:
                return backfill.salary
            return replace(backfill.salary, warnings=backfill.salary.warnings + (backfill.warning,))

        carried = None
        if existing is not None and not refresh_rates and existing.salary.has_rate_annotation:
            carried = ResolvedRates(rates=existing.salary.rates, source=RateSource.SNAPSHOT)

        return self.compute(
            user_id=user_id,
            year=year,
            month=month,
            site_id=site_id,
            carried_rates=carried,
            deadline=deadline,
        )

    def compute(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        site_id: Optional[int] = None,
        carried_rates: Optional[ResolvedRates] = None,
        deadline: Optional[Deadline] = None,
    ) -> MonthlySalary:
        """Full calculation from work records; never reads snapshots."""
        date_from, date_to = month_bounds(year, month)

        total_hours = ZERO
        record_count = 0
        for record in self._iter_work_records(
            user_id=user_id, date_from=date_from, date_to=date_to, site_id=site_id, deadline=deadline
        ):
            if record.hours < ZERO:
                raise ComputationError(f"Work record {record.record_id} has negative hours ({record.hours})")
            total_hours += record.hours
            record_count += 1

        if record_count == 0:
            raise NoWorkRecords(f"No work records for user {user_id} in {month_label(year, month)}")

        setting = self._pay_settings.get_effective(user_id, date_to)
        if setting is None:
            raise SalarySettingNotFound(f"User {user_id} has no pay setting effective on {date_to.isoformat()}")

        strategy = self._factory.for_setting(setting)
        hours_pay = strategy.pay_for_hours(
            total_hours, setting, standard_daily_hours=self._settings.standard_daily_hours
        )
        gross = round_half_up(hours_pay + setting.monthly_allowance)

        resolved = carried_rates or self._resolver.resolve(
            setting.employment_type, date_to, override=setting.custom_rates
        )
        deductions = compute_deductions(gross, resolved.rates)

        hourly_rate = None
        if setting.pay_basis == PayBasis.HOURLY:
            hourly_rate = setting.effective_hourly_rate(self._settings.standard_daily_hours)

        salary = MonthlySalary(
            user_id=user_id,
            year=year,
            month=month,
            site_id=site_id,
            employment_type=setting.employment_type,
            total_hours=total_hours,
            record_count=record_count,
            total_gross_pay=gross,
            deductions=deductions,
            total_deductions=deductions.total,
            net_pay=gross - deductions.total,
            daily_rate=setting.daily_rate if setting.pay_basis == PayBasis.DAILY else None,
            hourly_rate=hourly_rate,
            rate_source=resolved.source,
            rates=resolved.rates,
        )
        logger.debug(
            "Calculated %s for user %s: records=%d gross=%s deductions=%s net=%s (%s rates)",
            month_label(year, month),
            user_id,
            record_count,
            salary.total_gross_pay,
            salary.total_deductions,
            salary.net_pay,
            resolved.source.value,
        )
        return salary

    def _iter_work_records(
        self,
        *,
        user_id: int,
        date_from: date,
        date_to: date,
        site_id: Optional[int],
        deadline: Optional[Deadline],
    ) -> Iterator[WorkRecord]:
        cursor: Optional[str] = None
        for _ in range(self._settings.work_record_max_pages):
            check_deadline(deadline, "salary calculation")
            page = self._work_records.query(
                user_id=user_id,
                date_from=date_from,
                date_to=date_to,
                site_id=site_id,
                cursor=cursor,
                limit=self._settings.work_record_page_size,
            )
            yield from page.records
            if not page.next_cursor:
                return
            cursor = page.next_cursor

        raise ComputationError(
            f"Work records for user {user_id} exceeded {self._settings.work_record_max_pages} pages"
        )

    def _backfill_rates(self, snapshot: SalarySnapshot) -> RateBackfill:
        """Best-effort rate annotation; the stored totals are kept whatever happens."""
        salary = snapshot.salary
        _, as_of = month_bounds(snapshot.year, snapshot.month)
        try:
            setting = self._pay_settings.get_effective(snapshot.user_id, as_of)
            resolved = self._resolver.resolve(
                salary.employment_type,
                as_of,
                override=setting.custom_rates if setting is not None else None,
            )
            updated = self._snapshots.backfill_rates(snapshot, resolved.source, resolved.rates)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Rate backfill failed for user %s %s; keeping stored totals: %s",
                snapshot.user_id,
                snapshot.month_label,
                exc,
            )
            return RateBackfill(salary=salary, warning=f"rate metadata unavailable: {exc}")

        return RateBackfill(salary=updated.salary)
