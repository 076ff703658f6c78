from __future__ import annotations

import logging
from typing import Iterator, Optional

from ..approvals.model import ApprovalEntry, BatchResult, EntryOutcome
from ..common.datetime_utils import month_bounds, month_label
from ..common.deadline import Deadline, check_deadline
from ..common.validators import require_period, require_positive_int
from ..core.exceptions import ComputationError, DomainError, OperationCancelled
from ..settings import PayrollSettings
from ..snapshots.store import SnapshotStore
from ..worklogs.repository import WorkRecordRepository
from .service import SalaryCalculator

logger = logging.getLogger(__name__)


class MonthSnapshotBatch:
    """Create the month's snapshot for every worker who has work records.

    ``site_id`` only narrows who is included; each snapshot still covers the
    worker's whole month. One worker failing never stops the others.
    """

    def __init__(
        self,
        work_records: WorkRecordRepository,
        calculator: SalaryCalculator,
        snapshots: SnapshotStore,
        *,
        settings: Optional[PayrollSettings] = None,
    ):
        self._work_records = work_records
        self._calculator = calculator
        self._snapshots = snapshots
        self._settings = settings or PayrollSettings()

    def run(
        self,
        *,
        year: int,
        month: int,
        site_id: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> BatchResult:
        year, month = require_period(year, month)
        if site_id is not None:
            site_id = require_positive_int(site_id, "site_id")

        outcomes: list[EntryOutcome] = []
        for user_id in self._iter_user_ids(year=year, month=month, site_id=site_id, deadline=deadline):
            check_deadline(deadline, "month snapshot batch")
            entry = ApprovalEntry(user_id=user_id, year=year, month=month)
            try:
                self._snapshots.get_or_create(
                    user_id,
                    year,
                    month,
                    lambda uid=user_id: self._calculator.compute(
                        user_id=uid, year=year, month=month, deadline=deadline
                    ),
                )
            except OperationCancelled:
                raise
            except DomainError as e:
                logger.warning("No snapshot for user %s %s: %s", user_id, month_label(year, month), e)
                outcomes.append(EntryOutcome(entry=entry, ok=False, error=str(e)))
                continue
            except Exception as exc:  # noqa: BLE001
                logger.exception("Snapshot for user %s %s failed", user_id, month_label(year, month))
                outcomes.append(EntryOutcome(entry=entry, ok=False, error=f"calculation failed: {exc}"))
                continue
            outcomes.append(EntryOutcome(entry=entry, ok=True))

        result = BatchResult(outcomes=tuple(outcomes))
        logger.info(
            "Month snapshot batch %s (site=%s): %d ok, %d failed",
            month_label(year, month),
            site_id,
            len(result.succeeded),
            len(result.skipped),
        )
        return result

    def _iter_user_ids(
        self,
        *,
        year: int,
        month: int,
        site_id: Optional[int],
        deadline: Optional[Deadline],
    ) -> Iterator[int]:
        date_from, date_to = month_bounds(year, month)
        page_size = self._settings.work_record_page_size
        after: Optional[int] = None
        for _ in range(self._settings.work_record_max_pages):
            check_deadline(deadline, "month snapshot batch")
            user_ids = list(
                self._work_records.list_user_ids(
                    date_from=date_from,
                    date_to=date_to,
                    site_id=site_id,
                    after_user_id=after,
                    limit=page_size,
                )
            )
            yield from user_ids
            if len(user_ids) < page_size:
                return
            after = user_ids[-1]

        raise ComputationError(
            f"Workers for {month_label(year, month)} exceeded {self._settings.work_record_max_pages} pages"
        )
