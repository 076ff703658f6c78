from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import WorkRecordPage


class WorkRecordRepository(Protocol):
    def query(
        self,
        *,
        user_id: int,
        date_from: date,
        date_to: date,
        site_id: Optional[int] = None,
        cursor: Optional[str] = None,
        limit: int = 500,
    ) -> WorkRecordPage:
        """One page of records ordered by (work_date, record_id).

        ``next_cursor`` is None on the last page.
        """

        raise NotImplementedError

    def list_user_ids(
        self,
        *,
        date_from: date,
        date_to: date,
        site_id: Optional[int] = None,
        after_user_id: Optional[int] = None,
        limit: int = 500,
    ) -> Sequence[int]:
        """Distinct workers with records in the range, ascending, after ``after_user_id``."""

        raise NotImplementedError
