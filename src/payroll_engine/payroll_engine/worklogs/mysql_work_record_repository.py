from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import WorkRecord, WorkRecordPage
from .repository import WorkRecordRepository


def encode_cursor(work_date: date, record_id: int) -> str:
    return f"{work_date.isoformat()}:{int(record_id)}"


def decode_cursor(cursor: str) -> tuple[date, int]:
    try:
        day, record_id = cursor.split(":", 1)
        return date.fromisoformat(day), int(record_id)
    except ValueError:
        raise ValidationError(f"Invalid cursor: {cursor!r}")


class MySQLWorkRecordRepository(WorkRecordRepository):
    """Keyset pagination over work_records; never loads a whole month at once."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        clauses = ["user_id=%s", "work_date>=%s", "work_date<=%s"]
        params: list[object] = [int(user_id), date_from, date_to]

        if site_id is not None:
            clauses.append("site_id=%s")
            params.append(int(site_id))
        if cursor:
            after_date, after_id = decode_cursor(cursor)
            clauses.append("(work_date > %s OR (work_date = %s AND record_id > %s))")
            params.extend([after_date, after_date, after_id])

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            # One extra row tells us whether another page exists.
            cur.execute(
                f"""
                SELECT record_id, user_id, site_id, work_date, hours
                FROM work_records
                WHERE {where}
                ORDER BY work_date ASC, record_id ASC
                LIMIT %s
                """,
                tuple(params + [int(limit) + 1]),
            )
            rows = fetchall(cur)

        has_more = len(rows) > limit
        rows = rows[:limit]
        records = [
            WorkRecord(
                record_id=int(r["record_id"]),
                user_id=int(r["user_id"]),
                site_id=int(r["site_id"]) if r.get("site_id") is not None else None,
                work_date=r["work_date"],
                hours=Decimal(str(r["hours"])),
            )
            for r in rows
        ]
        next_cursor = encode_cursor(records[-1].work_date, records[-1].record_id) if has_more and records else None
        return WorkRecordPage(records=tuple(records), next_cursor=next_cursor)

    def list_user_ids(
        self,
        *,
        date_from: date,
        date_to: date,
        site_id: Optional[int] = None,
        after_user_id: Optional[int] = None,
        limit: int = 500,
    ) -> Sequence[int]:
        clauses = ["work_date>=%s", "work_date<=%s"]
        params: list[object] = [date_from, date_to]

        if site_id is not None:
            clauses.append("site_id=%s")
            params.append(int(site_id))
        if after_user_id is not None:
            clauses.append("user_id>%s")
            params.append(int(after_user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT user_id
                FROM work_records
                WHERE {where}
                ORDER BY user_id ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [int(r["user_id"]) for r in fetchall(cur)]
