from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import SnapshotStatus
from ..core.exceptions import DuplicateSnapshot
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dumps_json, fetchall, fetchone, is_duplicate_key, loads_json
from ..payroll.model import MonthlySalary
from .model import SalarySnapshot, SnapshotFilter, SnapshotVersion
from .repository import SnapshotRepository

_SNAPSHOT_COLUMNS = """
    snapshot_id, user_id, year, month, status, salary_json, version,
    approved_by, approved_at, paid_at, created_at, updated_at
"""


def _row_to_snapshot(r: Dict[str, Any]) -> SalarySnapshot:
    return SalarySnapshot(
        snapshot_id=int(r["snapshot_id"]),
        user_id=int(r["user_id"]),
        year=int(r["year"]),
        month=int(r["month"]),
        status=SnapshotStatus(r["status"]),
        salary=MonthlySalary.from_payload(loads_json(r["salary_json"])),
        version=int(r["version"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approved_at=r.get("approved_at"),
        paid_at=r.get("paid_at"),
    )


def _summary_columns(salary: MonthlySalary) -> tuple:
    # Denormalized copies of the payload totals for SQL-side filtering/reporting.
    return (
        salary.employment_type.value,
        salary.total_gross_pay,
        salary.total_deductions,
        salary.net_pay,
        salary.rate_source.value if salary.rate_source else None,
    )


class MySQLSnapshotRepository(SnapshotRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, user_id: int, year: int, month: int) -> Optional[SalarySnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SNAPSHOT_COLUMNS}
                FROM salary_snapshots
                WHERE user_id=%s AND year=%s AND month=%s
                """,
                (int(user_id), int(year), int(month)),
            )
            r = fetchone(cur)
            return _row_to_snapshot(r) if r else None

    def insert(self, *, salary: MonthlySalary, created_at: datetime) -> SalarySnapshot:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO salary_snapshots(
                        user_id, year, month, status, salary_json,
                        employment_type, total_gross_pay, total_deductions, net_pay, rate_source,
                        version, created_at, updated_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1,%s,%s)
                    """,
                    (
                        salary.user_id,
                        salary.year,
                        salary.month,
                        SnapshotStatus.CALCULATED.value,
                        dumps_json(salary.to_payload()),
                        *_summary_columns(salary),
                        created_at,
                        created_at,
                    ),
                )
                snapshot_id = int(cur.lastrowid)
        except Exception as exc:
            if is_duplicate_key(exc):
                raise DuplicateSnapshot(
                    f"Snapshot already exists for user {salary.user_id} {salary.year}-{salary.month:02d}"
                ) from exc
            raise

        return SalarySnapshot(
            snapshot_id=snapshot_id,
            user_id=salary.user_id,
            year=salary.year,
            month=salary.month,
            status=SnapshotStatus.CALCULATED,
            salary=salary,
            version=1,
            created_at=created_at,
            updated_at=created_at,
        )

    def list(self, flt: SnapshotFilter) -> Sequence[SalarySnapshot]:
        clauses = ["1=1"]
        params: list[object] = []

        if flt.user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(flt.user_id))
        if flt.status is not None:
            clauses.append("status=%s")
            params.append(flt.status.value)
        if flt.date_from is not None:
            clauses.append("(year*100 + month) >= %s")
            params.append(flt.date_from.year * 100 + flt.date_from.month)
        if flt.date_to is not None:
            clauses.append("(year*100 + month) <= %s")
            params.append(flt.date_to.year * 100 + flt.date_to.month)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SNAPSHOT_COLUMNS}
                FROM salary_snapshots
                WHERE {where}
                ORDER BY year DESC, month DESC, snapshot_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(flt.limit), int(flt.offset)]),
            )
            return [_row_to_snapshot(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE salary_snapshots
                SET status=%s,
                    approved_by=COALESCE(%s, approved_by),
                    approved_at=COALESCE(%s, approved_at),
                    paid_at=COALESCE(%s, paid_at),
                    version=version+1,
                    updated_at=%s
                WHERE user_id=%s AND year=%s AND month=%s AND version=%s AND status=%s
                """,
                (
                    to_status.value,
                    approved_by,
                    approved_at,
                    paid_at,
                    updated_at,
                    int(user_id),
                    int(year),
                    int(month),
                    int(expected_version),
                    from_status.value,
                ),
            )
            return cur.rowcount > 0

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
        key = (int(user_id), int(year), int(month))
        with db_cursor(self._conn_factory) as (_, cur):
            # Lock the row so archive + update see the same version.
            cur.execute(
                """
                SELECT version FROM salary_snapshots
                WHERE user_id=%s AND year=%s AND month=%s AND status=%s
                FOR UPDATE
                """,
                (*key, SnapshotStatus.CALCULATED.value),
            )
            r = fetchone(cur)
            if not r or int(r["version"]) != int(expected_version):
                return False

            cur.execute(
                """
                INSERT INTO salary_snapshot_history(user_id, year, month, version, status, salary_json, archived_at)
                SELECT user_id, year, month, version, status, salary_json, %s
                FROM salary_snapshots
                WHERE user_id=%s AND year=%s AND month=%s
                """,
                (updated_at, *key),
            )
            cur.execute(
                """
                UPDATE salary_snapshots
                SET salary_json=%s, employment_type=%s, total_gross_pay=%s, total_deductions=%s,
                    net_pay=%s, rate_source=%s, version=version+1, updated_at=%s
                WHERE user_id=%s AND year=%s AND month=%s AND version=%s
                """,
                (
                    dumps_json(salary.to_payload()),
                    *_summary_columns(salary),
                    updated_at,
                    *key,
                    int(expected_version),
                ),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE salary_snapshots
                SET salary_json=%s, rate_source=%s, version=version+1, updated_at=%s
                WHERE user_id=%s AND year=%s AND month=%s AND version=%s
                """,
                (
                    dumps_json(salary.to_payload()),
                    salary.rate_source.value if salary.rate_source else None,
                    updated_at,
                    int(user_id),
                    int(year),
                    int(month),
                    int(expected_version),
                ),
            )
            return cur.rowcount > 0

    def history(self, *, user_id: int, year: int, month: int) -> Sequence[SnapshotVersion]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, year, month, version, status, salary_json, archived_at
                FROM salary_snapshot_history
                WHERE user_id=%s AND year=%s AND month=%s
                ORDER BY version ASC
                """,
                (int(user_id), int(year), int(month)),
            )
            return [
                SnapshotVersion(
                    user_id=int(r["user_id"]),
                    year=int(r["year"]),
                    month=int(r["month"]),
                    version=int(r["version"]),
                    status=SnapshotStatus(r["status"]),
                    salary=MonthlySalary.from_payload(loads_json(r["salary_json"])),
                    archived_at=r["archived_at"],
                )
                for r in fetchall(cur)
            ]
