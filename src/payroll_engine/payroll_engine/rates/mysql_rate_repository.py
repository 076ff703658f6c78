from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.enums import EmploymentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import RateSet
from .repository import RateConfigRepository


class MySQLRateConfigRepository(RateConfigRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active_rates(self, employment_type: EmploymentType, as_of: date) -> Optional[RateSet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employment_type, income_tax_rate, pension_rate,
                       health_insurance_rate, employment_insurance_rate, effective_from
                FROM employment_rate_sets
                WHERE employment_type=%s AND effective_from<=%s
                ORDER BY effective_from DESC
                LIMIT 1
                """,
                (employment_type.value, as_of),
            )
            r = fetchone(cur)
            if not r:
                return None
            return RateSet(
                employment_type=EmploymentType(r["employment_type"]),
                income_tax_rate=r["income_tax_rate"],
                pension_rate=r["pension_rate"],
                health_insurance_rate=r["health_insurance_rate"],
                employment_insurance_rate=r["employment_insurance_rate"],
                effective_from=r["effective_from"],
            )
