from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import EmploymentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, loads_json
from ..rates.model import RateSet
from .model import WorkerPaySetting
from .repository import WorkerPaySettingRepository


class MySQLWorkerPaySettingRepository(WorkerPaySettingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_effective(self, user_id: int, as_of: date) -> Optional[WorkerPaySetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, employment_type, daily_rate, hourly_rate,
                       monthly_allowance, custom_rates, effective_from
                FROM worker_pay_settings
                WHERE user_id=%s AND effective_from<=%s AND is_active=1
                ORDER BY effective_from DESC
                LIMIT 1
                """,
                (int(user_id), as_of),
            )
            r = fetchone(cur)
            if not r:
                return None

        employment_type = EmploymentType(r["employment_type"])
        custom_rates = None
        if r.get("custom_rates"):
            # Overrides are stored without type/date; the setting supplies both.
            raw = loads_json(r["custom_rates"])
            custom_rates = RateSet.from_dict(
                {
                    **raw,
                    "employment_type": employment_type.value,
                    "effective_from": r["effective_from"],
                }
            )

        return WorkerPaySetting(
            user_id=int(r["user_id"]),
            employment_type=employment_type,
            daily_rate=Decimal(str(r["daily_rate"])),
            hourly_rate=Decimal(str(r["hourly_rate"])) if r.get("hourly_rate") is not None else None,
            monthly_allowance=Decimal(str(r.get("monthly_allowance") or 0)),
            custom_rates=custom_rates,
            effective_from=r["effective_from"],
        )
