"""Example: calling the payroll engine directly (no Flask).

Controllers are a thin layer; the same operations are available from the
container for batch jobs.
"""

import importlib

from config import get_settings_module

from src.payroll_engine.payroll_engine.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        payroll_config=getattr(settings, "PAYROLL_CONFIG", None),
    )
    engine = container.engine

    salary = engine.calculate_monthly_salary(user_id=1, year=2025, month=8)
    print(salary.to_payload())

    snapshot = engine.get_or_create_snapshot(user_id=1, year=2025, month=8)
    print(snapshot.status.value, snapshot.salary.net_pay)

    for entry in engine.get_trend(3):
        print(entry.as_dict())


if __name__ == "__main__":
    main()
