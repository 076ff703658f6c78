import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "payroll_test"),
}

PAYROLL_CONFIG = {
    "standard_daily_hours": 8,
    "work_record_page_size": 50,
    "work_record_max_pages": 20,
    "trend_cache_ttl_seconds": 60,
    "trend_snapshots_per_month": 100,
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
