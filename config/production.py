import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "payroll_db"),
}

PAYROLL_CONFIG = {
    "standard_daily_hours": int(os.getenv("PAYROLL_STANDARD_DAILY_HOURS", "8")),
    "work_record_page_size": int(os.getenv("PAYROLL_WORK_RECORD_PAGE_SIZE", "500")),
    "work_record_max_pages": int(os.getenv("PAYROLL_WORK_RECORD_MAX_PAGES", "1000")),
    "trend_cache_ttl_seconds": float(os.getenv("PAYROLL_TREND_CACHE_TTL", "60")),
    "trend_snapshots_per_month": int(os.getenv("PAYROLL_TREND_SNAPSHOTS_PER_MONTH", "100")),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
