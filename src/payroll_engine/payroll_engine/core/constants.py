"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import EmploymentType, PayBasis

STANDARD_DAILY_HOURS = 8

MIN_YEAR = 2000
MAX_YEAR = 2100

WORK_RECORD_PAGE_SIZE = 500
# Safety guard against runaway cursors.
WORK_RECORD_MAX_PAGES = 1000

TREND_CACHE_TTL_SECONDS = 60
TREND_SNAPSHOTS_PER_MONTH = 100
TREND_MAX_MONTHS = 120

DEFAULT_LIST_LIMIT = 200

PAY_BASIS_BY_EMPLOYMENT_TYPE = {
    EmploymentType.REGULAR_EMPLOYEE: PayBasis.DAILY,
    EmploymentType.DAILY_WORKER: PayBasis.DAILY,
    EmploymentType.FREELANCER: PayBasis.HOURLY,
}
