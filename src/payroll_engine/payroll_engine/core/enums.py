from __future__ import annotations

from enum import Enum


class EmploymentType(str, Enum):
    """Worker classification that decides the pay-basis arithmetic."""

    REGULAR_EMPLOYEE = "regular_employee"
    FREELANCER = "freelancer"
    DAILY_WORKER = "daily_worker"


class PayBasis(str, Enum):
    DAILY = "daily"
    HOURLY = "hourly"


class RateSource(str, Enum):
    """Where the rate set attached to a salary came from."""

    DEFAULT = "default"
    CUSTOM = "custom"
    SNAPSHOT = "snapshot"


class SnapshotStatus(str, Enum):
    """Snapshot lifecycle: calculated -> approved -> paid. Never backwards."""

    CALCULATED = "calculated"
    APPROVED = "approved"
    PAID = "paid"
