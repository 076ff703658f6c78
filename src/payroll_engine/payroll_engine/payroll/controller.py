from __future__ import annotations

import logging
import math
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..approvals.model import BatchResult
from ..common.datetime_utils import parse_iso_date
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import SnapshotStatus
from ..core.exceptions import (
    ComputationError,
    ConflictError,
    DomainError,
    NotFoundError,
    OperationCancelled,
    ValidationError,
)
from ..container import Container
from ..snapshots.model import SalarySnapshot, SnapshotFilter
from .model import MonthlySalary

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _status_for(error: DomainError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConflictError):
        return 409
    if isinstance(error, ComputationError):
        return 422
    if isinstance(error, OperationCancelled):
        return 503
    return 400


def salary_to_json(salary: MonthlySalary) -> dict[str, Any]:
    data = salary.to_payload()
    data["warnings"] = list(salary.warnings)
    return data


def snapshot_to_json(snapshot: SalarySnapshot) -> dict[str, Any]:
    return {
        "snapshot_id": snapshot.snapshot_id,
        "user_id": snapshot.user_id,
        "year": snapshot.year,
        "month": snapshot.month,
        "status": snapshot.status.value,
        "version": snapshot.version,
        "salary": snapshot.salary.to_payload(),
        "approved_by": snapshot.approved_by,
        "approved_at": snapshot.approved_at.isoformat() if snapshot.approved_at else None,
        "paid_at": snapshot.paid_at.isoformat() if snapshot.paid_at else None,
        "created_at": snapshot.created_at.isoformat(),
        "updated_at": snapshot.updated_at.isoformat(),
    }


def _echo(value: Any) -> Any:
    # Rejected input is echoed back; non-finite floats are not valid JSON.
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


def _failed_entries(result: BatchResult) -> list[dict[str, Any]]:
    return [
        {
            "user_id": _echo(o.entry.user_id),
            "year": _echo(o.entry.year),
            "month": _echo(o.entry.month),
            "error": o.error,
        }
        for o in result.skipped
    ]


def register(app: Flask, container: Container) -> None:
    engine = container.engine

    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        status = _status_for(error)
        if status >= 500:
            logger.warning("Payroll request aborted: %s", error)
        return jsonify({"error": type(error).__name__, "message": str(error)}), status

    def _body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _flag(value: Optional[str]) -> bool:
        return (value or "").strip().lower() in _TRUE_VALUES

    def _optional_int(value: Optional[str], field_name: str) -> Optional[int]:
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} must be an integer")

    def _optional_date(value: Optional[str], field_name: str):
        if not value:
            return None
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValidationError(f"{field_name} must be YYYY-MM-DD")

    @app.route("/api/payroll/salary", methods=["GET"], endpoint="payroll_salary")
    def salary():
        args = request.args
        result = engine.calculate_monthly_salary(
            user_id=args.get("user_id"),
            year=args.get("year"),
            month=args.get("month"),
            site_id=_optional_int(args.get("site_id"), "site_id"),
            force_recalculate=_flag(args.get("force")),
            refresh_rates=_flag(args.get("refresh_rates")),
        )
        return jsonify(salary_to_json(result))

    @app.route("/api/payroll/snapshots", methods=["POST"], endpoint="payroll_create_snapshot")
    def create_snapshot():
        data = _body()
        snapshot = engine.get_or_create_snapshot(
            user_id=data.get("user_id"),
            year=data.get("year"),
            month=data.get("month"),
        )
        return jsonify(snapshot_to_json(snapshot))

    @app.route("/api/payroll/snapshots", methods=["GET"], endpoint="payroll_list_snapshots")
    def list_snapshots():
        args = request.args
        status = args.get("status")
        try:
            status_value = SnapshotStatus(status) if status else None
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")

        flt = SnapshotFilter(
            limit=_optional_int(args.get("limit"), "limit") or DEFAULT_LIST_LIMIT,
            offset=_optional_int(args.get("offset"), "offset") or 0,
            user_id=_optional_int(args.get("user_id"), "user_id"),
            status=status_value,
            date_from=_optional_date(args.get("date_from"), "date_from"),
            date_to=_optional_date(args.get("date_to"), "date_to"),
        )
        snapshots = engine.list_snapshots(flt)
        return jsonify({"items": [snapshot_to_json(s) for s in snapshots], "count": len(snapshots)})

    @app.route("/api/payroll/snapshots/approve", methods=["POST"], endpoint="payroll_approve_snapshot")
    def approve_snapshot():
        data = _body()
        engine.approve_snapshot(
            user_id=data.get("user_id"),
            year=data.get("year"),
            month=data.get("month"),
            approver_id=data.get("approver_id"),
        )
        return jsonify({"approved": True})

    @app.route("/api/payroll/snapshots/bulk-approve", methods=["POST"], endpoint="payroll_bulk_approve")
    def bulk_approve():
        data = _body()
        entries = data.get("entries")
        if not isinstance(entries, list):
            raise ValidationError("entries must be a list")

        result = engine.bulk_approve_snapshots(entries, approver_id=data.get("approver_id"))
        return jsonify({"approved_count": result.approved_count, "skipped": _failed_entries(result)})

    @app.route("/api/payroll/snapshots/batch", methods=["POST"], endpoint="payroll_month_batch")
    def month_batch():
        data = _body()
        result = engine.create_month_snapshots(
            year=data.get("year"),
            month=data.get("month"),
            site_id=data.get("site_id"),
        )
        return jsonify({"created_count": len(result.succeeded), "failed": _failed_entries(result)})

    @app.route("/api/payroll/snapshots/paid", methods=["POST"], endpoint="payroll_mark_paid")
    def mark_paid():
        data = _body()
        snapshot = engine.mark_snapshot_paid(
            user_id=data.get("user_id"),
            year=data.get("year"),
            month=data.get("month"),
        )
        return jsonify(snapshot_to_json(snapshot))

    @app.route("/api/payroll/trend", methods=["GET"], endpoint="payroll_trend")
    def trend():
        months = _optional_int(request.args.get("months"), "months")
        if months is None:
            months = 3
        entries = engine.get_trend(months)
        return jsonify({"months": months, "items": [e.as_dict() for e in entries]})

    @app.route("/api/payroll/summary", methods=["GET"], endpoint="payroll_summary")
    def summary():
        result = engine.monthly_summary(year=request.args.get("year"), month=request.args.get("month"))
        return jsonify(
            {
                "month": result.month_label,
                "snapshot_count": result.snapshot_count,
                "status_counts": dict(result.status_counts),
                "by_employment_type": [
                    {
                        "employment_type": g.employment_type.value,
                        "worker_count": g.worker_count,
                        "total_gross_pay": str(g.total_gross_pay),
                        "total_deductions": str(g.total_deductions),
                        "total_net_pay": str(g.total_net_pay),
                        "total_hours": str(g.total_hours),
                    }
                    for g in result.by_employment_type
                ],
            }
        )
