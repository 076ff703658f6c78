from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest
from flask import Flask

from src.payroll_engine.payroll_engine.approvals.service import ApprovalCoordinator
from src.payroll_engine.payroll_engine.engine import PayrollEngine
from src.payroll_engine.payroll_engine.payroll.batch import MonthSnapshotBatch
from src.payroll_engine.payroll_engine.payroll.controller import register
from src.payroll_engine.payroll_engine.payroll.service import SalaryCalculator
from src.payroll_engine.payroll_engine.rates.resolver import RateResolver
from src.payroll_engine.payroll_engine.snapshots.store import SnapshotStore
from src.payroll_engine.payroll_engine.trends.cache import InMemoryTTLCache
from src.payroll_engine.payroll_engine.trends.service import TrendAggregator
from src.payroll_engine.payroll_engine.trends.summary import PayrollSummaryService
from tests.fakes import (
    FakePaySettingRepo,
    FakeRateRepo,
    FakeSnapshotRepo,
    FakeWorkRecordRepo,
    fixed_now,
    make_rates,
    make_setting,
)


@pytest.fixture()
def records():
    repo = FakeWorkRecordRepo()
    repo.add(1, date(2025, 8, 4), 8)
    repo.add(1, date(2025, 8, 5), 8)
    repo.add(2, date(2025, 8, 4), 8)
    return repo


@pytest.fixture()
def client(records):
    store = SnapshotStore(FakeSnapshotRepo(), clock=fixed_now)
    calculator = SalaryCalculator(
        records,
        FakePaySettingRepo([make_setting(1), make_setting(2), make_setting(3)]),
        RateResolver(FakeRateRepo([make_rates()])),
        store,
    )
    engine = PayrollEngine(
        calculator=calculator,
        snapshots=store,
        approvals=ApprovalCoordinator(store),
        trends=TrendAggregator(store, InMemoryTTLCache(60)),
        summary=PayrollSummaryService(store),
        batch=MonthSnapshotBatch(records, calculator, store),
    )
    app = Flask(__name__)
    app.config["TESTING"] = True
    register(app, SimpleNamespace(engine=engine))
    return app.test_client()


def test_salary_endpoint_returns_breakdown(client):
    resp = client.get("/api/payroll/salary?user_id=1&year=2025&month=8")

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["total_gross_pay"] == "200000"
    assert data["total_deductions"] == "23660"
    assert data["net_pay"] == "176340"
    assert data["rate_source"] == "default"
    assert data["warnings"] == []


def test_snapshot_lifecycle_over_http(client):
    created = client.post("/api/payroll/snapshots", json={"user_id": 1, "year": 2025, "month": 8})
    assert created.status_code == 200
    assert created.get_json()["status"] == "calculated"

    approved = client.post(
        "/api/payroll/snapshots/approve",
        json={"user_id": 1, "year": 2025, "month": 8, "approver_id": 9},
    )
    assert approved.status_code == 200

    paid = client.post("/api/payroll/snapshots/paid", json={"user_id": 1, "year": 2025, "month": 8})
    assert paid.status_code == 200
    assert paid.get_json()["status"] == "paid"

    listed = client.get("/api/payroll/snapshots?status=paid")
    assert listed.get_json()["count"] == 1


def test_bulk_approve_reports_skipped_entries(client):
    client.post("/api/payroll/snapshots", json={"user_id": 1, "year": 2025, "month": 8})
    client.post("/api/payroll/snapshots", json={"user_id": 2, "year": 2025, "month": 8})

    resp = client.post(
        "/api/payroll/snapshots/bulk-approve",
        json={
            "approver_id": 9,
            "entries": [
                {"user_id": 1, "year": 2025, "month": 8},
                {"year": 2025, "month": 8},
                {"user_id": 2, "year": 2025, "month": 8},
            ],
        },
    )

    data = resp.get_json()
    assert resp.status_code == 200
    assert data["approved_count"] == 2
    assert len(data["skipped"]) == 1


def test_bulk_approve_skips_non_finite_year(client):
    client.post("/api/payroll/snapshots", json={"user_id": 1, "year": 2025, "month": 8})
    client.post("/api/payroll/snapshots", json={"user_id": 2, "year": 2025, "month": 8})
    body = (
        '{"approver_id": 9, "entries": ['
        '{"user_id": 1, "year": 2025, "month": 8}, '
        '{"user_id": 1, "year": Infinity, "month": 8}, '
        '{"user_id": 2, "year": 2025, "month": 8}]}'
    )

    resp = client.post("/api/payroll/snapshots/bulk-approve", data=body, content_type="application/json")

    data = resp.get_json()
    assert resp.status_code == 200
    assert data["approved_count"] == 2
    assert len(data["skipped"]) == 1
    assert data["skipped"][0]["year"] == "inf"


def test_month_batch_creates_snapshots_and_reports_failures(client, records):
    records.add(4, date(2025, 8, 4), 8)

    resp = client.post("/api/payroll/snapshots/batch", json={"year": 2025, "month": 8})

    data = resp.get_json()
    assert resp.status_code == 200
    assert data["created_count"] == 2
    assert [f["user_id"] for f in data["failed"]] == [4]
    assert client.get("/api/payroll/snapshots").get_json()["count"] == 2


def test_month_batch_rejects_bad_period(client):
    resp = client.post("/api/payroll/snapshots/batch", json={"year": 2025, "month": 13})
    assert resp.status_code == 400


def test_trend_and_summary_endpoints(client):
    client.post("/api/payroll/snapshots", json={"user_id": 1, "year": 2025, "month": 8})

    trend = client.get("/api/payroll/trend?months=3").get_json()
    assert trend["items"] == [
        {
            "month": "2025-08",
            "count": 1,
            "gross_sum": "200000",
            "deductions_sum": "23660",
            "net_sum": "176340",
        }
    ]

    summary = client.get("/api/payroll/summary?year=2025&month=8").get_json()
    assert summary["snapshot_count"] == 1
    assert summary["status_counts"]["calculated"] == 1


@pytest.mark.parametrize(
    "url, expected",
    [
        ("/api/payroll/salary?user_id=1&year=2025&month=13", 400),
        ("/api/payroll/salary?user_id=3&year=2025&month=8", 404),
        ("/api/payroll/trend?months=0", 400),
        ("/api/payroll/snapshots?date_from=yesterday", 400),
        ("/api/payroll/snapshots?status=archived", 400),
    ],
)
def test_query_errors_map_to_status_codes(client, url, expected):
    resp = client.get(url)
    assert resp.status_code == expected
    assert "error" in resp.get_json()


def test_approving_paid_snapshot_is_a_conflict(client):
    key = {"user_id": 1, "year": 2025, "month": 8}
    client.post("/api/payroll/snapshots", json=key)
    client.post("/api/payroll/snapshots/approve", json={**key, "approver_id": 9})
    client.post("/api/payroll/snapshots/paid", json=key)

    resp = client.post("/api/payroll/snapshots/approve", json={**key, "approver_id": 9})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "InvalidTransition"


def test_missing_snapshot_is_not_found(client):
    resp = client.post(
        "/api/payroll/snapshots/approve",
        json={"user_id": 1, "year": 2025, "month": 8, "approver_id": 9},
    )
    assert resp.status_code == 404


def test_negative_hours_are_unprocessable(client, records):
    records.add(1, date(2025, 8, 6), -1)
    resp = client.get("/api/payroll/salary?user_id=1&year=2025&month=8")
    assert resp.status_code == 422


def test_non_json_body_is_rejected(client):
    resp = client.post("/api/payroll/snapshots", data="user_id=1")
    assert resp.status_code == 400
