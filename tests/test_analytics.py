"""
Tests for windowed incident analytics
"""
from datetime import datetime

from models.database import db
from services.analytics import get_analytics


def _incident(store, created_at, severity="Medium", category="Outage"):
    incident = store.create_incident({
        "description": "desc",
        "category": category,
        "severity": severity,
        "summary": "summary",
        "next_steps": ["step"],
        "customer_message": "message",
    })
    incident.created_at = created_at
    store.commit()
    return incident.id


WINDOW = (datetime(2026, 10, 1), datetime(2026, 10, 31, 23, 59, 59))


def test_empty_window(store):
    stats = get_analytics(db.session, *WINDOW)

    assert stats["totals"] == {"incidents": 0, "audited": 0}
    assert stats["avgChangedFields"] == 0
    assert stats["byWeek"] == []
    assert all(row["count"] == 0 for row in stats["bySeverity"])
    assert [row["severity"] for row in stats["bySeverity"]] == ["High", "Medium", "Low"]
    assert [row["category"] for row in stats["byCategory"]] == [
        "Leak", "Odor", "Outage", "Billing", "Meter", "Other"
    ]


def test_counts_only_incidents_in_window(store):
    _incident(store, datetime(2026, 10, 5), severity="High", category="Leak")
    _incident(store, datetime(2026, 10, 14), severity="High", category="Leak")
    _incident(store, datetime(2026, 10, 15), severity="Low", category="Billing")
    _incident(store, datetime(2026, 9, 20), severity="High", category="Leak")

    stats = get_analytics(db.session, *WINDOW)

    assert stats["totals"]["incidents"] == 3
    severity = {row["severity"]: row["count"] for row in stats["bySeverity"]}
    assert severity == {"High": 2, "Medium": 0, "Low": 1}
    category = {row["category"]: row["count"] for row in stats["byCategory"]}
    assert category["Leak"] == 2
    assert category["Billing"] == 1
    assert category["Odor"] == 0


def test_window_bounds_are_inclusive(store):
    start, end = WINDOW
    _incident(store, start)
    _incident(store, end)

    assert get_analytics(db.session, start, end)["totals"]["incidents"] == 2


def test_weeks_start_on_monday_ascending(store):
    _incident(store, datetime(2026, 10, 17, 9))   # Saturday
    _incident(store, datetime(2026, 10, 12, 0))   # Monday
    _incident(store, datetime(2026, 10, 6, 15))   # Tuesday

    stats = get_analytics(db.session, *WINDOW)

    assert stats["byWeek"] == [
        {"weekStart": "2026-10-05", "count": 1},
        {"weekStart": "2026-10-12", "count": 2},
    ]


def test_audited_and_average_changed_fields(store):
    first = _incident(store, datetime(2026, 10, 3))
    second = _incident(store, datetime(2026, 10, 4))
    _incident(store, datetime(2026, 10, 5))
    outside = _incident(store, datetime(2026, 9, 1))

    store.create_audit(first, {}, {}, ["severity"])
    store.create_audit(first, {}, {}, ["category", "summary", "nextSteps"])
    store.create_audit(second, {}, {}, [])
    store.create_audit(outside, {}, {}, ["severity", "summary"])

    stats = get_analytics(db.session, *WINDOW)

    assert stats["totals"]["audited"] == 2
    assert stats["avgChangedFields"] == round(4 / 3, 2)


def test_stats_endpoint_echoes_window(client, store):
    _incident(store, datetime(2026, 10, 5), severity="High")

    resp = client.get("/api/stats?from=2026-10-01T00:00:00Z&to=2026-10-31T00:00:00Z")

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["window"] == {"from": "2026-10-01T00:00:00", "to": "2026-10-31T00:00:00"}
    assert data["totals"]["incidents"] == 1


def test_stats_endpoint_rejects_bad_dates(client):
    resp = client.get("/api/stats?from=yesterday-ish")

    assert resp.status_code == 400
