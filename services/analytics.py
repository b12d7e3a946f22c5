import pandas as pd

from models.database import Incident, Audit, CATEGORIES, SEVERITIES


def _window(query, start, end):
    return query.filter(Incident.created_at >= start, Incident.created_at <= end)


def _weekly_counts(created):
    if created.empty:
        return []
    # W-SUN periods run Monday to Sunday
    week_starts = pd.to_datetime(created).dt.to_period("W-SUN").dt.start_time
    counts = week_starts.value_counts().sort_index()
    return [
        {"weekStart": week.date().isoformat(), "count": int(count)}
        for week, count in counts.items()
    ]


def get_analytics(session, start, end):
    """
    Incident counts and audit statistics for incidents created in
    [start, end], both bounds inclusive.
    """
    rows = _window(
        session.query(Incident.id, Incident.severity, Incident.category, Incident.created_at),
        start, end,
    ).all()
    incidents = pd.DataFrame([tuple(r) for r in rows], columns=["id", "severity", "category", "created_at"])

    audit_rows = _window(
        session.query(Audit.incident_id, Audit.changed_fields)
        .join(Incident, Audit.incident_id == Incident.id),
        start, end,
    ).all()
    audits = pd.DataFrame([tuple(r) for r in audit_rows], columns=["incident_id", "changed_fields"])

    severity_counts = incidents["severity"].value_counts()
    category_counts = incidents["category"].value_counts()

    if audits.empty:
        avg_changed = 0
    else:
        avg_changed = round(float(audits["changed_fields"].map(lambda f: len(f or [])).mean()), 2)

    return {
        "totals": {
            "incidents": int(len(incidents)),
            "audited": int(audits["incident_id"].nunique()),
        },
        "bySeverity": [
            {"severity": s, "count": int(severity_counts.get(s, 0))} for s in SEVERITIES
        ],
        "byCategory": [
            {"category": c, "count": int(category_counts.get(c, 0))} for c in CATEGORIES
        ],
        "byWeek": _weekly_counts(incidents["created_at"]),
        "avgChangedFields": avg_changed,
    }
