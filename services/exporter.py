"""
Incident export (CSV, Excel, JSON bundle) and bulk JSON import.
"""
import csv
import json
import logging
from io import BytesIO, StringIO

import pandas as pd
from pydantic import ValidationError

from models.schemas import IncidentCreate, ImportBundle

logger = logging.getLogger(__name__)

CSV_HEADERS = ["id", "created_at", "address", "category", "severity", "summary", "next_steps", "customer_message"]
STEP_SEPARATOR = " | "
# incidents.id is a 32-bit INTEGER column
MAX_INCIDENT_ID = 2 ** 31 - 1


def _row(incident):
    return [
        incident.id,
        incident.created_at.isoformat() if incident.created_at else "",
        incident.address or "",
        incident.category,
        incident.severity,
        incident.summary,
        STEP_SEPARATOR.join(incident.next_steps or []),
        incident.customer_message,
    ]


def incidents_to_csv(incidents):
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for incident in incidents:
        writer.writerow(_row(incident))
    return buffer.getvalue()


def incidents_to_excel(incidents):
    df = pd.DataFrame([_row(i) for i in incidents], columns=CSV_HEADERS)
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Incidents")
    output.seek(0)
    return output.getvalue()


def incident_bundle(store, incident):
    return {
        "incident": incident.to_dict(),
        "aiSuggestions": [s.to_dict() for s in store.suggestions_for(incident.id)],
        "audits": [a.to_dict() for a in store.audits_for(incident.id)],
    }


def _decoded(item, key, legacy_key, default=None):
    # Older exports carry JSON-encoded text columns (rawJson, beforeJson, ...)
    if key in item:
        return item[key]
    if legacy_key in item:
        value = item[legacy_key]
        return json.loads(value) if isinstance(value, str) else value
    if default is not None:
        return default
    raise KeyError(key)


def _suggestion_fields(item):
    return {
        "raw": _decoded(item, "raw", "rawJson"),
        "model": item["model"],
        "promptVersion": item["promptVersion"],
    }


def _audit_fields(item):
    return {
        "before": _decoded(item, "before", "beforeJson"),
        "after": _decoded(item, "after", "afterJson"),
        "changedFields": _decoded(item, "changedFields", "changedFieldsJson", default=[]),
    }


def _existing_id(incident):
    """The exported incident id, or None; ValueError when no stored row could carry it."""
    value = incident.get("id")
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid incident id: {value!r}")
    incident_id = int(value)
    if not 1 <= incident_id <= MAX_INCIDENT_ID:
        raise ValueError(f"incident id out of range: {incident_id}")
    return incident_id


def parse_import_payload(payload):
    """Bundles to import; a single exported bundle is accepted as a list of one."""
    if isinstance(payload, dict) and "incident" in payload:
        return [payload]
    if isinstance(payload, list):
        return payload
    raise ValueError("Expected array of incidents")


def import_bundles(store, bundles):
    inserted = skipped = 0

    for item in bundles:
        try:
            bundle = ImportBundle.model_validate(item)
            existing_id = _existing_id(bundle.incident)
            if existing_id is not None and store.get_incident(existing_id) is not None:
                skipped += 1
                continue

            fields = IncidentCreate.model_validate(bundle.incident).incident_fields()
            suggestions = [_suggestion_fields(s) for s in bundle.aiSuggestions]
            audits = [_audit_fields(a) for a in bundle.audits]
        except (ValidationError, ValueError, KeyError, TypeError) as e:
            logger.warning("Skipping invalid import item: %s", e)
            skipped += 1
            continue

        try:
            store.import_bundle(fields, suggestions, audits)
            inserted += 1
        except Exception:
            store.rollback()
            logger.exception("Failed to import incident")
            skipped += 1

    return {
        "message": "Import completed",
        "inserted": inserted,
        "skipped": skipped,
        "total": len(bundles),
    }
