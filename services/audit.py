import json
import logging

logger = logging.getLogger(__name__)

# Checked in this order; the changed list follows it
AUDITED_FIELDS = ("category", "severity", "summary", "nextSteps", "customerMessage")


def snapshot(incident):
    """Final values of the audited fields for a saved incident."""
    return {
        "category": incident.category,
        "severity": incident.severity,
        "summary": incident.summary,
        "nextSteps": list(incident.next_steps or []),
        "customerMessage": incident.customer_message,
    }


def diff_fields(before, after):
    changed = []
    for field in AUDITED_FIELDS:
        old, new = before.get(field), after.get(field)
        if field == "nextSteps":
            # ordered comparison of the serialized list
            if json.dumps(old) != json.dumps(new):
                changed.append(field)
        elif old != new:
            changed.append(field)
    return changed


def record_audit(store, incident_id, before, after, commit=True):
    changed = diff_fields(before, after)
    return store.create_audit(incident_id, before, after, changed, commit=commit)


def record_suggestion_and_audit(store, incident, suggestion, model, prompt_version):
    """
    Store the raw AI suggestion and the suggestion-vs-final audit.

    Best effort: the incident is already committed, so a failure here is
    rolled back and logged and the caller carries on. Returns the Audit, or
    None when nothing was recorded.
    """
    incident_id = incident.id
    try:
        store.create_ai_suggestion(incident_id, suggestion, model, prompt_version, commit=False)
        audit = record_audit(store, incident_id, suggestion, snapshot(incident), commit=False)
        store.commit()
        return audit
    except Exception:
        store.rollback()
        logger.exception("Failed to create audit trail for incident %s", incident_id)
        return None
