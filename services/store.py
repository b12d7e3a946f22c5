from sqlalchemy import or_

from models.database import Incident, AiSuggestion, Audit, utcnow


SORT_COLUMNS = {
    "created_at": Incident.created_at,
    "updated_at": Incident.updated_at,
}


class IncidentStore:
    """
    Persistence for incidents and their AI suggestions and audits.

    Constructed once by the app factory around the Flask-SQLAlchemy session
    and handed to the resources. Incidents are append-only; there is no
    update or delete.
    """

    def __init__(self, session):
        self.session = session

    # Incidents

    def _new_incident(self, fields):
        now = utcnow()
        return Incident(
            address=fields.get("address") or None,
            description=fields["description"],
            category=fields["category"],
            severity=fields["severity"],
            summary=fields["summary"],
            next_steps=list(fields.get("next_steps") or []),
            customer_message=fields["customer_message"],
            lat=fields.get("lat"),
            lng=fields.get("lng"),
            created_at=now,
            updated_at=now,
        )

    def create_incident(self, fields):
        incident = self._new_incident(fields)
        self.session.add(incident)
        self.session.commit()
        return incident

    def get_incident(self, incident_id):
        return self.session.get(Incident, incident_id)

    def list_incidents(self, severity=None, category=None, search=None,
                       sort="created_at", direction="desc"):
        query = self.session.query(Incident)

        if severity:
            query = query.filter(Incident.severity == severity)
        if category:
            query = query.filter(Incident.category == category)
        if search:
            term = f"%{search}%"
            query = query.filter(
                or_(
                    Incident.address.ilike(term),
                    Incident.description.ilike(term),
                    Incident.summary.ilike(term),
                )
            )

        column = SORT_COLUMNS.get(sort, Incident.created_at)
        if direction == "asc":
            query = query.order_by(column.asc(), Incident.id.asc())
        else:
            query = query.order_by(column.desc(), Incident.id.desc())
        return query.all()

    # AI suggestions

    def create_ai_suggestion(self, incident_id, raw, model, prompt_version, commit=True):
        suggestion = AiSuggestion(
            incident_id=incident_id,
            raw=raw,
            model=model,
            prompt_version=prompt_version,
        )
        self.session.add(suggestion)
        if commit:
            self.session.commit()
        return suggestion

    def suggestions_for(self, incident_id):
        return (
            self.session.query(AiSuggestion)
            .filter(AiSuggestion.incident_id == incident_id)
            .order_by(AiSuggestion.created_at.desc(), AiSuggestion.id.desc())
            .all()
        )

    # Audits

    def create_audit(self, incident_id, before, after, changed_fields, commit=True):
        audit = Audit(
            incident_id=incident_id,
            before=before,
            after=after,
            changed_fields=list(changed_fields),
        )
        self.session.add(audit)
        if commit:
            self.session.commit()
        return audit

    def audits_for(self, incident_id):
        return (
            self.session.query(Audit)
            .filter(Audit.incident_id == incident_id)
            .order_by(Audit.created_at.desc(), Audit.id.desc())
            .all()
        )

    # Import

    def import_bundle(self, incident_fields, suggestions, audits):
        """Insert one exported incident with its children in a single commit."""
        incident = self._new_incident(incident_fields)
        self.session.add(incident)
        # assigns incident.id without committing
        self.session.flush()

        for s in suggestions:
            self.create_ai_suggestion(
                incident.id, s["raw"], s["model"], s["promptVersion"], commit=False)
        for a in audits:
            self.create_audit(
                incident.id, a["before"], a["after"], a.get("changedFields") or [], commit=False)

        self.session.commit()
        return incident

    def rollback(self):
        self.session.rollback()

    def commit(self):
        self.session.commit()
