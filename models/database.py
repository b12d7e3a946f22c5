from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

CATEGORIES = ("Leak", "Odor", "Outage", "Billing", "Meter", "Other")
SEVERITIES = ("High", "Medium", "Low")
REPAIR_STATUSES = ("Open", "InProgress", "Closed")

# Shape version of the JSON payloads stored on suggestions and audits
SCHEMA_VERSION = 1


def utcnow():
    """Naive UTC timestamp, the form every column in this schema stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


# Incident model. Append-only: rows are created once and never edited.
class Incident(db.Model):
    __tablename__ = 'incidents'

    id = db.Column(db.Integer, primary_key=True)
    address = db.Column(db.Text)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), nullable=False, index=True)
    severity = db.Column(db.String(10), nullable=False, index=True)
    summary = db.Column(db.Text, nullable=False)
    next_steps = db.Column(db.JSON, nullable=False, default=list)
    customer_message = db.Column(db.Text, nullable=False)
    lat = db.Column(db.Float)
    lng = db.Column(db.Float)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    ai_suggestions = db.relationship('AiSuggestion', backref='incident', lazy=True)
    audits = db.relationship('Audit', backref='incident', lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "address": self.address,
            "description": self.description,
            "category": self.category,
            "severity": self.severity,
            "summary": self.summary,
            "nextSteps": list(self.next_steps or []),
            "customerMessage": self.customer_message,
            "lat": self.lat,
            "lng": self.lng,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Incident {self.id} {self.category}/{self.severity}>"


# Raw classification payload as the client received it
class AiSuggestion(db.Model):
    __tablename__ = 'ai_suggestions'

    id = db.Column(db.Integer, primary_key=True)
    incident_id = db.Column(db.Integer, db.ForeignKey('incidents.id'), nullable=False, index=True)
    raw = db.Column(db.JSON, nullable=False)
    model = db.Column(db.String(100), nullable=False)
    prompt_version = db.Column(db.String(20), nullable=False)
    schema_version = db.Column(db.Integer, nullable=False, default=SCHEMA_VERSION)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "incidentId": self.incident_id,
            "raw": self.raw,
            "model": self.model,
            "promptVersion": self.prompt_version,
            "schemaVersion": self.schema_version,
            "createdAt": _iso(self.created_at),
        }


# Before/after snapshot of an AI suggestion versus the saved incident
class Audit(db.Model):
    __tablename__ = 'audits'

    id = db.Column(db.Integer, primary_key=True)
    incident_id = db.Column(db.Integer, db.ForeignKey('incidents.id'), nullable=False, index=True)
    before = db.Column(db.JSON, nullable=False)
    after = db.Column(db.JSON, nullable=False)
    changed_fields = db.Column(db.JSON, nullable=False, default=list)
    schema_version = db.Column(db.Integer, nullable=False, default=SCHEMA_VERSION)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "incidentId": self.incident_id,
            "before": self.before,
            "after": self.after,
            "changedFields": list(self.changed_fields or []),
            "schemaVersion": self.schema_version,
            "createdAt": _iso(self.created_at),
        }


# Risk map feeder tables. Read-only inputs for zone scoring.
class RiskIncident(db.Model):
    __tablename__ = 'risk_incidents'

    id = db.Column(db.Integer, primary_key=True)
    lat = db.Column(db.Float, nullable=False)
    lng = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(50), nullable=False)
    severity = db.Column(db.String(10), nullable=False)
    occurred_at = db.Column(db.DateTime, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "category": self.category,
            "severity": self.severity,
            "occurredAt": _iso(self.occurred_at),
        }


class RiskRepair(db.Model):
    __tablename__ = 'risk_repairs'

    id = db.Column(db.Integer, primary_key=True)
    lat = db.Column(db.Float, nullable=False)
    lng = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), nullable=False, index=True)
    opened_at = db.Column(db.DateTime, nullable=False)
    closed_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "status": self.status,
            "openedAt": _iso(self.opened_at),
            "closedAt": _iso(self.closed_at),
        }


class RiskPipeline(db.Model):
    __tablename__ = 'risk_pipelines'

    id = db.Column(db.Integer, primary_key=True)
    path_geojson = db.Column(db.JSON, nullable=False)  # LineString, [lng, lat] vertices
    install_year = db.Column(db.Integer, nullable=False)
    material = db.Column(db.String(50), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "pathGeojson": self.path_geojson,
            "installYear": self.install_year,
            "material": self.material,
        }


class RiskWeather(db.Model):
    __tablename__ = 'risk_weather'

    id = db.Column(db.Integer, primary_key=True)
    lat = db.Column(db.Float, nullable=False)
    lng = db.Column(db.Float, nullable=False)
    temp_c = db.Column(db.Float)
    wind_kph = db.Column(db.Float)
    precip_mm = db.Column(db.Float)
    observed_at = db.Column(db.DateTime, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "tempC": self.temp_c,
            "windKph": self.wind_kph,
            "precipMm": self.precip_mm,
            "observedAt": _iso(self.observed_at),
        }


# Database initiator
def init_db(app):
    db.init_app(app)
    with app.app_context():
        db.create_all()
