# resources/incidents.py
from flask import request, Response
from flask_restful import Resource, reqparse
from pydantic import ValidationError

from models.schemas import IncidentCreate
from services.audit import record_suggestion_and_audit
from services.classifier import suggestion_model
from services.exporter import (
    incidents_to_csv, incidents_to_excel, incident_bundle, parse_import_payload, import_bundles
)
from .utils import error, validation_message

SORT_KEYS = ("created_at", "updated_at")
SORT_DIRECTIONS = ("asc", "desc")


class IncidentListResource(Resource):
    def __init__(self, store, classifier, prompt_version):
        self.store = store
        self.classifier = classifier
        self.prompt_version = prompt_version

    def get(self):
        parser = reqparse.RequestParser()
        parser.add_argument("severity", type=str, location="args")
        parser.add_argument("category", type=str, location="args")
        parser.add_argument("q", type=str, location="args")
        parser.add_argument("sort", type=str, location="args")
        parser.add_argument("dir", type=str, location="args")
        args = parser.parse_args()

        # unknown sort keys fall back to newest-first
        sort = args["sort"] if args["sort"] in SORT_KEYS else "created_at"
        direction = args["dir"] if args["dir"] in SORT_DIRECTIONS else "desc"
        search = (args["q"] or "").strip() or None

        incidents = self.store.list_incidents(
            severity=args["severity"] or None,
            category=args["category"] or None,
            search=search,
            sort=sort,
            direction=direction,
        )
        return [inc.to_dict() for inc in incidents], 200

    def post(self):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return error("JSON object body required")

        try:
            payload = IncidentCreate.model_validate(data)
        except ValidationError as e:
            return error(validation_message(e))

        incident = self.store.create_incident(payload.incident_fields())

        if payload.ai_suggestion_raw is not None:
            record_suggestion_and_audit(
                self.store,
                incident,
                payload.ai_suggestion_raw,
                suggestion_model(self.classifier, payload.ai_mode),
                self.prompt_version,
            )

        return incident.to_dict(), 201


class IncidentResource(Resource):
    def __init__(self, store):
        self.store = store

    def get(self, incident_id):
        incident = self.store.get_incident(incident_id)
        if not incident:
            return error("Incident not found", 404)
        return incident_bundle(self.store, incident), 200


class ExportIncidentsCSVResource(Resource):
    def __init__(self, store):
        self.store = store

    def get(self):
        content = incidents_to_csv(self.store.list_incidents())
        return Response(
            content,
            mimetype="text/csv; charset=utf-8",
            headers={"Content-Disposition": 'attachment; filename="incidents.csv"'}
        )


class ExportIncidentsExcelResource(Resource):
    def __init__(self, store):
        self.store = store

    def get(self):
        content = incidents_to_excel(self.store.list_incidents())
        return Response(
            content,
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": 'attachment; filename="incidents.xlsx"'}
        )


class ExportIncidentJSONResource(Resource):
    def __init__(self, store):
        self.store = store

    def get(self, incident_id):
        incident = self.store.get_incident(incident_id)
        if not incident:
            return error("Incident not found", 404)
        bundle = incident_bundle(self.store, incident)
        return bundle, 200, {"Content-Disposition": f'attachment; filename="incident-{incident_id}.json"'}


class ImportIncidentsResource(Resource):
    def __init__(self, store):
        self.store = store

    def post(self):
        try:
            bundles = parse_import_payload(request.get_json(silent=True))
        except ValueError as e:
            return error(str(e))
        return import_bundles(self.store, bundles), 200
