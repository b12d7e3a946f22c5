# resources/dashboard.py
from flask import current_app
from flask_restful import Resource, reqparse

from models.database import db, utcnow
from services.analytics import get_analytics
from .utils import error, parse_window

# Default analytics window
STATS_DAYS = 30


class StatsResource(Resource):
    def __init__(self, store):
        self.store = store

    def get(self):
        parser = reqparse.RequestParser()
        parser.add_argument("from", type=str, location="args", dest="start")
        parser.add_argument("to", type=str, location="args", dest="end")
        args = parser.parse_args()

        try:
            start, end = parse_window(args["start"], args["end"], STATS_DAYS)
        except ValueError as e:
            return error(f"Invalid date range: {e}")

        stats = get_analytics(self.store.session, start, end)
        return {
            "window": {"from": start.isoformat(), "to": end.isoformat()},
            **stats,
        }, 200


class HealthResource(Resource):
    def __init__(self, classifier):
        self.classifier = classifier

    def get(self):
        return {
            "ok": True,
            "time": utcnow().isoformat(),
            "mode": self.classifier.name,
            "model": self.classifier.model,
            "db": db.engine.dialect.name,
            "build": current_app.config.get("BUILD_SHA"),
        }, 200
