# resources/riskmap.py
from flask import request
from flask_restful import Resource, reqparse

from models.database import SEVERITIES
from services.advisor import CONTEXT_ZONES
from services.risk import BOUNDS, CENTER, ZOOM, ALL_LAYERS
from .utils import error, parse_window, split_csv

POINTS_DAYS = 90
ZONES_DAYS = 30
DEFAULT_ZONE_COUNT = 3


def _window_parser():
    parser = reqparse.RequestParser()
    parser.add_argument("from", type=str, location="args", dest="start")
    parser.add_argument("to", type=str, location="args", dest="end")
    return parser


class RiskBoundsResource(Resource):
    def get(self):
        return {"bounds": BOUNDS, "center": CENTER, "zoom": ZOOM}, 200


class RiskPointsResource(Resource):
    def __init__(self, risk_store):
        self.risk_store = risk_store

    def get(self):
        parser = _window_parser()
        parser.add_argument("layers", type=str, location="args")
        parser.add_argument("severity", type=str, location="args")
        parser.add_argument("category", type=str, location="args")
        args = parser.parse_args()

        try:
            start, end = parse_window(args["start"], args["end"], POINTS_DAYS)
        except ValueError as e:
            return error(f"Invalid date range: {e}")

        return self.risk_store.points(
            start, end,
            layers=split_csv(args["layers"]) or ALL_LAYERS,
            severities=split_csv(args["severity"]) or SEVERITIES,
            categories=split_csv(args["category"]),
        ), 200


class RiskPipelinesResource(Resource):
    def __init__(self, risk_store):
        self.risk_store = risk_store

    def get(self):
        return {"pipelines": [p.to_dict() for p in self.risk_store.pipelines()]}, 200


class RiskTopZonesResource(Resource):
    def __init__(self, risk_store):
        self.risk_store = risk_store

    def get(self):
        parser = _window_parser()
        parser.add_argument("count", type=int, location="args", default=DEFAULT_ZONE_COUNT,
                            help="count must be an integer")
        args = parser.parse_args()

        if args["count"] < 0:
            return error("count must not be negative")
        try:
            start, end = parse_window(args["start"], args["end"], ZONES_DAYS)
        except ValueError as e:
            return error(f"Invalid date range: {e}")

        return {"zones": self.risk_store.top_zones(start, end, args["count"])}, 200


class RiskAskResource(Resource):
    def __init__(self, risk_store, advisor):
        self.risk_store = risk_store
        self.advisor = advisor

    def post(self):
        data = request.get_json(silent=True) or {}
        question = data.get("question") if isinstance(data, dict) else None
        if not question or not isinstance(question, str):
            return error("Question is required")

        try:
            start, end = parse_window(data.get("from"), data.get("to"), ZONES_DAYS)
        except ValueError as e:
            return error(f"Invalid date range: {e}")

        zones = self.risk_store.top_zones(start, end, CONTEXT_ZONES)
        return {"answer": self.advisor.answer(question, zones)}, 200
