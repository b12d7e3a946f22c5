"""
Risk map queries and grid-based risk-zone scoring.

The service area is split into GRID_SIZE-degree cells. Each cell scores

    sum over incidents   severity weight * exp(-days_ago / 30)
    + 2 per open repair in the cell
    + per pipeline with a vertex in the cell, min(age / 50 * 2, 2)

and the highest scoring cells are returned with human-readable reasons.
"""
import math
from collections import defaultdict

from models.database import RiskIncident, RiskRepair, RiskPipeline, RiskWeather, SEVERITIES, utcnow


BOUNDS = {
    "minLat": 39.90,
    "maxLat": 40.10,
    "minLng": -75.30,
    "maxLng": -75.00,
}
CENTER = {"lat": 40.0, "lng": -75.15}
ZOOM = 11

GRID_SIZE = 0.01
ROWS = int(round((BOUNDS["maxLat"] - BOUNDS["minLat"]) / GRID_SIZE))
COLS = int(round((BOUNDS["maxLng"] - BOUNDS["minLng"]) / GRID_SIZE))

SEVERITY_WEIGHTS = {"High": 3, "Medium": 2, "Low": 1}
DECAY_DAYS = 30
RECENT_DAYS = 7
REPAIR_WEIGHT = 2
PIPELINE_MAX_SCORE = 2
AGING_PIPELINE_YEARS = 40

ALL_LAYERS = ("incidents", "repairs", "weather")


def _cell(lat, lng):
    """(row, col) of the cell containing the point, or None outside the grid."""
    row = math.floor((lat - BOUNDS["minLat"]) / GRID_SIZE)
    col = math.floor((lng - BOUNDS["minLng"]) / GRID_SIZE)
    if 0 <= row < ROWS and 0 <= col < COLS:
        return row, col
    return None


def days_ago(moment, now):
    return math.floor((now - moment).total_seconds() / 86400)


def pipeline_age_score(age):
    return max(0.0, min(age / 50 * PIPELINE_MAX_SCORE, PIPELINE_MAX_SCORE))


def _pipeline_cells(pipeline):
    coords = (pipeline.path_geojson or {}).get("coordinates") or []
    cells = set()
    for lng, lat in (c[:2] for c in coords):
        cell = _cell(lat, lng)
        if cell is not None:
            cells.add(cell)
    return cells


def top_zones(incidents, repairs, pipelines, n, now=None):
    """
    Score every grid cell and return the n highest as zone dicts.

    `incidents` should already be restricted to the requested window and
    `repairs` to open ones. Ties keep grid order (south to north, then west
    to east).
    """
    now = now or utcnow()

    incidents_by_cell = defaultdict(list)
    for inc in incidents:
        cell = _cell(inc.lat, inc.lng)
        if cell is not None:
            incidents_by_cell[cell].append(inc)

    repairs_by_cell = defaultdict(int)
    for repair in repairs:
        cell = _cell(repair.lat, repair.lng)
        if cell is not None:
            repairs_by_cell[cell] += 1

    pipelines_by_cell = defaultdict(list)
    for pipeline in pipelines:
        for cell in _pipeline_cells(pipeline):
            pipelines_by_cell[cell].append(pipeline)

    zones = []
    for row in range(ROWS):
        for col in range(COLS):
            cell = (row, col)
            score = 0.0
            reasons = []

            cell_incidents = incidents_by_cell.get(cell, [])
            for inc in cell_incidents:
                weight = SEVERITY_WEIGHTS.get(inc.severity, 1)
                score += weight * math.exp(-days_ago(inc.occurred_at, now) / DECAY_DAYS)
            if cell_incidents:
                high = sum(1 for i in cell_incidents if i.severity == "High")
                recent = sum(1 for i in cell_incidents if days_ago(i.occurred_at, now) <= RECENT_DAYS)
                if high:
                    reasons.append(f"{high} high severity incidents")
                if recent:
                    reasons.append(f"{recent} recent incidents")

            open_repairs = repairs_by_cell.get(cell, 0)
            score += open_repairs * REPAIR_WEIGHT
            if open_repairs:
                reasons.append(f"{open_repairs} open repairs")

            cell_pipelines = pipelines_by_cell.get(cell, [])
            for pipeline in cell_pipelines:
                score += pipeline_age_score(now.year - pipeline.install_year)
            aging = sum(1 for p in cell_pipelines if now.year - p.install_year > AGING_PIPELINE_YEARS)
            if aging:
                reasons.append(f"{aging} aging pipelines")

            score = round(score, 2)
            if score <= 0:
                continue

            lat = BOUNDS["minLat"] + row * GRID_SIZE
            lng = BOUNDS["minLng"] + col * GRID_SIZE
            zones.append({
                "id": f"{lat:.2f}_{lng:.2f}",
                "centerLat": round(lat + GRID_SIZE / 2, 6),
                "centerLng": round(lng + GRID_SIZE / 2, 6),
                "score": score,
                "reasons": reasons,
            })

    # sorted() is stable, so equal scores keep grid order
    zones = sorted(zones, key=lambda z: z["score"], reverse=True)
    return zones[:n]


class RiskMapStore:
    """Read-only access to the risk map feeder tables."""

    def __init__(self, session):
        self.session = session

    def incidents_between(self, start, end):
        return (
            self.session.query(RiskIncident)
            .filter(RiskIncident.occurred_at >= start, RiskIncident.occurred_at <= end)
            .order_by(RiskIncident.id)
            .all()
        )

    def open_repairs(self):
        return (
            self.session.query(RiskRepair)
            .filter(RiskRepair.status == "Open")
            .order_by(RiskRepair.id)
            .all()
        )

    def pipelines(self):
        return self.session.query(RiskPipeline).order_by(RiskPipeline.id).all()

    def points(self, start, end, layers=ALL_LAYERS, severities=SEVERITIES, categories=()):
        result = {}

        if "incidents" in layers:
            result["incidents"] = [
                inc.to_dict() for inc in self.incidents_between(start, end)
                if inc.severity in severities and (not categories or inc.category in categories)
            ]

        if "repairs" in layers:
            repairs = (
                self.session.query(RiskRepair)
                .filter(RiskRepair.opened_at >= start, RiskRepair.opened_at <= end)
                .order_by(RiskRepair.id)
                .all()
            )
            result["repairs"] = [r.to_dict() for r in repairs]

        if "weather" in layers:
            weather = (
                self.session.query(RiskWeather)
                .filter(RiskWeather.observed_at >= start, RiskWeather.observed_at <= end)
                .order_by(RiskWeather.id)
                .all()
            )
            result["weather"] = [w.to_dict() for w in weather]

        return result

    def top_zones(self, start, end, n, now=None):
        return top_zones(
            self.incidents_between(start, end),
            self.open_repairs(),
            self.pipelines(),
            n,
            now=now,
        )
