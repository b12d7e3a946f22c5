"""
Tests for risk-zone scoring and the risk map endpoints
"""
import math
from datetime import datetime, timedelta

import pytest

from models.database import db, utcnow, RiskIncident, RiskRepair, RiskPipeline, RiskWeather
from services.advisor import RiskAdvisor, rule_answer
from services.risk import top_zones, pipeline_age_score

NOW = datetime(2026, 10, 17, 12, 0)


def incident(lat=39.955, lng=-75.155, severity="High", days=0, category="Gas Leak"):
    return RiskIncident(lat=lat, lng=lng, severity=severity, category=category,
                        occurred_at=NOW - timedelta(days=days))


def repair(lat=39.955, lng=-75.155, status="Open", days=0):
    return RiskRepair(lat=lat, lng=lng, status=status, opened_at=NOW - timedelta(days=days))


def pipeline(coords, install_year):
    return RiskPipeline(path_geojson={"type": "LineString", "coordinates": coords},
                        install_year=install_year, material="Cast Iron")


def test_single_high_incident_today():
    zones = top_zones([incident()], [], [], 3, now=NOW)

    assert len(zones) == 1
    zone = zones[0]
    assert zone["score"] == 3.0
    assert zone["reasons"] == ["1 high severity incidents", "1 recent incidents"]
    assert zone["id"] == "39.95_-75.16"
    assert zone["centerLat"] == pytest.approx(39.955)
    assert zone["centerLng"] == pytest.approx(-75.155)


def test_incident_score_decays_with_age():
    zones = top_zones([incident(severity="Medium", days=30)], [], [], 3, now=NOW)

    assert zones[0]["score"] == round(2 * math.exp(-1), 2)
    assert zones[0]["reasons"] == []


def test_recent_means_within_a_week():
    zones = top_zones([incident(severity="Low", days=7), incident(severity="Low", days=8)], [], [], 1, now=NOW)

    assert zones[0]["reasons"] == ["1 recent incidents"]


def test_open_repairs_add_two_each():
    zones = top_zones([], [repair(), repair(lat=39.951)], [], 3, now=NOW)

    assert zones[0]["score"] == 4.0
    assert zones[0]["reasons"] == ["2 open repairs"]


def test_pipeline_counts_once_per_cell():
    old = pipeline([[-75.155, 39.955], [-75.154, 39.956]], NOW.year - 60)

    zones = top_zones([], [], [old], 3, now=NOW)

    assert len(zones) == 1
    assert zones[0]["score"] == 2.0
    assert zones[0]["reasons"] == ["1 aging pipelines"]


def test_pipeline_spanning_cells_scores_each():
    pipe = pipeline([[-75.155, 39.955], [-75.145, 39.955]], NOW.year - 25)

    zones = top_zones([], [], [pipe], 5, now=NOW)

    assert [z["score"] for z in zones] == [1.0, 1.0]
    assert all(z["reasons"] == [] for z in zones)


def test_pipeline_age_score_is_capped():
    assert pipeline_age_score(25) == 1.0
    assert pipeline_age_score(100) == 2.0
    assert pipeline_age_score(-3) == 0.0


def test_zero_score_cells_are_excluded():
    new_pipe = pipeline([[-75.155, 39.955]], NOW.year)

    assert top_zones([], [], [new_pipe], 5, now=NOW) == []
    assert top_zones([], [], [], 5, now=NOW) == []


def test_points_outside_bounds_are_ignored():
    zones = top_zones([incident(lat=41.0), incident(lng=-74.5)], [repair(lat=39.0)], [], 5, now=NOW)

    assert zones == []


def test_sorted_descending_and_truncated():
    items = [
        incident(lat=39.915, severity="Low"),
        incident(lat=39.925, severity="High"),
        incident(lat=39.935, severity="Medium"),
    ]

    zones = top_zones(items, [], [], 2, now=NOW)

    assert [z["score"] for z in zones] == [3.0, 2.0]


def test_ties_keep_grid_order():
    north = incident(lat=39.985, severity="Low")
    south = incident(lat=39.915, severity="Low")
    west = incident(lat=39.985, lng=-75.295, severity="Low")

    zones = top_zones([north, south, west], [], [], 5, now=NOW)

    assert [z["id"] for z in zones] == ["39.91_-75.16", "39.98_-75.30", "39.98_-75.16"]


def test_scores_combine_factors():
    zones = top_zones(
        [incident(severity="High"), incident(severity="Low", days=30)],
        [repair()],
        [pipeline([[-75.155, 39.955]], NOW.year - 50)],
        1,
        now=NOW,
    )

    expected = 3 + math.exp(-1) + 2 + 2
    assert zones[0]["score"] == round(expected, 2)
    assert zones[0]["reasons"] == [
        "1 high severity incidents", "1 recent incidents", "1 open repairs", "1 aging pipelines"
    ]


# Endpoints

@pytest.fixture
def seeded(store):
    now = utcnow().replace(microsecond=0)
    db.session.add_all([
        RiskIncident(lat=39.955, lng=-75.155, category="Gas Leak", severity="High", occurred_at=now),
        RiskIncident(lat=40.055, lng=-75.055, category="Water Main", severity="Low",
                     occurred_at=now - timedelta(days=10)),
        RiskIncident(lat=40.005, lng=-75.205, category="Gas Leak", severity="Medium",
                     occurred_at=now - timedelta(days=200)),
        RiskRepair(lat=39.955, lng=-75.155, status="Open", opened_at=now - timedelta(days=300)),
        RiskRepair(lat=40.055, lng=-75.055, status="Closed", opened_at=now - timedelta(days=5),
                   closed_at=now),
        RiskPipeline(path_geojson={"type": "LineString", "coordinates": [[-75.255, 39.925]]},
                     install_year=1960, material="Steel"),
        RiskWeather(lat=39.95, lng=-75.15, temp_c=10.0, wind_kph=20.0, precip_mm=0.0,
                    observed_at=now - timedelta(days=1)),
    ])
    db.session.commit()
    return now


def test_bounds(client):
    data = client.get("/api/riskmap/bounds").get_json()

    assert data["bounds"] == {"minLat": 39.90, "maxLat": 40.10, "minLng": -75.30, "maxLng": -75.00}
    assert data["zoom"] == 11


def test_points_default_layers(client, seeded):
    data = client.get("/api/riskmap/points").get_json()

    assert set(data) == {"incidents", "repairs", "weather"}
    # 200-day-old incident and 300-day-old repair fall outside the 90 day default
    assert len(data["incidents"]) == 2
    assert len(data["repairs"]) == 1
    assert len(data["weather"]) == 1


def test_points_filters(client, seeded):
    data = client.get("/api/riskmap/points", query_string={
        "layers": "incidents", "severity": "High,Medium", "category": "Gas Leak",
    }).get_json()

    assert set(data) == {"incidents"}
    assert [i["severity"] for i in data["incidents"]] == ["High"]


def test_pipelines_endpoint(client, seeded):
    data = client.get("/api/riskmap/pipelines").get_json()

    assert data["pipelines"][0]["installYear"] == 1960
    assert data["pipelines"][0]["pathGeojson"]["type"] == "LineString"


def test_topzones_uses_open_repairs_regardless_of_date(client, seeded):
    data = client.get("/api/riskmap/topzones?count=5").get_json()

    top = data["zones"][0]
    assert top["id"] == "39.95_-75.16"
    assert top["score"] == 5.0
    assert "1 open repairs" in top["reasons"]
    scores = [z["score"] for z in data["zones"]]
    assert scores == sorted(scores, reverse=True)
    assert all(s > 0 for s in scores)


def test_topzones_default_count(client, seeded):
    data = client.get("/api/riskmap/topzones").get_json()

    assert len(data["zones"]) == 3


def test_topzones_rejects_bad_count(client):
    assert client.get("/api/riskmap/topzones?count=lots").status_code == 400
    assert client.get("/api/riskmap/topzones?count=-1").status_code == 400


def test_ask_requires_question(client):
    assert client.post("/api/riskmap/ask", json={}).status_code == 400


def test_ask_rule_answer(client, seeded):
    data = client.post("/api/riskmap/ask", json={"question": "Where should we inspect?"}).get_json()

    assert data["answer"].startswith("Based on current data analysis, Zone 39.95_-75.16")


def test_ask_uses_model_when_available(make_app, fake_openai):
    client_stub = fake_openai(content="  Inspect zone 39.95_-75.16 first.  ")
    app = make_app(advisor=RiskAdvisor(client=client_stub))

    data = app.test_client().post("/api/riskmap/ask", json={"question": "Where?"}).get_json()

    assert data["answer"] == "Inspect zone 39.95_-75.16 first."
    assert client_stub.chat.completions.calls[0]["max_tokens"] == 200


def test_ask_falls_back_when_model_fails(make_app, fake_openai):
    app = make_app(advisor=RiskAdvisor(client=fake_openai(error=RuntimeError("down"))))

    data = app.test_client().post("/api/riskmap/ask", json={"question": "Where?"}).get_json()

    assert data["answer"] == rule_answer([])


def test_rule_answer_mentions_other_zones():
    zones = [
        {"id": "a", "score": 5.0, "reasons": ["1 open repairs"]},
        {"id": "b", "score": 3.0, "reasons": []},
        {"id": "c", "score": 2.0, "reasons": []},
        {"id": "d", "score": 1.0, "reasons": []},
    ]

    answer = rule_answer(zones)

    assert "Zone a shows the highest risk (score: 5.0)" in answer
    assert "Also monitor Zones b and c" in answer
    assert "Zone d" not in answer
