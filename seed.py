# seed.py
import random
import sys
from datetime import timedelta

from app import create_app
from models.database import (
    db, Incident, RiskIncident, RiskRepair, RiskPipeline, RiskWeather, REPAIR_STATUSES, SEVERITIES, utcnow
)
from services.risk import BOUNDS

SAMPLE_INCIDENTS = [
    dict(
        address="789 Pine Street, Downtown",
        description=("Persistent strong gas odor reported by multiple residents in apartment building. "
                     "Smell has been present for over 2 hours and appears to be getting stronger."),
        category="Leak", severity="High",
        summary="Multi-unit gas leak emergency requiring immediate evacuation and response",
        next_steps=[
            "Dispatch emergency response team immediately",
            "Order building evacuation",
            "Contact fire department and gas company",
            "Establish safety perimeter",
            "Monitor air quality levels",
        ],
        customer_message=("EMERGENCY: Please evacuate the building immediately. Our emergency response team "
                          "is en route. Do not use any electrical switches, lighters, or create sparks."),
        lat=39.9526, lng=-75.1652,
    ),
    dict(
        address="456 Elm Avenue, Riverside District",
        description=("Complete power outage affecting approximately 200 homes in residential area. "
                     "Transformer explosion reported by witnesses. Duration: 45 minutes and ongoing."),
        category="Outage", severity="High",
        summary="Large-scale power outage due to transformer failure affecting 200+ customers",
        next_steps=[
            "Deploy emergency restoration crew",
            "Assess transformer damage",
            "Coordinate traffic control for affected intersections",
            "Set up temporary power for critical facilities",
            "Provide regular updates to customers",
        ],
        customer_message=("We are aware of the power outage affecting your area. Our crews are working to "
                          "restore service. Estimated restoration time: 4-6 hours."),
        lat=39.9812, lng=-75.1430,
    ),
    dict(
        address="123 Oak Road, Suburban Hills",
        description=("Customer reports receiving electric bill showing usage 400% higher than normal. "
                     "Requesting meter verification."),
        category="Billing", severity="Medium",
        summary="Billing dispute - abnormally high usage requiring meter investigation",
        next_steps=[
            "Schedule meter reading verification",
            "Review usage history for past 12 months",
            "Check for meter malfunction or tampering",
            "Provide temporary payment arrangement if needed",
        ],
        customer_message=("We understand your concern about the unusually high bill. We will schedule a "
                          "meter verification within 48 hours and review your account history."),
        lat=40.0150, lng=-75.2010,
    ),
]

RISK_CATEGORIES = ["Gas Leak", "Power Outage", "Water Main", "Equipment Failure", "Emergency"]
PIPE_MATERIALS = ["Steel", "Cast Iron", "Plastic", "Copper", "PVC"]


def random_point():
    return (random.uniform(BOUNDS["minLat"], BOUNDS["maxLat"]),
            random.uniform(BOUNDS["minLng"], BOUNDS["maxLng"]))


def random_past(days):
    return utcnow() - timedelta(days=random.randrange(days))


def pipeline_path():
    lat, lng = random_point()
    coords = [[lng, lat]]
    for _ in range(random.randint(2, 6)):
        lat = min(BOUNDS["maxLat"], max(BOUNDS["minLat"], lat + random.uniform(-0.01, 0.01)))
        lng = min(BOUNDS["maxLng"], max(BOUNDS["minLng"], lng + random.uniform(-0.01, 0.01)))
        coords.append([lng, lat])
    return {"type": "LineString", "coordinates": coords}


def seed_incidents():
    now = utcnow()
    for offset, fields in enumerate(SAMPLE_INCIDENTS):
        created = now - timedelta(days=offset * 3)
        db.session.add(Incident(created_at=created, updated_at=created, **fields))
    db.session.commit()
    print(f"Created {len(SAMPLE_INCIDENTS)} incidents")


def seed_riskmap():
    # ~20% High, 50% Medium, 30% Low
    for _ in range(200):
        lat, lng = random_point()
        db.session.add(RiskIncident(
            lat=lat, lng=lng,
            category=random.choice(RISK_CATEGORIES),
            severity=random.choices(SEVERITIES, weights=[0.2, 0.5, 0.3])[0],
            occurred_at=random_past(90),
        ))

    for _ in range(60):
        lat, lng = random_point()
        status = random.choices(REPAIR_STATUSES, weights=[0.3, 0.4, 0.3])[0]
        opened = random_past(120)
        closed = opened + timedelta(days=random.randrange(30)) if status == "Closed" else None
        db.session.add(RiskRepair(lat=lat, lng=lng, status=status, opened_at=opened, closed_at=closed))

    for _ in range(20):
        db.session.add(RiskPipeline(
            path_geojson=pipeline_path(),
            install_year=random.randint(1970, 2020),
            material=random.choice(PIPE_MATERIALS),
        ))

    for _ in range(300):
        lat, lng = random_point()
        db.session.add(RiskWeather(
            lat=lat, lng=lng,
            temp_c=random.uniform(-10, 35),
            wind_kph=random.uniform(0, 80),
            precip_mm=random.uniform(0, 50) if random.random() < 0.3 else 0,
            observed_at=random_past(30),
        ))

    db.session.commit()
    print("Created risk map incidents, repairs, pipelines and weather")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        if "--riskmap-only" not in sys.argv:
            seed_incidents()
        if "--incidents-only" not in sys.argv:
            seed_riskmap()
    print("✅ Seed data added successfully!")
