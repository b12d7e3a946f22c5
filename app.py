# app.py
import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_limiter.errors import RateLimitExceeded
from werkzeug.exceptions import HTTPException

from config import Config
from models.database import db, init_db
from routes import register_routes
from services.advisor import RiskAdvisor
from services.classifier import create_classifier
from services.limits import init_limiter, breach_body
from services.risk import RiskMapStore
from services.store import IncidentStore
from services.transcription import Transcriber


def create_app(overrides=None, classifier=None, transcriber=None, advisor=None):
    """
    Build the app. Collaborators are created once here and injected into the
    resources; tests pass their own through the keyword arguments.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # === INIT DB ===
    init_db(app)

    # === SERVICES ===
    store = IncidentStore(db.session)
    risk_store = RiskMapStore(db.session)
    classifier = classifier or create_classifier(app.config)
    transcriber = transcriber or Transcriber.from_config(app.config)
    advisor = advisor or RiskAdvisor.from_config(app.config)

    app.logger.info("Classifier: %s (%s)", classifier.name, classifier.model)

    # === CORS / RATE LIMITS ===
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})
    init_limiter(app)

    # === ERROR HANDLERS ===
    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(e):
        app.logger.debug("Rate limit exceeded: %s", e.description)
        return jsonify(breach_body(e.description)), 429

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        app.logger.debug("HTTPException: %s", e)
        return jsonify({"msg": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_exception(e):
        db.session.rollback()
        app.logger.exception("Unhandled exception")
        return jsonify({"msg": "Internal server error"}), 500

    # === ROUTES ===
    register_routes(app, store, risk_store, classifier, transcriber, advisor)

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
