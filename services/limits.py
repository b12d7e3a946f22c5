from flask import current_app, jsonify, make_response
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

limiter = Limiter(get_remote_address, storage_uri="memory://", strategy="fixed-window")


def breach_body(message):
    return {"success": False, "msg": message}


def per_minute(config_key, message):
    """Limit a resource to app.config[config_key] calls per minute per client address."""
    def on_breach(request_limit):
        # flask_restful hands back a response attached to the exception unchanged
        return make_response(jsonify(breach_body(message)), 429)

    return limiter.limit(
        lambda: f"{current_app.config[config_key]} per minute",
        error_message=message,
        on_breach=on_breach,
    )


def init_limiter(app):
    limiter.init_app(app)
