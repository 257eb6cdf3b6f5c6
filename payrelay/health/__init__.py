from flask import Blueprint, Response, abort, current_app, jsonify

from payrelay.health.checks import run_health_checks

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    results = run_health_checks()

    status_code = 200
    if results["status"] == "degraded":
        status_code = 503

    return jsonify(results), status_code


@health_bp.route("/", methods=["GET"])
def index():
    return jsonify({
        "message": current_app.config.get("APP_NAME"),
        "version": current_app.config.get("APP_VERSION"),
        "endpoints": {
            "initialize": "POST /payments/initialize",
            "verify": "GET /payments/verify/:reference",
            "webhook": "POST /payments/webhook",
            "health": "GET /health",
        },
    })


@health_bp.route("/metrics", methods=["GET"])
def metrics():
    manager = current_app.extensions["payrelay.metrics"]
    if not manager.enabled:
        abort(404)
    body, content_type = manager.render()
    return Response(body, content_type=content_type)
