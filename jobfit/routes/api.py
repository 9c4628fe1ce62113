"""API routes for the application."""

from datetime import datetime

from flask import Blueprint, jsonify, current_app

from jobfit.schemas import AppInfoSchema, HealthCheckSchema

bp = Blueprint("api", __name__, url_prefix="/api")

APP_NAME = "JobFit AI Core"
APP_VERSION = "0.1.0"


@bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    schema = HealthCheckSchema(
        status="healthy",
        timestamp=datetime.utcnow(),
        environment=current_app.config.get("ENV", "development"),
    )
    return jsonify(schema.model_dump(mode="json")), 200


@bp.route("/info", methods=["GET"])
def app_info():
    """Get application information."""
    schema = AppInfoSchema(
        name=APP_NAME,
        version=APP_VERSION,
        environment=current_app.config.get("ENV", "development"),
        debug=current_app.debug,
        timestamp=datetime.utcnow(),
    )
    return jsonify(schema.model_dump(mode="json")), 200


@bp.route("/", methods=["GET"])
def root():
    """Root API endpoint."""
    return jsonify({
        "message": f"Welcome to {APP_NAME}",
        "version": APP_VERSION,
        "endpoints": {
            "health": "/api/health",
            "info": "/api/info",
            "generate": "/api/ai/generate",
        },
    }), 200
