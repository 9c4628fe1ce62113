"""Flask application factory and initialization."""

import logging
from typing import Optional, Type

from flask import Flask
from flask_cors import CORS

from config.base import BaseConfig

# Initialize extensions
cors = CORS()


def setup_logging(app: Flask, log_format: str = "json") -> None:
    """Setup logging configuration for the application."""
    log_level = app.config.get("LOG_LEVEL", "INFO")

    handler = logging.StreamHandler()
    if log_format == "json":
        # Structured JSON logging
        from pythonjsonlogger import jsonlogger

        handler.setFormatter(jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        ))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        ))

    # AI core modules log under the package logger
    package_logger = logging.getLogger("jobfit")
    package_logger.handlers = [handler]
    package_logger.setLevel(getattr(logging, log_level))

    app.logger.setLevel(getattr(logging, log_level))

    app.logger.info(
        "Application initialized",
        extra={
            "environment": app.config.get("ENV", "development"),
            "debug": app.debug,
            "testing": app.testing,
        }
    )


def setup_telemetry_store(app: Flask):
    """Setup the SQL telemetry store used for relay usage tracking."""
    from jobfit.services.telemetry_store import SQLTelemetryStore

    database_url = app.config.get("TELEMETRY_DATABASE_URL")
    if not database_url:
        app.logger.warning("TELEMETRY_DATABASE_URL not set, usage tracking disabled")
        return None

    try:
        store = SQLTelemetryStore(database_url)
        app.logger.info(f"Telemetry store connected: {database_url.split('://')[0]}")
        return store
    except Exception as e:
        app.logger.error(f"Failed to initialize telemetry store: {e}")
        if app.config.get("ENV") == "production":
            raise
        return None


def setup_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from jobfit.schemas import ErrorResponseSchema

    def error_body(error: str, message: str, status: int) -> dict:
        return ErrorResponseSchema(error=error, message=message, status=status).model_dump(exclude_none=True)

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return error_body("Not Found", "The requested resource was not found", 404), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        app.logger.error(f"Internal server error: {error}")
        return error_body("Internal Server Error", "An unexpected error occurred", 500), 500

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 errors."""
        return error_body("Method Not Allowed", "The HTTP method is not allowed for this resource", 405), 405

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 errors."""
        return error_body("Bad Request", "The request was invalid", 400), 400


def register_blueprints(app: Flask) -> None:
    """Register Flask blueprints."""
    from jobfit.routes import api
    from jobfit.routes import relay_routes

    # Health check and info
    app.register_blueprint(api.bp)

    # Gemini relay for clients without their own API key
    app.register_blueprint(relay_routes.relay_bp)


def create_app(config: Optional[Type[BaseConfig]] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Configuration class to use. If None, uses environment-based config.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Load configuration
    if config is None:
        from config.settings import settings

        if settings.is_production:
            from config.production import ProductionConfig
            config = ProductionConfig
        elif settings.is_testing:
            from config.testing import TestingConfig
            config = TestingConfig
        else:
            from config.development import DevelopmentConfig
            config = DevelopmentConfig

    app.config.from_object(config)
    app.json.sort_keys = False

    # Setup logging
    setup_logging(app, app.config.get("LOG_FORMAT", "json"))

    cors.init_app(app, resources={
        r"/api/*": {
            "origins": app.config.get("CORS_ORIGINS", ["*"]),
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": app.config.get("CORS_ALLOW_HEADERS", ["*"]),
        }
    })

    app.extensions["telemetry_store"] = setup_telemetry_store(app)

    # Setup error handlers
    setup_error_handlers(app)

    # Register blueprints
    register_blueprints(app)

    app.logger.info(
        "Flask application created",
        extra={"config": config.__name__},
    )

    return app
