"""Production environment configuration."""

import os

from .base import BaseConfig


class ProductionConfig(BaseConfig):
    """Production environment configuration."""

    ENV = "production"
    DEBUG = False
    TESTING = False

    # CORS - Restrict to specific origins
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "localhost").split(",")

    # Logging
    LOG_LEVEL = "INFO"
    LOG_FORMAT = "json"

    TELEMETRY_DATABASE_URL = os.getenv("TELEMETRY_DATABASE_URL")

    if not TELEMETRY_DATABASE_URL:
        raise ValueError("TELEMETRY_DATABASE_URL must be set in production")
