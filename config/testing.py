"""Testing environment configuration."""

from .base import BaseConfig


class TestingConfig(BaseConfig):
    """Testing environment configuration."""

    ENV = "testing"
    DEBUG = True
    TESTING = True

    # CORS - Allow all for testing
    CORS_ORIGINS = ["*"]

    # No auth in front of the relay here, so take the tier from the client
    TRUST_TIER_HEADER = True

    # Logging
    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"

    # Use in-memory SQLite for tests
    TELEMETRY_DATABASE_URL = "sqlite://"
