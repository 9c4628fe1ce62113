"""Development environment configuration."""

from .base import BaseConfig


class DevelopmentConfig(BaseConfig):
    """Development environment configuration."""

    ENV = "development"
    DEBUG = True
    TESTING = False

    # CORS - Allow all origins in development
    CORS_ORIGINS = ["*"]

    # No auth in front of the relay here, so take the tier from the client
    TRUST_TIER_HEADER = True

    # Logging
    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"
