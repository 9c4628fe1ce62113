"""Base configuration for all environments."""

import os
from typing import List


class BaseConfig:
    """Base configuration class with common settings."""

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["Content-Type", "Authorization", "X-User-Id", "X-User-Tier"]

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")

    # Server-side Gemini key used by the relay (falls back to settings when unset)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY", "")

    # Telemetry store used by the relay for usage tracking
    TELEMETRY_DATABASE_URL: str = os.getenv("TELEMETRY_DATABASE_URL", "sqlite:///./jobfit_telemetry.db")

    # Callable(request) -> tier string. None falls back to the header (if trusted) or free.
    TIER_RESOLVER = None

    # Honour the client-sent X-User-Tier header. Only for local setups without auth.
    TRUST_TIER_HEADER: bool = False
