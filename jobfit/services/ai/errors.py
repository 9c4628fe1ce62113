"""
AI service exceptions and provider error classification.

The Gemini API and the relay only report failures as text, so classification
works on the exception message.
"""
from enum import Enum


class AIServiceError(Exception):
    """Base class for failures surfaced by the AI core."""
    pass


class DailyQuotaExceeded(AIServiceError):
    """Daily quota is gone. Never retried."""
    pass


class RateLimitExceeded(AIServiceError):
    """Rate limit still hit after the whole retry budget was used."""
    pass


class ProviderError(AIServiceError):
    """Any other inference failure. Not retried."""
    pass


class ProxyError(ProviderError):
    """The relay could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(f"Proxy Error: {message}")
        self.status_code = status_code


class AIError(ProviderError):
    """The relay reached Gemini but the provider call failed."""

    def __init__(self, message: str):
        super().__init__(f"AI Error: {message}")


class OutputParseFailure(ProviderError):
    """Model output could not be parsed as the expected structured data."""
    pass


class AnalysisValidationFailure(AIServiceError):
    """Merged job analysis has neither a score nor any skills."""
    pass


class RetryAttemptsExhausted(AIServiceError):
    """The retry loop ended without a result or a classified failure."""
    pass


class ErrorKind(Enum):
    """How a failed inference attempt should be handled."""
    DAILY_QUOTA = "daily_quota"
    RATE_LIMIT = "rate_limit"
    OTHER = "other"


DAILY_QUOTA_MARKERS = ("PerDay",)
RATE_LIMIT_MARKERS = ("429", "Quota", "quota", "High traffic")


def classify_error(message: str) -> ErrorKind:
    """
    Classify a provider error message.

    Daily quota markers take precedence over rate limit markers, since a daily
    quota message also mentions quota.
    """
    message = message or ""
    if any(marker in message for marker in DAILY_QUOTA_MARKERS):
        return ErrorKind.DAILY_QUOTA
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMIT
    return ErrorKind.OTHER
