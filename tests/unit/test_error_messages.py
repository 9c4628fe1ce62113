"""Tests for user-facing error messages."""

import pytest

from jobfit.utils.error_messages import ERROR_MESSAGES, get_retry_message, get_user_friendly_error


@pytest.mark.unit
class TestGetUserFriendlyError:
    """Test technical error translation."""

    @pytest.mark.parametrize("raw,code", [
        ("429 Resource exhausted: GenerateRequestsPerDayPerProjectPerModel", "DAILY_QUOTA_EXCEEDED"),
        ("429 Too Many Requests", "RATE_LIMIT_EXCEEDED"),
        ("Quota exceeded for this project", "RATE_LIMIT_EXCEEDED"),
        ("Connection reset by peer", "NETWORK_ERROR"),
        ("Request timed out", "TIMEOUT_ERROR"),
        ("403 Forbidden", "API_KEY_PERMISSION_DENIED"),
        ("400 API key not valid. Please pass a valid API key.", "INVALID_API_KEY"),
        ("Proxy Error: 400 not_a_job", "NOT_A_JOB"),
    ])
    def test_known_patterns(self, raw, code):
        """Test provider messages map to their friendly text."""
        assert get_user_friendly_error(raw) == ERROR_MESSAGES[code]

    def test_error_code_lookup(self):
        """Test a bare code returns its message."""
        assert get_user_friendly_error("SERVER_ERROR") == ERROR_MESSAGES["SERVER_ERROR"]

    def test_exception_input(self):
        """Test exceptions are converted through their message."""
        assert get_user_friendly_error(TimeoutError("Read timeout")) == ERROR_MESSAGES["TIMEOUT_ERROR"]

    def test_short_message_passes_through(self):
        """Test readable short messages are shown unchanged."""
        assert get_user_friendly_error("Resume is empty") == "Resume is empty"

    @pytest.mark.parametrize("raw", ["", "x" * 150, "ValueError: bad", "Traceback (most recent call last)"])
    def test_noise_becomes_unknown(self, raw):
        """Test empty, long or stack-trace-like messages are hidden."""
        assert get_user_friendly_error(raw) == ERROR_MESSAGES["UNKNOWN_ERROR"]


@pytest.mark.unit
class TestGetRetryMessage:
    """Test retry progress text."""

    def test_whole_seconds(self):
        assert get_retry_message(1, 3, 2.0) == "Too busy right now. Retrying (1/3) in 2s..."

    def test_fractional_seconds(self):
        assert get_retry_message(2, 4, 1.5) == "Too busy right now. Retrying (2/4) in 1.5s..."
