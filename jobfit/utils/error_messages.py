"""
User-friendly error messages.

Technical provider errors are translated into short messages that can be shown
to end users as-is.
"""
from typing import Union

ERROR_MESSAGES = {
    # API key errors
    "INVALID_API_KEY": "Invalid API key. Please check your settings and try again.",
    "API_KEY_PERMISSION_DENIED": "API key doesn't have permission. Check your Google Cloud console.",

    # Quota errors
    "DAILY_QUOTA_EXCEEDED": (
        "You've reached your daily API limit. Try again tomorrow, "
        "or upgrade to JobFit Pro for unlimited access."
    ),
    "RATE_LIMIT_EXCEEDED": "Too many requests. The AI is busy right now - please wait a moment and try again.",

    # Network errors
    "NETWORK_ERROR": "Connection issue. Check your internet and try again.",
    "TIMEOUT_ERROR": "Request took too long. The server might be slow - try again in a moment.",

    # Content errors
    "NOT_A_JOB": "This content doesn't look like a valid job description.",

    # Generic errors
    "UNKNOWN_ERROR": "Something went wrong. Please try again.",
    "SERVER_ERROR": "Server error. Our team has been notified. Please try again later.",
}

GENERIC_FAILURE_MESSAGE = "Request failed after multiple attempts. Please try again later."


def get_user_friendly_error(error: Union[BaseException, str]) -> str:
    """
    Convert a technical error (or an ERROR_MESSAGES code) into a user-facing message.

    Args:
        error: Exception or raw message

    Returns:
        Message suitable for display
    """
    message = error if isinstance(error, str) else str(error)

    if message in ERROR_MESSAGES:
        return ERROR_MESSAGES[message]

    if 'not_a_job' in message:
        return ERROR_MESSAGES["NOT_A_JOB"]

    if 'PerDay' in message:
        return ERROR_MESSAGES["DAILY_QUOTA_EXCEEDED"]

    if '429' in message or 'quota' in message.lower():
        return ERROR_MESSAGES["RATE_LIMIT_EXCEEDED"]

    lowered = message.lower()
    if 'network' in lowered or 'connection' in lowered:
        return ERROR_MESSAGES["NETWORK_ERROR"]

    if 'timeout' in lowered or 'timed out' in lowered:
        return ERROR_MESSAGES["TIMEOUT_ERROR"]

    if '403' in message or 'permission' in lowered:
        return ERROR_MESSAGES["API_KEY_PERMISSION_DENIED"]

    if '400' in message or 'api key not valid' in lowered or 'invalid api key' in lowered:
        return ERROR_MESSAGES["INVALID_API_KEY"]

    # Short messages are usually already readable; long ones are stack-trace noise
    if not message or len(message) > 100 or 'Error:' in message or 'Traceback' in message:
        return ERROR_MESSAGES["UNKNOWN_ERROR"]

    return message


def get_retry_message(attempt: int, max_attempts: int, delay_seconds: float) -> str:
    """Format the progress message shown while waiting for a retry."""
    return f"Too busy right now. Retrying ({attempt}/{max_attempts}) in {delay_seconds:g}s..."
