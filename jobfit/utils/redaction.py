"""PII redaction for text that is written to logs."""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"(\+?\d{1,2}\s?)?(\(?\d{3}\)?[\s.-]?)?\d{3}[\s.-]?\d{4}")

EMAIL_PLACEHOLDER = "[EMAIL_REDACTED]"
PHONE_PLACEHOLDER = "[PHONE_REDACTED]"

MAX_LOG_LENGTH = 200
CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")


def redact_content(text: Optional[str]) -> Optional[str]:
    """Replace email addresses and phone-number-shaped substrings."""
    if not text:
        return text
    text = EMAIL_PATTERN.sub(EMAIL_PLACEHOLDER, text)
    return PHONE_PATTERN.sub(PHONE_PLACEHOLDER, text)


def sanitize_log(value: object) -> str:
    """Flatten control characters and truncate a value before logging it."""
    text = CONTROL_CHARS.sub(" ", str(value))
    if len(text) > MAX_LOG_LENGTH:
        return text[:MAX_LOG_LENGTH] + "..."
    return text
