"""Extraction of JSON payloads from markdown-wrapped model output."""
import json
import re
from typing import Any

from jobfit.services.ai.errors import OutputParseFailure

FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.IGNORECASE | re.DOTALL)
LEADING_JSON_FENCE = re.compile(r"^```json", re.IGNORECASE)
LEADING_FENCE = re.compile(r"^```")
TRAILING_FENCE = re.compile(r"```$")
BLOCK_ID_MARKERS = re.compile(r"\(BLOCK_ID:\s*[a-zA-Z0-9-]+\)|BLOCK_ID:\s*[a-zA-Z0-9-]+")


def clean_json_output(raw_text: str) -> str:
    """
    Strip markdown code fences and surrounding prose from a model response.

    A complete fenced block wins. Otherwise a dangling opening fence and a
    dangling closing fence are removed independently, which covers truncated
    output. May return an empty string; never raises.
    """
    cleaned = (raw_text or "").strip()
    match = FENCED_BLOCK.search(cleaned)
    if match:
        cleaned = match.group(1)
    else:
        cleaned = LEADING_JSON_FENCE.sub("", cleaned, count=1)
        cleaned = LEADING_FENCE.sub("", cleaned, count=1)
        cleaned = TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_output(raw_text: str) -> Any:
    """
    Clean and decode a JSON model response.

    Raises:
        OutputParseFailure: If nothing is left after cleaning or it is not JSON
    """
    cleaned = clean_json_output(raw_text)
    if not cleaned:
        raise OutputParseFailure("AI returned an empty response")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise OutputParseFailure(f"Failed to parse AI response as JSON: {e.msg}") from e


def strip_block_ids(text: str) -> str:
    """Remove BLOCK_ID markers that leak from resume context into output."""
    return BLOCK_ID_MARKERS.sub("", text or "")
