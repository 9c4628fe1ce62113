"""Tier-based Gemini model selection."""
from enum import Enum
from typing import Dict, Optional, Union


class UserTier(str, Enum):
    """Subscription level of the calling user."""
    FREE = "free"
    PLUS = "plus"
    PRO = "pro"
    ADMIN = "admin"
    TESTER = "tester"


class TaskClass(str, Enum):
    """Cost class of an inference call."""
    EXTRACTION = "extraction"
    ANALYSIS = "analysis"


FLASH_MODEL = "gemini-2.0-flash"
PRO_MODEL = "gemini-1.5-pro"

TIER_MODELS: Dict[str, Dict[str, str]] = {
    UserTier.FREE.value: {
        TaskClass.EXTRACTION.value: FLASH_MODEL,
        TaskClass.ANALYSIS.value: FLASH_MODEL,
    },
    UserTier.PLUS.value: {
        TaskClass.EXTRACTION.value: FLASH_MODEL,
        TaskClass.ANALYSIS.value: FLASH_MODEL,
    },
    UserTier.PRO.value: {
        TaskClass.EXTRACTION.value: FLASH_MODEL,
        TaskClass.ANALYSIS.value: PRO_MODEL,
    },
    UserTier.ADMIN.value: {
        TaskClass.EXTRACTION.value: FLASH_MODEL,
        TaskClass.ANALYSIS.value: PRO_MODEL,
    },
    UserTier.TESTER.value: {
        TaskClass.EXTRACTION.value: FLASH_MODEL,
        TaskClass.ANALYSIS.value: PRO_MODEL,
    },
}


def _value(item: Union[Enum, str, None]) -> Optional[str]:
    if isinstance(item, Enum):
        return item.value
    return item.lower() if isinstance(item, str) else None


def normalize_tier(tier: Union[UserTier, str, None]) -> UserTier:
    """Map any tier-ish value to a UserTier, falling back to free."""
    value = _value(tier)
    if value in TIER_MODELS:
        return UserTier(value)
    return UserTier.FREE


def normalize_task(task_class: Union[TaskClass, str, None]) -> TaskClass:
    """Unknown task classes are treated as analysis."""
    value = _value(task_class)
    if value == TaskClass.EXTRACTION.value:
        return TaskClass.EXTRACTION
    return TaskClass.ANALYSIS


def resolve_model(tier: Union[UserTier, str, None], task_class: Union[TaskClass, str, None]) -> str:
    """
    Return the Gemini model id for a tier and task class.

    Unknown tiers use the free row. Never raises.
    """
    row = TIER_MODELS[normalize_tier(tier).value]
    return row[normalize_task(task_class).value]
