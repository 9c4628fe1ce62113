"""Cover letter generation and critique schemas."""
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, List

from pydantic import Field, field_validator

from jobfit.schemas.job_analysis_schema import CamelModel


class CritiqueDecision(IntEnum):
    """Hiring-manager verdict on a draft, ordered from worst to best."""
    REJECT = 0
    WEAK = 1
    AVERAGE = 2
    STRONG = 3
    EXCEPTIONAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def is_satisfactory(self) -> bool:
        return self >= CritiqueDecision.STRONG

    @classmethod
    def parse(cls, value: Any) -> "CritiqueDecision":
        """Parse a model-provided label. Anything unrecognised counts as a reject."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        return cls.REJECT


class CritiqueResult(CamelModel):
    decision: CritiqueDecision = CritiqueDecision.REJECT
    strengths: List[str] = Field(default_factory=list)
    feedback: List[str] = Field(default_factory=list)
    hallucination_alerts: List[str] = Field(
        default_factory=list,
        description="Claims in the letter that the resume does not support",
    )

    @field_validator("decision", mode="before")
    @classmethod
    def parse_decision(cls, v):
        return CritiqueDecision.parse(v)

    @field_validator("strengths", "feedback", "hallucination_alerts", mode="before")
    @classmethod
    def lists_default_empty(cls, v):
        return [] if v is None else v


@dataclass
class CoverLetterDraft:
    text: str
    prompt_version: str = "v1"


@dataclass
class CoverLetterResult:
    text: str
    decision: CritiqueDecision
    attempts: int
    prompt_version: str = "v1"
