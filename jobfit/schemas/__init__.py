"""Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ErrorResponseSchema(BaseModel):
    """Schema for error responses."""

    error: str
    message: str
    status: int
    details: Optional[dict] = None


class HealthCheckSchema(BaseModel):
    """Schema for health check response."""

    status: str
    timestamp: datetime
    environment: str


class AppInfoSchema(BaseModel):
    """Schema for app info response."""

    name: str
    version: str
    environment: str
    debug: bool
    timestamp: datetime


from jobfit.schemas.job_analysis_schema import (  # noqa: E402
    CustomSkill,
    DistilledJob,
    ExperienceBlock,
    JobAnalysis,
    RequiredSkill,
    ResumeProfile,
)
from jobfit.schemas.cover_letter_schema import (  # noqa: E402
    CoverLetterDraft,
    CoverLetterResult,
    CritiqueDecision,
    CritiqueResult,
)
from jobfit.schemas.relay_schema import (  # noqa: E402
    RelayRequestSchema,
    RelayResponseSchema,
)
