"""
Job Analysis Schemas

Shapes of the job extraction/analysis passes and of the resume data fed into
them. Model output uses camelCase keys; both spellings are accepted.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema accepting snake_case or camelCase keys, dumping camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def _none_to_list(v: Any) -> Any:
    return [] if v is None else v


class RequiredSkill(CamelModel):
    name: str
    level: Optional[str] = Field(None, description="learning | comfortable | expert")


class DistilledJob(CamelModel):
    """Normalized job posting built from the extraction and analysis passes."""
    company_name: Optional[str] = None
    role_title: Optional[str] = None
    location: Optional[str] = None
    reference_code: Optional[str] = None
    application_deadline: Optional[str] = None
    key_skills: List[str] = Field(default_factory=list)
    required_skills: List[RequiredSkill] = Field(default_factory=list)
    core_responsibilities: List[str] = Field(default_factory=list)
    salary_range: Optional[str] = None
    source: Optional[str] = None
    category: Optional[str] = Field(None, description="technical | managerial | general")
    canonical_title: Optional[str] = None

    # Safety scan: posting forbids AI-assisted applications
    is_ai_banned: Optional[bool] = None
    ai_ban_reason: Optional[str] = None

    @field_validator("key_skills", "required_skills", "core_responsibilities", mode="before")
    @classmethod
    def lists_default_empty(cls, v):
        return _none_to_list(v)


class JobAnalysis(CamelModel):
    """Complete job fit analysis."""
    compatibility_score: Optional[int] = Field(None, description="0-100")
    best_resume_profile_id: Optional[str] = None
    reasoning: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    distilled_job: DistilledJob = Field(default_factory=DistilledJob)
    cleaned_description: Optional[str] = None
    tailoring_instructions: List[str] = Field(default_factory=list)
    resume_tailoring_instructions: List[str] = Field(default_factory=list)
    cover_letter_tailoring_instructions: List[str] = Field(default_factory=list)
    recommended_block_ids: List[str] = Field(default_factory=list)

    @field_validator("compatibility_score", mode="before")
    @classmethod
    def round_score(cls, v):
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return int(round(v))
        return v

    @field_validator(
        "strengths", "weaknesses", "tailoring_instructions",
        "resume_tailoring_instructions", "cover_letter_tailoring_instructions",
        "recommended_block_ids",
        mode="before",
    )
    @classmethod
    def lists_default_empty(cls, v):
        return _none_to_list(v)

    @field_validator("distilled_job", mode="before")
    @classmethod
    def distilled_job_default(cls, v):
        return {} if v is None else v


# ============================================================================
# Resume inputs
# ============================================================================

class ExperienceBlock(CamelModel):
    """One job, degree, or project on a resume."""
    id: str
    type: str = "work"
    title: str = ""
    organization: str = ""
    date_range: str = ""
    bullets: List[str] = Field(default_factory=list)
    is_visible: bool = True


class ResumeProfile(CamelModel):
    id: str
    name: str = ""
    blocks: List[ExperienceBlock] = Field(default_factory=list)

    @property
    def visible_blocks(self) -> List[ExperienceBlock]:
        return [block for block in self.blocks if block.is_visible]


class CustomSkill(CamelModel):
    name: str
    proficiency: str = Field("comfortable", description="learning | comfortable | expert")
