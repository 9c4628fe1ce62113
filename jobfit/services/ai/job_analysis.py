"""
Job Fit Analysis Service

Two-phase pipeline over a job posting:
1. Extraction - cheap, low-temperature pass for role, company, category,
   canonical title and the AI-usage safety scan
2. Analysis - tier-dependent model scores the candidate's resumes against
   the job and produces tailoring guidance

The phases are merged field by field (see ``merge_distilled_job``).
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from jobfit.schemas import CustomSkill, DistilledJob, ExperienceBlock, JobAnalysis, ResumeProfile
from jobfit.services.ai import prompts
from jobfit.services.ai.base_service import BaseAIService
from jobfit.services.ai.errors import AnalysisValidationFailure, OutputParseFailure
from jobfit.services.ai.model_resolver import TaskClass
from jobfit.services.ai.output_sanitizer import parse_json_output, strip_block_ids
from jobfit.services.ai.retry_executor import RetryProgressCallback
from jobfit.services.ai.types import TEMPERATURE_BALANCED, TEMPERATURE_STRICT

logger = logging.getLogger(__name__)

# Extraction phase wins for these whenever it produced a value
SAFETY_FIELDS = ("is_ai_banned", "ai_ban_reason")
# Analysis phase wins for these only when non-empty
LIST_FIELDS = ("key_skills", "core_responsibilities")


# ============================================================================
# Merge rules
# ============================================================================

def merge_distilled_job(extraction: DistilledJob, analysis: DistilledJob) -> DistilledJob:
    """
    Merge the distilled job of both phases.

    - Safety fields: extraction value if not None, else analysis value
    - Key skills / responsibilities: analysis value if non-empty, else extraction value
    - Everything else: analysis overlays extraction where it provided a value
    """
    merged: Dict[str, Any] = extraction.model_dump()

    for name, value in analysis.model_dump(exclude_unset=True).items():
        if name in SAFETY_FIELDS or name in LIST_FIELDS or value is None:
            continue
        merged[name] = value

    for name in SAFETY_FIELDS:
        extracted = getattr(extraction, name)
        merged[name] = extracted if extracted is not None else getattr(analysis, name)

    for name in LIST_FIELDS:
        analysed = getattr(analysis, name)
        merged[name] = list(analysed) if analysed else list(getattr(extraction, name))

    return DistilledJob.model_validate(merged)


def merge_job_analysis(extraction: JobAnalysis, analysis: JobAnalysis) -> JobAnalysis:
    """Overlay the analysis phase on the extraction phase."""
    merged: Dict[str, Any] = extraction.model_dump()
    for name, value in analysis.model_dump(exclude_unset=True).items():
        if name == "distilled_job" or value is None:
            continue
        merged[name] = value

    merged["distilled_job"] = merge_distilled_job(extraction.distilled_job, analysis.distilled_job)
    return JobAnalysis.model_validate(merged)


def validate_job_analysis(result: JobAnalysis) -> JobAnalysis:
    """
    Reject a merged analysis that carries no insight.

    Raises:
        AnalysisValidationFailure: No compatibility score and no key skills
    """
    if result.compatibility_score is None and not result.distilled_job.key_skills:
        raise AnalysisValidationFailure(
            "AI analysis produced no meaningful insight (no score and no key skills). Please try again."
        )
    return result


# ============================================================================
# Prompt inputs
# ============================================================================

def stringify_profile(profile: ResumeProfile) -> str:
    """Render the visible blocks of a resume with their BLOCK_IDs."""
    sections = []
    for block in profile.visible_blocks:
        bullets = "\n".join(f"- {bullet}" for bullet in block.bullets)
        sections.append(
            f"BLOCK_ID: {block.id}\nROLE: {block.title}\nORG: {block.organization}\n"
            f"DATE: {block.date_range}\nDETAILS:\n{bullets}\n"
        )
    return "\n---\n".join(sections)


def build_resume_context(resumes: Sequence[ResumeProfile], user_skills: Iterable[CustomSkill] = ()) -> str:
    context = "\n---\n".join(stringify_profile(resume) for resume in resumes)
    skills = list(user_skills)
    if skills:
        skill_lines = "\n".join(f"- {skill.name}: {skill.proficiency}" for skill in skills)
        context += f"\nADDITIONAL SKILLS:\n{skill_lines}"
    return context


def _distilled_job_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    job_data = dict(data.get("distilledJob") or {})
    for key, value in data.items():
        if key in ("distilledJob", "cleanedDescription", "cleaned_description"):
            continue
        job_data.setdefault(key, value)
    return job_data


def _parse_extraction(raw_text: str) -> Dict[str, Any]:
    data = parse_json_output(raw_text)
    if not isinstance(data, dict):
        raise OutputParseFailure("Job extraction did not return a JSON object")
    # Build the result once here so a malformed answer fails inside the retry loop
    extraction_to_analysis(data, raw_text)
    return data


def _parse_analysis(raw_text: str) -> JobAnalysis:
    data = parse_json_output(strip_block_ids(raw_text))
    if not isinstance(data, dict):
        raise OutputParseFailure("Job analysis did not return a JSON object")
    return JobAnalysis.model_validate(data)


def _parse_summary(raw_text: str) -> str:
    data = parse_json_output(strip_block_ids(raw_text))
    summary = data.get("summary") if isinstance(data, dict) else None
    if not summary or not isinstance(summary, str):
        raise OutputParseFailure("Tailored summary response had no 'summary' text")
    return summary.strip()


def _parse_bullets(raw_text: str) -> List[str]:
    data = parse_json_output(raw_text)
    if not isinstance(data, list):
        raise OutputParseFailure("Block tailoring did not return a JSON array")
    return [strip_block_ids(str(item)).strip() for item in data if str(item).strip()]


def extraction_to_analysis(data: Dict[str, Any], raw_job_text: str) -> JobAnalysis:
    """
    Build the extraction-phase result.

    The model may nest the job under ``distilledJob`` or return it flat; top
    level fields fill in whatever the nested object lacks.
    """
    cleaned = data.get("cleanedDescription") or data.get("cleaned_description") or raw_job_text
    return JobAnalysis(
        distilled_job=DistilledJob.model_validate(_distilled_job_fields(data)),
        cleaned_description=cleaned,
    )


class JobAnalysisService(BaseAIService):
    """Job extraction, fit analysis and resume tailoring for one user tier."""

    async def extract_job_info(
        self,
        raw_job_text: str,
        job_id: Optional[str] = None,
        on_progress: Optional[RetryProgressCallback] = None,
    ) -> Dict[str, Any]:
        """
        Run the extraction pass over raw posting text.

        Returns:
            Parsed JSON with the distilled fields, category, canonical title
            and safety scan result
        """
        return await self._run(
            event_type="job_extraction",
            task=TaskClass.EXTRACTION,
            prompt=prompts.job_extraction_prompt(raw_job_text),
            parse=_parse_extraction,
            temperature=TEMPERATURE_STRICT,
            response_format="json",
            job_id=job_id,
            on_progress=on_progress,
        )

    async def analyze_job_fit(
        self,
        job_description: str,
        resumes: Sequence[ResumeProfile],
        user_skills: Iterable[CustomSkill] = (),
        on_progress: Optional[RetryProgressCallback] = None,
        job_id: Optional[str] = None,
    ) -> JobAnalysis:
        """
        Extract the job, then score the resumes against it.

        With no resumes only the extraction phase runs and its result is
        returned unvalidated.

        Raises:
            AnalysisValidationFailure: Merged result has no score and no skills
            AIServiceError: Any terminal inference failure
        """
        if on_progress:
            on_progress("Extracting job details...", 1, 2)
        extracted = await self.extract_job_info(job_description, job_id=job_id, on_progress=on_progress)
        extraction = extraction_to_analysis(extracted, job_description)

        if not resumes:
            return extraction

        if on_progress:
            on_progress("Analyzing your fit...", 2, 2)

        category = extraction.distilled_job.category or "general"
        prompt = prompts.analysis_prompt(
            category,
            extraction.cleaned_description or job_description,
            build_resume_context(resumes, user_skills),
        )
        analysis = await self._run(
            event_type="analysis",
            task=TaskClass.ANALYSIS,
            prompt=prompt,
            parse=_parse_analysis,
            temperature=TEMPERATURE_BALANCED,
            response_format="json",
            job_id=job_id,
            on_progress=on_progress,
        )

        result = validate_job_analysis(merge_job_analysis(extraction, analysis))
        logger.info(
            f"Job analysis complete: score={result.compatibility_score}, "
            f"category={category}, skills={len(result.distilled_job.key_skills)}"
        )
        return result

    async def generate_tailored_summary(
        self,
        job_description: str,
        resumes: Sequence[ResumeProfile],
        job_id: Optional[str] = None,
    ) -> str:
        """Write a 2-3 sentence professional summary aimed at this job."""
        prompt = prompts.tailored_summary_prompt(job_description, build_resume_context(resumes))
        return await self._run(
            event_type="tailored_summary",
            task=TaskClass.EXTRACTION,
            prompt=prompt,
            parse=_parse_summary,
            response_format="json",
            job_id=job_id,
        )

    async def tailor_experience_block(
        self,
        block: ExperienceBlock,
        job_description: str,
        instructions: Iterable[str],
        job_id: Optional[str] = None,
    ) -> List[str]:
        """Rewrite one block's bullets for the target job."""
        prompt = prompts.tailor_block_prompt(
            job_description,
            block.title,
            block.organization,
            block.bullets,
            instructions,
        )
        return await self._run(
            event_type="tailor_block",
            task=TaskClass.ANALYSIS,
            prompt=prompt,
            parse=_parse_bullets,
            response_format="json",
            job_id=job_id,
        )
