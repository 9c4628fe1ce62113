"""
Cover Letter Agent

Generates a cover letter and, for tiers that pay for it, improves it with a
critique/revise loop:

    draft -> critique -> (Strong or better? done) -> revise with feedback -> critique ...

The loop is bounded by ``max_retries`` revisions. Failures of a generation or
critique call are not retried here (the retry executor already did that for
the individual inference call) and abort the whole operation.
"""
import logging
from typing import Callable, Iterable, List, Optional, Union

from config.settings import settings
from jobfit.schemas import (
    CoverLetterDraft,
    CoverLetterResult,
    CritiqueDecision,
    CritiqueResult,
    ResumeProfile,
)
from jobfit.services.ai import prompts
from jobfit.services.ai.base_service import BaseAIService, ClientFactory
from jobfit.services.ai.errors import OutputParseFailure
from jobfit.services.ai.job_analysis import stringify_profile
from jobfit.services.ai.model_resolver import TaskClass, UserTier, normalize_tier
from jobfit.services.ai.output_sanitizer import parse_json_output, strip_block_ids
from jobfit.services.ai.retry_executor import RetryExecutor
from jobfit.services.ai.types import TEMPERATURE_CREATIVE, TEMPERATURE_STRICT

logger = logging.getLogger(__name__)

# Tiers that get a single draft without critique
FAST_PATH_TIERS = frozenset({UserTier.FREE, UserTier.PLUS})

# Stage updates for the caller's UI
ProgressCallback = Callable[[str], None]


def _parse_critique(raw_text: str) -> CritiqueResult:
    data = parse_json_output(raw_text)
    if not isinstance(data, dict):
        raise OutputParseFailure("Critique did not return a JSON object")
    return CritiqueResult.model_validate(data)


class CoverLetterAgent(BaseAIService):
    """Cover letter generation with optional self-critique."""

    def __init__(
        self,
        executor: RetryExecutor,
        tier: Union[UserTier, str, None] = UserTier.FREE,
        client_factory: Optional[ClientFactory] = None,
        max_retries: Optional[int] = None,
    ):
        super().__init__(executor, tier=tier, client_factory=client_factory)
        self.max_retries = settings.agent_loop_max_retries if max_retries is None else max_retries

    async def generate_cover_letter(
        self,
        job_description: str,
        resume: ResumeProfile,
        instructions: Iterable[str],
        additional_context: Optional[str] = None,
        variant: str = prompts.DEFAULT_COVER_LETTER_VARIANT,
        job_id: Optional[str] = None,
    ) -> CoverLetterDraft:
        prompt = prompts.cover_letter_prompt(
            job_description,
            stringify_profile(resume),
            instructions,
            additional_context=additional_context,
            variant=variant,
        )
        text = await self._run(
            event_type="cover_letter",
            task=TaskClass.ANALYSIS,
            prompt=prompt,
            parse=lambda raw: strip_block_ids(raw).strip(),
            temperature=TEMPERATURE_CREATIVE,
            job_id=job_id,
        )
        return CoverLetterDraft(text=text, prompt_version=variant)

    async def critique_cover_letter(
        self,
        job_description: str,
        cover_letter: str,
        resume: ResumeProfile,
        job_id: Optional[str] = None,
    ) -> CritiqueResult:
        """Have a strict hiring-manager persona grade the letter against the resume."""
        return await self._run(
            event_type="critique",
            task=TaskClass.ANALYSIS,
            prompt=prompts.critique_prompt(job_description, cover_letter, stringify_profile(resume)),
            parse=_parse_critique,
            temperature=TEMPERATURE_STRICT,
            response_format="json",
            job_id=job_id,
        )

    async def generate_with_quality(
        self,
        job_description: str,
        resume: ResumeProfile,
        instructions: Iterable[str],
        tier: Union[UserTier, str, None] = None,
        additional_context: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        job_id: Optional[str] = None,
    ) -> CoverLetterResult:
        """
        Generate a cover letter, refining it for tiers above the fast path.

        Args:
            job_description: Target job text
            resume: Resume the letter must be grounded in
            instructions: Cover letter tailoring instructions
            tier: Overrides the service tier for the fast-path decision
            additional_context: Extra user context for the letter
            on_progress: Receives stage messages

        Returns:
            CoverLetterResult with the last draft, its decision and the number
            of drafts generated
        """
        tier = normalize_tier(tier) if tier is not None else self.tier
        instructions: List[str] = list(instructions)

        def progress(message: str) -> None:
            if on_progress:
                on_progress(message)

        progress("Drafting initial cover letter...")
        draft = await self.generate_cover_letter(
            job_description, resume, instructions, additional_context, job_id=job_id
        )
        attempts = 1

        if tier in FAST_PATH_TIERS:
            return CoverLetterResult(
                text=draft.text,
                decision=CritiqueDecision.AVERAGE,
                attempts=attempts,
                prompt_version=draft.prompt_version,
            )

        decision = CritiqueDecision.REJECT
        while attempts <= self.max_retries + 1:
            progress(f"Critiquing draft (Attempt {attempts})...")
            critique = await self.critique_cover_letter(job_description, draft.text, resume, job_id=job_id)
            decision = critique.decision

            if decision.is_satisfactory:
                break
            if attempts > self.max_retries:
                logger.info(
                    f"Cover letter still '{decision.label}' after {attempts} drafts, returning last draft"
                )
                break

            progress(f"Refining based on feedback (Decision: {decision.label})...")
            directive = prompts.improvement_directive(
                decision.label, critique.feedback, critique.hallucination_alerts
            )
            context = f"{additional_context}\n\n{directive}" if additional_context else directive
            draft = await self.generate_cover_letter(
                job_description, resume, instructions, context, job_id=job_id
            )
            attempts += 1

        return CoverLetterResult(
            text=draft.text,
            decision=decision,
            attempts=attempts,
            prompt_version=draft.prompt_version,
        )
