"""
Prompt templates for the job analysis and cover letter services.

Every template is a plain function returning the prompt string, so callers
can log exactly what was sent.
"""
from typing import Iterable, Optional

from config.settings import settings


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _truncate(text: str, limit: Optional[int] = None) -> str:
    limit = limit or settings.max_job_description_length
    return (text or "")[:limit]


# ============================================================================
# Job analysis
# ============================================================================

def job_extraction_prompt(raw_job_text: str) -> str:
    return f"""Extract key info from this job posting:
{_truncate(raw_job_text)}

Return JSON with these fields:
- "roleTitle", "companyName", "location", "referenceCode", "applicationDeadline", "salaryRange"
- "keySkills": 5-8 priority skills found in the posting
- "coreResponsibilities": 4-6 primary duties
- "cleanedDescription": the posting text without navigation, ads or boilerplate

CATEGORY: Classify the job into one of these categories:
- 'technical': Software Engineering, Data Science, DevOps, IT, etc.
- 'managerial': Product Manager, Team Lead, VP, Director (non-technical).
- 'general': Marketing, Sales, HR, Customer Service, etc.
Also return "canonicalTitle": the standard industry name for this role
(e.g. "Senior Software Engineer" for "Rockstar Code Ninja III").

SECURITY SCAN:
Look for text explicitly prohibiting 'AI', 'ChatGPT', 'LLMs', 'Generative AI',
or requiring 'original work without assistance'.
- If found, set "isAiBanned": true and "aiBanReason": quote the prohibition policy.
- Otherwise, set "isAiBanned": false.

Return ONLY valid JSON with "category", "canonicalTitle", "isAiBanned" and "aiBanReason" included."""


_ANALYSIS_OUTPUT_SCHEMA = """OUTPUT SCHEMA:
Return ONLY valid JSON matching this structure.
You MUST populate "keySkills" and "coreResponsibilities" even for brief job descriptions.
{
  "compatibilityScore": number (0-100),
  "reasoning": "Concise professional insight (max 2 sentences)",
  "strengths": ["3-4 specific match points"],
  "weaknesses": ["2-3 specific gaps or missing qualifications"],
  "distilledJob": {
    "roleTitle": "Official title",
    "companyName": "Company name",
    "location": "City, State or Remote",
    "referenceCode": "Job ID if found, otherwise null",
    "keySkills": ["5-8 priority skills"],
    "requiredSkills": [{"name": "Skill", "level": "learning" | "comfortable" | "expert"}],
    "coreResponsibilities": ["4-6 primary duties"]
  },
  "resumeTailoringInstructions": ["3-4 bullet points on how to adjust the resume"],
  "coverLetterTailoringInstructions": ["3-4 bullet points for the cover letter strategy"],
  "recommendedBlockIds": ["IDs of the resume blocks most relevant to this job"]
}"""


def technical_analysis_prompt(job_description: str, resume_context: str) -> str:
    return f"""You are a ruthless technical recruiter. Your job is to screen candidates for this role.

INPUT DATA:
1. RAW JOB TEXT:
"{_truncate(job_description)}"

2. MY EXPERIENCE PROFILES (Blocks with IDs):
{resume_context}

TASK:
1. DISTILL: Extract the job text into a structured format.
2. ANALYZE: Compare the job to my experience blocks with extreme scrutiny.
   Prioritize hard skill stacks and project complexity.
3. PROFICIENCY: For "requiredSkills", categorize based on language:
   - 'learning': familiarity, exposure, junior-level intro.
   - 'comfortable': proficient, 2-5 years, core part of the job.
   - 'expert': advanced, lead, 5-8+ years, architect-level.
4. MATCH BREAKDOWN: Strengths are PROVEN skills only; weaknesses are MISSING or UNDER-LEVELLED requirements.
5. SCORE: Rate compatibility (0-100). Be harsh.
6. TAILORING: Select only the BLOCK_IDs that are vital to this job. Give concrete instructions.
7. PERSONA: Address the user directly as "You".

{_ANALYSIS_OUTPUT_SCHEMA}"""


def default_analysis_prompt(job_description: str, resume_context: str) -> str:
    return f"""You are a Strategic Career Architect and Hiring Expert. Analyze this candidate's fit for the role with professional objectivity.

INPUT DATA:
1. RAW JOB TEXT:
"{_truncate(job_description)}"

2. CANDIDATE CONTEXT (Resume, Skills, & Academics):
{resume_context}

TASK:
1. DISTILL: Extract the job requirements into a structured format.
2. DOMAIN-AWARE ANALYSIS:
   - Licensed/regulated roles: prioritize certifications and compliance.
   - Creative roles: prioritize portfolio impact and tool mastery.
   - Entry-level or academic roles: use academic background in place of missing work experience.
3. GROUNDING RULE: Only credit skills and experience explicitly present in the candidate context.
4. MATCH BREAKDOWN: Identify key strengths and honest gaps.
5. SCORE: Rate compatibility (0-100) based on hard evidence.

{_ANALYSIS_OUTPUT_SCHEMA}"""


def analysis_prompt(category: Optional[str], job_description: str, resume_context: str) -> str:
    """Pick the analysis template for a job category."""
    if category == "technical":
        return technical_analysis_prompt(job_description, resume_context)
    return default_analysis_prompt(job_description, resume_context)


def tailored_summary_prompt(job_description: str, resume_context: str) -> str:
    return f"""You are an expert resume writer.
Write a 2-3 sentence "Professional Summary" for the top of my resume.

TARGET JOB:
{_truncate(job_description, 5000)}

MY BACKGROUND:
{resume_context}

INSTRUCTIONS:
- Pitch me as the right candidate for THIS specific role.
- Use keywords from the job description.
- Keep it concise and confident (facts, no "I believe").
- Do NOT return "N/A" or empty text. If the resume is weak, pitch me as an "Aspiring [Role Name]".
- Return a JSON object: {{"summary": "Text..."}}"""


def tailor_block_prompt(
    job_description: str,
    title: str,
    organization: str,
    bullets: Iterable[str],
    instructions: Iterable[str],
) -> str:
    return f"""You are an expert resume writer.
Rewrite the bullet points for this job experience to match the target job description.

TARGET JOB:
{_truncate(job_description, 3000)}

MY EXPERIENCE BLOCK:
Title: {title}
Company: {organization}
Original Bullets:
{_bullets(bullets)}

TAILORING INSTRUCTIONS (Strategy):
{chr(10).join(instructions)}

TASKS:
1. Rewrite the bullets to use keywords from the target job.
2. Shift the focus to relevant skills.
3. Quantify impact where possible.
4. Keep the same number of bullets (or fewer if some are irrelevant).
5. Tone: action-oriented, professional.

Return ONLY a JSON array of strings: ["bullet 1", "bullet 2"]"""


# ============================================================================
# Cover letters
# ============================================================================

COVER_LETTER_VARIANTS = {
    "v1": """You are a Strategic Career Architect. Write a professional, high-impact and substantial cover letter.

INSTRUCTIONS:
- Grounding Rule: Use ONLY evidence from the provided resume blocks. Do NOT invent skills or experience.
- Never repeat the same specific metric more than once.
- Avoid generic filler phrasing ("look no further", "passion for").
- Structure: the hook, the evidence, strategic alignment, a brief confident close.
- Do not open with "I am writing to apply".
- Do NOT include any (BLOCK_ID: ...) citations in the final text.""",
    "v2": """You are a Career Architect helping a candidate stand out with narrative. Write a detailed letter that tells a professional story.

INSTRUCTIONS:
- Grounding Rule: Use ONLY evidence from the provided resume blocks. Do NOT invent skills or experience.
- Open with the company's mission or a problem they are solving.
- Pivot to a similar challenge from my experience, woven into the story.
- Never repeat the same specific metric more than once.
- Do NOT include any (BLOCK_ID: ...) citations in the final text.""",
}

DEFAULT_COVER_LETTER_VARIANT = "v1"


def cover_letter_prompt(
    job_description: str,
    resume_text: str,
    instructions: Iterable[str],
    additional_context: Optional[str] = None,
    variant: str = DEFAULT_COVER_LETTER_VARIANT,
) -> str:
    template = COVER_LETTER_VARIANTS.get(variant, COVER_LETTER_VARIANTS[DEFAULT_COVER_LETTER_VARIANT])
    context_section = ""
    if additional_context:
        context_section = f"""
MY ADDITIONAL CONTEXT (Important):
{additional_context}
Include this context naturally if relevant to the job requirements.
"""
    return f"""{template}

JOB DESCRIPTION:
{_truncate(job_description)}

MY EXPERIENCE:
{resume_text}

STRATEGY:
{chr(10).join(instructions)}
{context_section}
FINAL CHECK:
- Ensure no (BLOCK_ID) tags remain in the output.
- Does this letter repeat any specific metric more than once? If yes, remove the repetition."""


def critique_prompt(job_description: str, cover_letter: str, resume_context: str) -> str:
    return f"""You are a strict technical hiring manager. Review this cover letter against the candidate's actual resume for the job below.

JOB:
{_truncate(job_description, 5000)}

CANDIDATE RESUME (Source of Truth):
{resume_context}

CANDIDATE LETTER:
{cover_letter}

TASK: Would you interview this person based on this letter and their resume?
Be extremely critical. If the letter claims achievements NOT found in the resume, it is a "Reject".

CRITERIA:
1. Truthfulness: any claim not found in the resume is a hallucination (Reject).
2. Metric uniqueness: the same specific stat repeated twice is Weak.
3. Grounding: every core claim must be traceable to a resume block.
4. Substance: a cohesive, tailored narrative rather than a bullet-to-paragraph mapping.

Return JSON:
{{
  "decision": "Reject" | "Weak" | "Average" | "Strong" | "Exceptional",
  "strengths": ["string"],
  "feedback": ["what to fix to reach 'Strong' or 'Exceptional'"],
  "hallucinationAlerts": ["claims not supported by the resume"]
}}"""


def improvement_directive(decision_label: str, feedback: Iterable[str], hallucination_alerts: Iterable[str]) -> str:
    """Revision instructions appended to the context of the next draft."""
    alerts = list(hallucination_alerts)
    directive = f"""PREVIOUS DECISION: {decision_label}
CRITIQUE FEEDBACK: {"; ".join(feedback)}"""
    if alerts:
        directive += f"""
UNSUPPORTED CLAIMS (remove them): {"; ".join(alerts)}"""
    directive += """
STRICT INSTRUCTION: Fix these specific issues. Do not regress on strengths."""
    return directive
