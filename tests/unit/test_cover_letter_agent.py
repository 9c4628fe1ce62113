"""Tests for the cover letter critique/revise loop."""

import asyncio
import json

import pytest

from jobfit.schemas import CritiqueDecision, CritiqueResult
from jobfit.services.ai.cover_letter_agent import CoverLetterAgent
from jobfit.services.ai.errors import ProviderError
from jobfit.services.ai.types import InferenceResult


def critique(decision, feedback=("Be more specific",), alerts=()):
    return json.dumps({
        "decision": decision,
        "strengths": ["Clear hook"],
        "feedback": list(feedback),
        "hallucinationAlerts": list(alerts),
    })


class LetterClient:
    """
    Fake client answering generation and critique prompts separately.

    Drafts are numbered so tests can tell which one was returned.
    """

    def __init__(self, decisions, fail_critique=False):
        self.decisions = list(decisions)
        self.fail_critique = fail_critique
        self.generations = []
        self.critiques = []

    async def generate(self, request):
        prompt = request.prompt_text
        if "strict technical hiring manager" in prompt:
            if self.fail_critique:
                raise RuntimeError("Critique model unavailable")
            decision = self.decisions[min(len(self.critiques), len(self.decisions) - 1)]
            self.critiques.append(prompt)
            return InferenceResult(raw_text=critique(decision, alerts=["Claims Kafka expertise"]))

        self.generations.append(prompt)
        return InferenceResult(raw_text=f"Dear Acme, draft {len(self.generations)} (BLOCK_ID: blk-1)")


def run_agent(telemetry, agent, **kwargs):
    async def scenario():
        try:
            return await agent.generate_with_quality(
                "Acme needs a Go engineer", kwargs.pop("resume"), ["Lead with Go"], **kwargs
            )
        finally:
            await telemetry.flush()

    return asyncio.run(scenario())


@pytest.mark.unit
class TestCritiqueDecision:
    """Test decision parsing and ordering."""

    @pytest.mark.parametrize("value,expected", [
        ("Strong", CritiqueDecision.STRONG),
        ("exceptional", CritiqueDecision.EXCEPTIONAL),
        (" weak ", CritiqueDecision.WEAK),
        ("interview", CritiqueDecision.REJECT),
        (None, CritiqueDecision.REJECT),
    ])
    def test_parse(self, value, expected):
        """Test labels parse case-insensitively with reject as fallback."""
        assert CritiqueDecision.parse(value) is expected

    def test_ordering_and_threshold(self):
        """Test only Strong and Exceptional are satisfactory."""
        assert CritiqueDecision.REJECT < CritiqueDecision.WEAK < CritiqueDecision.AVERAGE
        assert not CritiqueDecision.AVERAGE.is_satisfactory
        assert CritiqueDecision.STRONG.is_satisfactory
        assert CritiqueDecision.EXCEPTIONAL.label == "Exceptional"

    def test_critique_result_from_model_output(self):
        """Test camelCase model output is accepted."""
        result = CritiqueResult.model_validate(json.loads(critique("Average", alerts=["x"])))
        assert result.decision is CritiqueDecision.AVERAGE
        assert result.hallucination_alerts == ["x"]


@pytest.mark.unit
class TestGenerateWithQuality:
    """Test CoverLetterAgent.generate_with_quality."""

    @pytest.mark.parametrize("tier", ["free", "plus"])
    def test_fast_path_skips_critique(self, executor, telemetry, resume, tier):
        """Test low tiers get one draft tagged Average."""
        client = LetterClient(["Strong"])
        agent = CoverLetterAgent(executor, tier=tier, client_factory=lambda task: client, max_retries=2)

        result = run_agent(telemetry, agent, resume=resume)

        assert len(client.generations) == 1
        assert client.critiques == []
        assert result.decision is CritiqueDecision.AVERAGE
        assert result.attempts == 1
        assert "BLOCK_ID" not in result.text

    def test_strong_on_first_critique_stops(self, executor, telemetry, resume):
        """Test a satisfactory first draft is returned after one critique."""
        client = LetterClient(["Strong"])
        agent = CoverLetterAgent(executor, tier="pro", client_factory=lambda task: client, max_retries=2)

        result = run_agent(telemetry, agent, resume=resume)

        assert (len(client.generations), len(client.critiques)) == (1, 1)
        assert result.decision is CritiqueDecision.STRONG
        assert result.attempts == 1

    def test_strong_on_second_critique(self, executor, telemetry, resume):
        """Test one revision happens before the draft passes."""
        client = LetterClient(["Weak", "Strong"])
        agent = CoverLetterAgent(executor, tier="admin", client_factory=lambda task: client, max_retries=2)

        result = run_agent(telemetry, agent, resume=resume, additional_context="Relocating to Berlin")

        assert (len(client.generations), len(client.critiques)) == (2, 2)
        assert result.attempts == 2
        assert result.decision is CritiqueDecision.STRONG
        assert result.text.startswith("Dear Acme, draft 2")

        revision_prompt = client.generations[1]
        assert "PREVIOUS DECISION: Weak" in revision_prompt
        assert "Be more specific" in revision_prompt
        assert "Claims Kafka expertise" in revision_prompt
        assert "Do not regress on strengths" in revision_prompt
        assert "Relocating to Berlin" in revision_prompt

    def test_never_satisfied_is_bounded(self, executor, telemetry, resume):
        """Test the loop stops after max_retries revisions with the last draft."""
        client = LetterClient(["Weak"])
        agent = CoverLetterAgent(executor, tier="pro", client_factory=lambda task: client, max_retries=2)

        result = run_agent(telemetry, agent, resume=resume)

        assert len(client.generations) == 3
        assert len(client.critiques) == 3
        assert result.attempts == 3
        assert result.decision is CritiqueDecision.WEAK
        assert result.text.startswith("Dear Acme, draft 3")

    def test_zero_retries_means_single_critique(self, executor, telemetry, resume):
        """Test max_retries=0 critiques once and returns."""
        client = LetterClient(["Reject"])
        agent = CoverLetterAgent(executor, tier="tester", client_factory=lambda task: client, max_retries=0)

        result = run_agent(telemetry, agent, resume=resume)

        assert (len(client.generations), len(client.critiques)) == (1, 1)
        assert result.decision is CritiqueDecision.REJECT

    def test_tier_argument_overrides_service_tier(self, executor, telemetry, resume):
        """Test a per-call tier selects the fast path."""
        client = LetterClient(["Weak"])
        agent = CoverLetterAgent(executor, tier="pro", client_factory=lambda task: client, max_retries=2)

        result = run_agent(telemetry, agent, resume=resume, tier="free")

        assert client.critiques == []
        assert result.attempts == 1

    def test_critique_failure_propagates(self, executor, telemetry, resume):
        """Test a failing critique aborts the loop."""
        client = LetterClient(["Weak"], fail_critique=True)
        agent = CoverLetterAgent(executor, tier="pro", client_factory=lambda task: client, max_retries=2)

        with pytest.raises(ProviderError):
            run_agent(telemetry, agent, resume=resume)

        assert len(client.generations) == 1

    def test_progress_messages(self, executor, telemetry, resume):
        """Test each stage is reported."""
        client = LetterClient(["Average", "Exceptional"])
        agent = CoverLetterAgent(executor, tier="pro", client_factory=lambda task: client, max_retries=2)
        messages = []

        run_agent(telemetry, agent, resume=resume, on_progress=messages.append)

        assert messages == [
            "Drafting initial cover letter...",
            "Critiquing draft (Attempt 1)...",
            "Refining based on feedback (Decision: Average)...",
            "Critiquing draft (Attempt 2)...",
        ]
