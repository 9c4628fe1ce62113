"""End-to-end job fit flow: services -> ProxyClient -> relay -> Gemini."""

import asyncio
import json
from unittest.mock import patch

import pytest

from jobfit.services.ai.cover_letter_agent import CoverLetterAgent
from jobfit.services.ai.inference_client import ProxyClient
from jobfit.services.ai.job_analysis import JobAnalysisService
from jobfit.services.ai.model_resolver import FLASH_MODEL, PRO_MODEL
from jobfit.services.ai.types import InferenceResult, TokenUsage
from jobfit.schemas import CritiqueDecision

JOB_POSTING = """Acme Corp - Senior Backend Engineer (Remote)
We build payment APIs in Go on Postgres. You will own services end to end.
Apply now! Cookie settings | Privacy"""

EXTRACTION = {
    "roleTitle": "Senior Backend Engineer",
    "companyName": "Acme Corp",
    "location": "Remote",
    "keySkills": ["Go", "Postgres"],
    "coreResponsibilities": ["Own payment services"],
    "category": "technical",
    "canonicalTitle": "Backend Engineer",
    "isAiBanned": False,
    "aiBanReason": None,
    "cleanedDescription": "We build payment APIs in Go on Postgres. You will own services end to end.",
}

ANALYSIS = {
    "compatibilityScore": 86.4,
    "bestResumeProfileId": "resume-1",
    "reasoning": "Five years of Go on Postgres.",
    "strengths": ["Go services (BLOCK_ID: blk-1)"],
    "weaknesses": ["No payments domain"],
    "distilledJob": {"keySkills": ["Go", "Postgres", "gRPC"], "isAiBanned": True},
    "recommendedBlockIds": ["blk-1"],
}


class ScriptedGemini:
    """
    Replaces DirectClient inside the relay.

    Answers by prompt persona. ``failures`` holds messages raised on the
    first calls, before any answer is produced.
    """

    calls = []
    failures = []

    def __init__(self, api_key):
        self.api_key = api_key

    async def generate(self, request):
        prompt = request.prompt_text
        ScriptedGemini.calls.append((request.model_id, prompt))
        if ScriptedGemini.failures:
            raise RuntimeError(ScriptedGemini.failures.pop(0))

        if "strict technical hiring manager" in prompt:
            text = json.dumps({"decision": "Strong", "strengths": ["Specific"], "feedback": [], "hallucinationAlerts": []})
        elif "ruthless technical recruiter" in prompt:
            text = "```json\n" + json.dumps(ANALYSIS) + "\n```"
        elif "Extract key info" in prompt:
            text = json.dumps(EXTRACTION)
        else:
            text = "Dear Acme Corp,\nI have built Go services on Postgres for five years. (BLOCK_ID: blk-1)"
        return InferenceResult(raw_text=text, token_usage=TokenUsage(total_tokens=100))


class RelayTransport:
    """
    Sends ProxyClient's HTTP calls to a Flask test client.

    The client must not preserve request contexts: calls arrive from worker
    threads.
    """

    def __init__(self, client):
        self.client = client

    def __call__(self, url, json=None, headers=None, timeout=None):
        response = self.client.post("/api/ai/generate", json=json, headers=headers)
        return _Response(response)


class _Response:
    def __init__(self, response):
        self.status_code = response.status_code
        self.ok = response.status_code < 400
        self.reason = response.status
        self._body = response.get_json()

    def json(self):
        return self._body


@pytest.fixture
def relay(app):
    """Relay wired to the scripted Gemini, serving a pro caller."""
    app.config["GEMINI_API_KEY"] = "server-key"
    app.config["TIER_RESOLVER"] = lambda req: "pro"
    ScriptedGemini.calls = []
    ScriptedGemini.failures = []
    with patch("jobfit.routes.relay_routes.DirectClient", ScriptedGemini), \
            patch("jobfit.services.ai.inference_client.requests.post", RelayTransport(app.test_client())):
        yield app


def proxy_factory(task):
    return ProxyClient("http://relay.test/api/ai/generate", task=task)


def run(telemetry, coro):
    async def scenario():
        try:
            return await coro
        finally:
            await telemetry.flush()
    return asyncio.run(scenario())


@pytest.mark.integration
class TestJobFitFlow:
    """Test the analysis and cover letter services through the relay."""

    def test_analysis_through_relay(self, relay, executor, telemetry, sink, resume):
        """Test extraction and analysis merge into one result."""
        service = JobAnalysisService(executor, tier="pro", client_factory=proxy_factory)

        result = run(telemetry, service.analyze_job_fit(JOB_POSTING, [resume], job_id="job-1"))

        assert result.compatibility_score == 86
        assert result.best_resume_profile_id == "resume-1"
        assert result.distilled_job.company_name == "Acme Corp"
        assert result.distilled_job.key_skills == ["Go", "Postgres", "gRPC"]
        # The extraction scan decides AI-ban status
        assert result.distilled_job.is_ai_banned is False
        assert "Cookie settings" not in result.cleaned_description
        assert all("BLOCK_ID" not in s for s in result.strengths)

        models = [model for model, _ in ScriptedGemini.calls]
        assert models == [FLASH_MODEL, PRO_MODEL]

        usage = relay.extensions["telemetry_store"].get_usage(None)
        assert usage == {"request_count": 2, "total_tokens": 200}

        assert {r["job_id"] for r in sink.records} == {"job-1"}
        assert all(r["status"] == "success" for r in sink.records)

    def test_rate_limited_relay_call_is_retried(self, relay, executor, telemetry, sink, sleeper, resume):
        """Test a provider 429 behind the relay backs off and retries."""
        ScriptedGemini.failures = ["429 Resource exhausted"]
        service = JobAnalysisService(executor, tier="pro", client_factory=proxy_factory)
        progress = []

        result = run(telemetry, service.analyze_job_fit(
            JOB_POSTING, [resume], on_progress=lambda message, attempt, total: progress.append(message),
        ))

        assert result.compatibility_score == 86
        assert sleeper.delays == [1.0]
        assert len(ScriptedGemini.calls) == 3
        assert progress[0] == "Extracting job details..."
        assert any(message.startswith("Too busy right now") for message in progress)

    def test_cover_letter_through_relay(self, relay, executor, telemetry, resume):
        """Test a pro user's letter is drafted, critiqued and accepted."""
        agent = CoverLetterAgent(executor, tier="pro", client_factory=proxy_factory, max_retries=2)

        result = run(telemetry, agent.generate_with_quality(
            JOB_POSTING, resume, ["Open with the payments angle"],
        ))

        assert result.decision is CritiqueDecision.STRONG
        assert result.attempts == 1
        assert result.text.startswith("Dear Acme Corp")
        assert "BLOCK_ID" not in result.text
        assert [model for model, _ in ScriptedGemini.calls] == [PRO_MODEL, PRO_MODEL]
