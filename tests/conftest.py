"""Pytest configuration and fixtures."""

import os
import sys
from typing import List

import pytest

# Add the parent directory to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from config.testing import TestingConfig
from jobfit import create_app
from jobfit.schemas import ExperienceBlock, ResumeProfile
from jobfit.services.ai.retry_executor import RetryExecutor
from jobfit.services.ai.telemetry import TelemetryLogger
from jobfit.services.ai.types import InferenceResult, RetryPolicy, TokenUsage


class RecordingSink:
    """Telemetry sink that keeps everything in memory."""

    def __init__(self):
        self.records: List[dict] = []
        self.usage: List[tuple] = []

    def write_log(self, record):
        self.records.append(record)

    def increment_usage(self, user_id, tokens):
        self.usage.append((user_id, tokens))


class FakeInferenceClient:
    """
    Inference client replaying scripted outcomes.

    Each scripted item is either response text or an exception to raise.
    The last item repeats once the script runs out.
    """

    def __init__(self, *outcomes, tokens: int = 10):
        self.outcomes = list(outcomes)
        self.tokens = tokens
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return InferenceResult(raw_text=outcome, token_usage=TokenUsage(total_tokens=self.tokens))


class SleepRecorder:
    """Stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def sink():
    """In-memory telemetry sink."""
    return RecordingSink()


@pytest.fixture
def telemetry(sink):
    """Telemetry logger attributing every entry to user-1."""
    return TelemetryLogger(sink, user_id_provider=lambda: "user-1")


@pytest.fixture
def sleeper():
    """Recorded backoff sleeps."""
    return SleepRecorder()


@pytest.fixture
def executor(telemetry, sleeper):
    """Retry executor with 3 attempts starting at 1s, doubling."""
    policy = RetryPolicy(max_attempts=3, initial_delay_ms=1000, backoff_multiplier=2)
    return RetryExecutor(telemetry, policy=policy, sleep=sleeper)


@pytest.fixture
def resume():
    """Resume with one hidden block."""
    return ResumeProfile(
        id="resume-1",
        name="Backend",
        blocks=[
            ExperienceBlock(
                id="blk-1",
                title="Senior Backend Engineer",
                organization="Initech",
                date_range="2019 - 2024",
                bullets=["Built Go services on Postgres", "Cut p99 latency by 40%"],
            ),
            ExperienceBlock(
                id="blk-2",
                title="Barista",
                organization="Cafe",
                date_range="2015",
                bullets=["Made coffee"],
                is_visible=False,
            ),
        ],
    )


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app(config=TestingConfig)
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as client:
        with app.app_context():
            yield client
