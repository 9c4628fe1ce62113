"""Tests for quota-aware retries around inference calls."""

import asyncio

import pytest

from jobfit.services.ai.errors import (
    DailyQuotaExceeded,
    ErrorKind,
    ProviderError,
    RateLimitExceeded,
    RetryAttemptsExhausted,
    classify_error,
)
from jobfit.services.ai.types import ExecutionContext, TokenUsage
from jobfit.utils.error_messages import ERROR_MESSAGES


def make_context(**kwargs):
    defaults = dict(event_type="analysis", prompt_text="Score me", model_id="gemini-2.0-flash")
    defaults.update(kwargs)
    return ExecutionContext(**defaults)


def scripted(*outcomes):
    """Attempt function replaying outcomes; counts calls."""
    calls = []

    async def fn(metadata):
        outcome = outcomes[min(len(calls), len(outcomes) - 1)]
        calls.append(metadata)
        if isinstance(outcome, BaseException):
            raise outcome
        metadata["token_usage"] = TokenUsage(total_tokens=42)
        return outcome

    fn.calls = calls
    return fn


def run_call(executor, telemetry, fn, context=None, **kwargs):
    """Run call_with_retry and wait for telemetry writes."""
    async def scenario():
        try:
            return await executor.call_with_retry(fn, context or make_context(), **kwargs)
        finally:
            await telemetry.flush()

    return asyncio.run(scenario())


@pytest.mark.unit
class TestClassifyError:
    """Test provider message classification."""

    @pytest.mark.parametrize("message,kind", [
        ("Quota exceeded for metric GenerateRequestsPerDayPerProjectPerModel", ErrorKind.DAILY_QUOTA),
        ("429 Resource has been exhausted (e.g. check quota)", ErrorKind.RATE_LIMIT),
        ("Quota exceeded for requests per minute", ErrorKind.RATE_LIMIT),
        ("High traffic, please retry", ErrorKind.RATE_LIMIT),
        ("400 API key not valid", ErrorKind.OTHER),
        ("", ErrorKind.OTHER),
    ])
    def test_classification(self, message, kind):
        """Test each marker maps to its kind."""
        assert classify_error(message) is kind

    def test_daily_quota_wins_over_rate_limit(self):
        """Test a 429 that mentions PerDay is a daily quota error."""
        assert classify_error("429 quota GenerateRequestsPerDay") is ErrorKind.DAILY_QUOTA


@pytest.mark.unit
class TestCallWithRetry:
    """Test RetryExecutor.call_with_retry."""

    def test_success_first_attempt(self, executor, telemetry, sink, sleeper):
        """Test a successful call is returned and logged once."""
        fn = scripted("ok")
        result = run_call(executor, telemetry, fn)

        assert result == "ok"
        assert len(fn.calls) == 1
        assert sleeper.delays == []
        assert len(sink.records) == 1
        record = sink.records[0]
        assert record["status"] == "success"
        assert record["response_text"] == "ok"
        assert record["user_id"] == "user-1"
        assert record["latency_ms"] >= 0
        assert sink.usage == [("user-1", 42)]

    def test_rate_limit_then_success(self, executor, telemetry, sink, sleeper):
        """Test k-1 backoff sleeps before success on attempt k."""
        fn = scripted(Exception("429 Too Many Requests"), Exception("429 Too Many Requests"), "ok")
        progress = []

        result = run_call(
            executor, telemetry, fn,
            on_progress=lambda msg, attempt, total: progress.append((msg, attempt, total)),
        )

        assert result == "ok"
        assert len(fn.calls) == 3
        assert sleeper.delays == [1.0, 2.0]
        assert [(a, t) for _, a, t in progress] == [(1, 3), (2, 3)]
        assert progress[0][0] == "Too busy right now. Retrying (1/3) in 1s..."
        # Intermediate failures are not written to telemetry
        assert [r["status"] for r in sink.records] == ["success"]

    def test_rate_limit_exhausts_attempts(self, executor, telemetry, sink, sleeper):
        """Test a persistent rate limit uses exactly max attempts."""
        fn = scripted(Exception("429 Resource exhausted"))

        with pytest.raises(RateLimitExceeded) as exc_info:
            run_call(executor, telemetry, fn)

        assert str(exc_info.value) == ERROR_MESSAGES["RATE_LIMIT_EXCEEDED"]
        assert len(fn.calls) == 3
        assert sleeper.delays == [1.0, 2.0]
        assert len(sink.records) == 1
        assert sink.records[0]["status"] == "error"
        assert sink.records[0]["metadata"]["attempt"] == 3

    def test_daily_quota_is_never_retried(self, executor, telemetry, sink, sleeper):
        """Test daily quota fails on the first attempt without sleeping."""
        fn = scripted(Exception("429 Quota exceeded: GenerateRequestsPerDayPerProjectPerModel"))

        with pytest.raises(DailyQuotaExceeded):
            run_call(executor, telemetry, fn)

        assert len(fn.calls) == 1
        assert sleeper.delays == []
        assert sink.records[0]["metadata"]["attempt"] == 1

    def test_other_errors_are_not_retried(self, executor, telemetry, sink, sleeper):
        """Test a non-quota failure is translated and raised immediately."""
        fn = scripted(Exception("400 API key not valid. Please pass a valid API key."))

        with pytest.raises(ProviderError) as exc_info:
            run_call(executor, telemetry, fn)

        assert len(fn.calls) == 1
        assert sleeper.delays == []
        assert str(exc_info.value) == ERROR_MESSAGES["INVALID_API_KEY"]
        assert isinstance(exc_info.value.__cause__, Exception)
        assert sink.records[0]["error_message"].startswith("400 API key")

    def test_custom_budget_and_delay(self, executor, telemetry, sleeper):
        """Test per-call retries and initial delay override the policy."""
        fn = scripted(Exception("High traffic"))

        with pytest.raises(RateLimitExceeded):
            run_call(executor, telemetry, fn, retries=4, initial_delay_ms=500)

        assert len(fn.calls) == 4
        assert sleeper.delays == [0.5, 1.0, 2.0]

    def test_zero_retries_raises_exhausted(self, executor, telemetry, sink):
        """Test an empty attempt budget fails without calling fn."""
        fn = scripted("ok")

        with pytest.raises(RetryAttemptsExhausted):
            run_call(executor, telemetry, fn, retries=0)

        assert fn.calls == []
        assert sink.records == []

    def test_metadata_merges_context_and_successful_attempt(self, executor, telemetry, sink):
        """Test success metadata combines context metadata with the attempt's own."""
        fn = scripted(Exception("429"), "ok")
        context = make_context(extra_metadata={"tier": "pro"}, job_id="job-7")

        run_call(executor, telemetry, fn, context=context)

        record = sink.records[0]
        assert record["job_id"] == "job-7"
        assert record["metadata"]["tier"] == "pro"
        assert record["metadata"]["token_usage"]["totalTokens"] == 42
        # Each attempt receives a fresh dict
        assert fn.calls[0] is not fn.calls[1]

    def test_structured_results_logged_as_json(self, executor, telemetry, sink):
        """Test non-string results are serialized for the log."""
        run_call(executor, telemetry, scripted({"score": 80}))

        assert sink.records[0]["response_text"] == '{"score": 80}'
