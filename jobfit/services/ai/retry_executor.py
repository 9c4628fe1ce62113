"""
Retry Executor

Wraps one inference invocation with quota-aware retries:
- daily quota exhaustion fails immediately
- rate limits / transient quota errors back off exponentially until the
  attempt budget is spent
- anything else fails immediately with a user-friendly message

Only the final outcome of a call is written to telemetry; intermediate
rate-limited attempts are logged to the application log only.
"""
import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from jobfit.services.ai.errors import (
    DailyQuotaExceeded,
    ErrorKind,
    ProviderError,
    RateLimitExceeded,
    RetryAttemptsExhausted,
    classify_error,
)
from jobfit.services.ai.telemetry import TelemetryEntry, TelemetryLogger
from jobfit.services.ai.types import ExecutionContext, RetryPolicy
from jobfit.utils.error_messages import (
    ERROR_MESSAGES,
    GENERIC_FAILURE_MESSAGE,
    get_retry_message,
    get_user_friendly_error,
)
from jobfit.utils.redaction import sanitize_log

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (message, attempt, max_attempts)
RetryProgressCallback = Callable[[str, int, int], None]
AttemptFn = Callable[[Dict[str, Any]], Awaitable[T]]


def _is_rate_limited(exc: BaseException) -> bool:
    return classify_error(str(exc)) is ErrorKind.RATE_LIMIT


def _response_text(result: Any) -> str:
    if isinstance(result, str):
        return result
    if hasattr(result, "model_dump_json"):
        return result.model_dump_json()
    try:
        return json.dumps(result, default=str)
    except (TypeError, ValueError):
        return str(result)


class RetryExecutor:
    """Runs inference calls under the deployment's retry policy."""

    def __init__(
        self,
        telemetry: TelemetryLogger,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            telemetry: Recorder for call outcomes
            policy: Retry policy, defaults to the one from settings
            sleep: Coroutine used for backoff delays (seconds)
        """
        self.telemetry = telemetry
        self.policy = policy or RetryPolicy.from_settings()
        self._sleep = sleep

    async def call_with_retry(
        self,
        fn: AttemptFn,
        context: ExecutionContext,
        retries: Optional[int] = None,
        initial_delay_ms: Optional[int] = None,
        on_progress: Optional[RetryProgressCallback] = None,
    ) -> T:
        """
        Invoke ``fn`` until it succeeds or fails terminally.

        Args:
            fn: Coroutine function taking a fresh per-attempt metadata dict;
                anything it stores there (e.g. ``token_usage``) is logged on success
            context: What is being attempted, for telemetry
            retries: Maximum attempts (defaults to the policy)
            initial_delay_ms: First backoff delay (defaults to the policy)
            on_progress: Called before each backoff sleep

        Returns:
            Whatever ``fn`` returned

        Raises:
            DailyQuotaExceeded: Daily quota marker seen; never retried
            RateLimitExceeded: Still rate limited after the last attempt
            ProviderError: Any other failure, translated for the user
            RetryAttemptsExhausted: No attempt could be made
        """
        max_attempts = self.policy.max_attempts if retries is None else retries
        if initial_delay_ms is None:
            initial_delay_ms = self.policy.initial_delay_ms

        context.start_timestamp = time.monotonic()

        if max_attempts < 1:
            raise RetryAttemptsExhausted(GENERIC_FAILURE_MESSAGE)

        def before_sleep(retry_state: RetryCallState) -> None:
            attempt = retry_state.attempt_number
            delay_s = retry_state.next_action.sleep if retry_state.next_action else 0
            logger.warning(
                f"[{context.event_type}] Rate limited on attempt {attempt}/{max_attempts}, "
                f"retrying in {delay_s:g}s: {sanitize_log(retry_state.outcome.exception())}"
            )
            if on_progress:
                on_progress(get_retry_message(attempt, max_attempts, delay_s), attempt, max_attempts)

        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(
                multiplier=initial_delay_ms / 1000.0,
                exp_base=self.policy.backoff_multiplier,
            ),
            retry=retry_if_exception(_is_rate_limited),
            before_sleep=before_sleep,
            reraise=True,
        )

        execution_metadata: Dict[str, Any] = {}
        try:
            async for attempt in retrying:
                with attempt:
                    context.attempt_index = attempt.retry_state.attempt_number - 1
                    execution_metadata = {}
                    result = await fn(execution_metadata)
        except Exception as exc:
            self._raise_terminal(exc, context)

        self.telemetry.record(TelemetryEntry(
            event_type=context.event_type,
            model_name=context.model_id,
            prompt_text=context.prompt_text,
            response_text=_response_text(result),
            latency_ms=self._elapsed_ms(context),
            status="success",
            metadata={**context.extra_metadata, **execution_metadata},
            job_id=context.job_id,
        ))
        return result

    @staticmethod
    def _elapsed_ms(context: ExecutionContext) -> int:
        return int((time.monotonic() - context.start_timestamp) * 1000)

    def _raise_terminal(self, exc: Exception, context: ExecutionContext) -> None:
        message = str(exc)
        kind = classify_error(message)
        attempt = context.attempt_index + 1

        logger.error(f"[{context.event_type}] AI service error on attempt {attempt}: {sanitize_log(message)}")

        self.telemetry.record(TelemetryEntry(
            event_type=context.event_type,
            model_name=context.model_id,
            prompt_text=context.prompt_text,
            latency_ms=self._elapsed_ms(context),
            status="error",
            error_message=message,
            metadata={**context.extra_metadata, "attempt": attempt},
            job_id=context.job_id,
        ))

        if kind is ErrorKind.DAILY_QUOTA:
            raise DailyQuotaExceeded(ERROR_MESSAGES["DAILY_QUOTA_EXCEEDED"]) from exc
        if kind is ErrorKind.RATE_LIMIT:
            raise RateLimitExceeded(ERROR_MESSAGES["RATE_LIMIT_EXCEEDED"]) from exc
        raise ProviderError(get_user_friendly_error(exc)) from exc
