"""Shared plumbing for the AI feature services."""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from jobfit.services.ai.errors import OutputParseFailure
from jobfit.services.ai.inference_client import InferenceClient, get_inference_client
from jobfit.services.ai.model_resolver import TaskClass, UserTier, normalize_tier, resolve_model
from jobfit.services.ai.retry_executor import RetryExecutor, RetryProgressCallback
from jobfit.services.ai.types import ExecutionContext, InferenceRequest

logger = logging.getLogger(__name__)

ClientFactory = Callable[[TaskClass], InferenceClient]
# Turns raw model text into the service's return value
OutputParser = Callable[[str], Any]


class BaseAIService:
    """
    Base class for services that run prompts through the retry executor.

    Each call resolves the model from the user's tier, builds the request,
    and lets ``RetryExecutor`` drive attempts. Parsing happens inside the
    attempt so malformed output fails the call like any provider error.
    """

    def __init__(
        self,
        executor: RetryExecutor,
        tier: Union[UserTier, str, None] = UserTier.FREE,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.executor = executor
        self.tier = normalize_tier(tier)
        self.client_factory = client_factory or get_inference_client

    async def _run(
        self,
        event_type: str,
        task: TaskClass,
        prompt: str,
        parse: OutputParser,
        temperature: Optional[float] = None,
        response_format: str = "text",
        job_id: Optional[str] = None,
        on_progress: Optional[RetryProgressCallback] = None,
    ) -> Any:
        model_id = resolve_model(self.tier, task)
        request = InferenceRequest.from_prompt(
            model_id,
            prompt,
            temperature=temperature,
            response_format=response_format,
        )
        context = ExecutionContext(
            event_type=event_type,
            prompt_text=prompt,
            model_id=model_id,
            extra_metadata={"tier": self.tier.value, "task": task.value},
            job_id=job_id,
        )

        clients: Dict[TaskClass, InferenceClient] = {}

        async def attempt(metadata: Dict[str, Any]) -> Any:
            # Resolved once per call; the factory may read credentials from disk
            if task not in clients:
                clients[task] = await asyncio.to_thread(self.client_factory, task)
            client = clients[task]
            result = await client.generate(request)
            if result.token_usage is not None:
                metadata["token_usage"] = result.token_usage
            try:
                return parse(result.raw_text)
            except ValidationError as e:
                raise OutputParseFailure(
                    f"AI response did not match the expected structure ({e.error_count()} problems)"
                ) from e

        logger.debug(f"[{event_type}] Calling {model_id} for tier {self.tier.value}")
        return await self.executor.call_with_retry(attempt, context, on_progress=on_progress)
