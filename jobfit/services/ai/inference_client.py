"""
Inference Clients

Two ways to reach Gemini behind one interface:
- DirectClient: the user's own API key, straight to the Gemini SDK
- ProxyClient: no local key, the request goes through the server-side relay

``get_inference_client`` picks one per call.
"""
import asyncio
import base64
import logging
from typing import Any, Dict, Optional, Protocol, Union

import google.generativeai as genai
import requests

from config.settings import settings
from jobfit.services.ai.credentials import (
    CredentialStore,
    ensure_legacy_migration,
    get_credential_store,
)
from jobfit.services.ai.errors import AIError, ProxyError
from jobfit.services.ai.model_resolver import TaskClass, normalize_task
from jobfit.services.ai.types import (
    InferenceRequest,
    InferenceResult,
    InlineDataPart,
    TokenUsage,
)
from jobfit.utils.run_once import RunOnce

logger = logging.getLogger(__name__)


class InferenceClient(Protocol):
    async def generate(self, request: InferenceRequest) -> InferenceResult: ...


class DirectClient:
    """Calls Gemini through the google-generativeai SDK."""

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("Gemini API key is required for direct access.")
        self.api_key = api_key

    async def generate(self, request: InferenceRequest) -> InferenceResult:
        genai.configure(api_key=self.api_key)
        model_kwargs: Dict[str, Any] = {
            "model_name": request.model_id,
            "generation_config": self._build_generation_config(request),
        }
        if request.system_instruction:
            model_kwargs["system_instruction"] = request.system_instruction
        model = genai.GenerativeModel(**model_kwargs)

        response = await model.generate_content_async(self._build_contents(request))

        return InferenceResult(
            raw_text=response.text,
            token_usage=self._extract_usage(response),
        )

    @staticmethod
    def _build_generation_config(request: InferenceRequest) -> Dict[str, Any]:
        config = request.generation_config
        generation_config: Dict[str, Any] = {"response_mime_type": config.response_mime_type}
        if config.temperature is not None:
            generation_config["temperature"] = config.temperature
        if config.max_output_tokens is not None:
            generation_config["max_output_tokens"] = config.max_output_tokens
        if config.response_schema is not None:
            generation_config["response_schema"] = config.response_schema
        return generation_config

    @staticmethod
    def _build_contents(request: InferenceRequest) -> list:
        contents = []
        for part in request.content_parts:
            if isinstance(part, InlineDataPart):
                contents.append({"mime_type": part.mime_type, "data": base64.b64decode(part.data)})
            else:
                contents.append(part.text)
        return contents

    @staticmethod
    def _extract_usage(response) -> Optional[TokenUsage]:
        usage = getattr(response, "usage_metadata", None)
        if usage is None:
            return None
        return TokenUsage(
            total_tokens=getattr(usage, "total_token_count", 0) or 0,
            prompt_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            candidates_tokens=getattr(usage, "candidates_token_count", 0) or 0,
        )


class ProxyClient:
    """
    Forwards requests to the relay, which holds the server's Gemini key.

    The relay answers ``{text, usage}`` or ``{error}``.
    """

    def __init__(
        self,
        relay_url: str,
        task: Union[TaskClass, str] = TaskClass.ANALYSIS,
        session_token: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        self.relay_url = relay_url
        self.task = normalize_task(task)
        self.session_token = session_token
        self.timeout_s = timeout_s or settings.ai_relay_timeout_s

    def _build_body(self, request: InferenceRequest) -> Dict[str, Any]:
        return {
            "payload": request.to_payload(),
            "modelName": request.model_id,
            "task": self.task.value,
            "generationConfig": request.generation_config.to_wire(),
        }

    async def generate(self, request: InferenceRequest) -> InferenceResult:
        logger.info(f"Using Gemini relay for {self.task.value}...")

        headers = {"Content-Type": "application/json"}
        if self.session_token:
            headers["Authorization"] = f"Bearer {self.session_token}"

        try:
            response = await asyncio.to_thread(
                requests.post,
                self.relay_url,
                json=self._build_body(request),
                headers=headers,
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise ProxyError(str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.ok:
            detail = data.get("error") or response.reason
            raise ProxyError(f"{response.status_code} {detail}", status_code=response.status_code)

        if data.get("error"):
            raise AIError(str(data["error"]))

        return InferenceResult(
            raw_text=data.get("text") or "",
            token_usage=TokenUsage.from_dict(data.get("usage")),
        )


def get_inference_client(
    task: Union[TaskClass, str],
    credentials: Optional[CredentialStore] = None,
    migration: Optional[RunOnce] = None,
    relay_url: Optional[str] = None,
    session_token: Optional[str] = None,
) -> InferenceClient:
    """
    Choose the client for one call.

    A locally stored (or configured) API key means the user pays for their own
    usage and talks to Gemini directly; otherwise the relay is used.
    """
    store = credentials or get_credential_store()
    ensure_legacy_migration(store, migration)

    api_key = store.get_api_key()
    if api_key:
        return DirectClient(api_key)

    return ProxyClient(relay_url or settings.ai_relay_url, task=task, session_token=session_token)
