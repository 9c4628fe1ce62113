"""Request-scoped value objects passed between the AI core components."""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from config.settings import settings

RESPONSE_MIME_TYPES = {
    "text": "text/plain",
    "json": "application/json",
}

# Sampling temperatures by how much freedom the task allows
TEMPERATURE_STRICT = 0.0
TEMPERATURE_BALANCED = 0.3
TEMPERATURE_CREATIVE = 0.7


@dataclass(frozen=True)
class TextPart:
    text: str

    def to_wire(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class InlineDataPart:
    """Binary content (image, PDF) carried as base64."""
    mime_type: str
    data: str

    def to_wire(self) -> Dict[str, Any]:
        return {"inlineData": {"mimeType": self.mime_type, "data": self.data}}


ContentPart = Union[TextPart, InlineDataPart]


@dataclass(frozen=True)
class GenerationConfig:
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    response_format: str = "text"
    response_schema: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.response_format not in RESPONSE_MIME_TYPES:
            raise ValueError(
                f"response_format must be one of {list(RESPONSE_MIME_TYPES)}, got '{self.response_format}'"
            )

    @property
    def response_mime_type(self) -> str:
        return RESPONSE_MIME_TYPES[self.response_format]

    def to_wire(self) -> Dict[str, Any]:
        """Render in the REST API's camelCase shape, omitting unset fields."""
        wire: Dict[str, Any] = {"responseMimeType": self.response_mime_type}
        if self.temperature is not None:
            wire["temperature"] = self.temperature
        if self.max_output_tokens is not None:
            wire["maxOutputTokens"] = self.max_output_tokens
        if self.response_schema is not None:
            wire["responseSchema"] = self.response_schema
        return wire

    @classmethod
    def from_wire(cls, wire: Optional[Dict[str, Any]]) -> "GenerationConfig":
        wire = wire or {}
        mime_type = wire.get("responseMimeType", "text/plain")
        return cls(
            temperature=wire.get("temperature"),
            max_output_tokens=wire.get("maxOutputTokens"),
            response_format="json" if mime_type == "application/json" else "text",
            response_schema=wire.get("responseSchema"),
        )


@dataclass(frozen=True)
class InferenceRequest:
    model_id: str
    content_parts: Tuple[ContentPart, ...]
    generation_config: GenerationConfig = field(default_factory=GenerationConfig)
    system_instruction: Optional[str] = None

    @classmethod
    def from_prompt(cls, model_id: str, prompt: str, **config) -> "InferenceRequest":
        """Build a single-text-part request."""
        return cls(
            model_id=model_id,
            content_parts=(TextPart(prompt),),
            generation_config=GenerationConfig(**config),
        )

    @property
    def prompt_text(self) -> str:
        return "\n".join(p.text for p in self.content_parts if isinstance(p, TextPart))

    def to_payload(self) -> Dict[str, Any]:
        """Render the ``contents`` payload sent to the relay."""
        return {
            "contents": [
                {"role": "user", "parts": [part.to_wire() for part in self.content_parts]}
            ]
        }

    @classmethod
    def from_payload(
        cls,
        model_id: str,
        payload: Dict[str, Any],
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> "InferenceRequest":
        """
        Rebuild a request from a relay payload.

        Raises:
            ValueError: If the payload has no usable parts
        """
        parts = []
        for content in payload.get("contents") or []:
            for part in content.get("parts") or []:
                if "text" in part:
                    parts.append(TextPart(str(part["text"])))
                elif "inlineData" in part:
                    inline = part["inlineData"] or {}
                    parts.append(InlineDataPart(inline.get("mimeType", ""), inline.get("data", "")))
        if not parts:
            raise ValueError("payload contains no content parts")
        return cls(
            model_id=model_id,
            content_parts=tuple(parts),
            generation_config=GenerationConfig.from_wire(generation_config),
        )


@dataclass(frozen=True)
class TokenUsage:
    total_tokens: int = 0
    prompt_tokens: int = 0
    candidates_tokens: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalTokens": self.total_tokens,
            "promptTokens": self.prompt_tokens,
            "candidatesTokens": self.candidates_tokens,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TokenUsage"]:
        """Accepts both our shape and Gemini's ``usageMetadata`` shape."""
        if not data:
            return None
        return cls(
            total_tokens=int(data.get("totalTokens", data.get("totalTokenCount", 0)) or 0),
            prompt_tokens=int(data.get("promptTokens", data.get("promptTokenCount", 0)) or 0),
            candidates_tokens=int(data.get("candidatesTokens", data.get("candidatesTokenCount", 0)) or 0),
        )


@dataclass(frozen=True)
class InferenceResult:
    raw_text: str
    token_usage: Optional[TokenUsage] = None


@dataclass
class ExecutionContext:
    """What is being attempted; used to build telemetry entries."""
    event_type: str
    prompt_text: str
    model_id: str
    attempt_index: int = 0
    start_timestamp: float = field(default_factory=time.monotonic)
    extra_metadata: Dict[str, Any] = field(default_factory=dict)
    job_id: Optional[str] = None


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay_ms: int = 2000
    backoff_multiplier: int = 2

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.ai_max_retries,
            initial_delay_ms=settings.ai_initial_retry_delay_ms,
            backoff_multiplier=settings.ai_retry_backoff_multiplier,
        )
