"""
Inference Telemetry

Best-effort recording of every AI call outcome. Entries are redacted before
they leave the process, written in the background, and any failure along the
way is logged and dropped: telemetry must never fail a feature call.
"""
import asyncio
import logging
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, Set

from config.settings import settings
from jobfit.utils.redaction import redact_content

logger = logging.getLogger(__name__)

# Identifier of the user on whose behalf the current request runs
current_user_id: ContextVar[Optional[str]] = ContextVar("current_user_id", default=None)


@dataclass
class TelemetryEntry:
    event_type: str
    model_name: str
    prompt_text: str
    status: str  # "success" | "error"
    response_text: Optional[str] = None
    latency_ms: Optional[int] = None
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    job_id: Optional[str] = None


class TelemetrySink(Protocol):
    """Persistence backend for telemetry."""

    def write_log(self, record: Dict[str, Any]) -> None: ...

    def increment_usage(self, user_id: Optional[str], tokens: int) -> None: ...


class NullTelemetrySink:
    """Discards everything. Used when telemetry is disabled."""

    def write_log(self, record: Dict[str, Any]) -> None:
        return None

    def increment_usage(self, user_id: Optional[str], tokens: int) -> None:
        return None


def _json_safe(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def extract_total_tokens(metadata: Optional[Dict[str, Any]]) -> int:
    """Read the total token count attached by an inference callback."""
    usage = (metadata or {}).get("token_usage")
    if usage is None:
        return 0
    if hasattr(usage, "total_tokens"):
        return int(usage.total_tokens or 0)
    if isinstance(usage, dict):
        return int(usage.get("totalTokens", usage.get("totalTokenCount", 0)) or 0)
    return 0


class TelemetryLogger:
    """
    Fire-and-forget recorder for inference attempts.

    ``record`` returns immediately; inside an event loop the write happens in a
    background task, otherwise it runs inline. ``flush`` waits for pending writes.
    """

    def __init__(
        self,
        sink: TelemetrySink,
        user_id_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.sink = sink
        self._user_id_provider = user_id_provider or current_user_id.get
        self._pending: Set[asyncio.Task] = set()

    def record(self, entry: TelemetryEntry) -> None:
        try:
            user_id = self._user_id_provider()
        except Exception as e:
            logger.debug(f"Could not resolve user for telemetry: {e}")
            user_id = None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._persist(entry, user_id)
            return

        task = loop.create_task(asyncio.to_thread(self._persist, entry, user_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> None:
        """Wait for all in-flight writes."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def build_record(self, entry: TelemetryEntry, user_id: Optional[str]) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "job_id": entry.job_id,
            "event_type": entry.event_type,
            "model_name": entry.model_name,
            "prompt_text": redact_content(entry.prompt_text),
            "response_text": redact_content(entry.response_text),
            "latency_ms": entry.latency_ms,
            "status": entry.status,
            "error_message": entry.error_message,
            "metadata": _json_safe(entry.metadata or {}),
        }

    def _persist(self, entry: TelemetryEntry, user_id: Optional[str]) -> None:
        try:
            self.sink.write_log(self.build_record(entry, user_id))
        except Exception as e:
            logger.warning(f"Failed to write AI telemetry for '{entry.event_type}': {e}")

        tokens = extract_total_tokens(entry.metadata)
        try:
            self.sink.increment_usage(user_id, tokens)
        except Exception as e:
            # Usage tracking is advisory
            logger.debug(f"Usage tracking failed: {e}")


def create_telemetry_logger() -> TelemetryLogger:
    """Build the telemetry logger described by settings."""
    if not settings.telemetry_enabled:
        return TelemetryLogger(NullTelemetrySink())

    from jobfit.services.telemetry_store import SQLTelemetryStore

    return TelemetryLogger(SQLTelemetryStore(settings.telemetry_database_url))
