"""
AI Orchestration Package

Turns user documents and job text into validated results from Gemini.

Sub-modules:
- model_resolver: Tier/task to model id
- inference_client: Direct SDK access or the server-side relay
- retry_executor: Quota-aware retries around one inference call
- telemetry: Redacted, fire-and-forget logging of call outcomes
- output_sanitizer: JSON extraction from fenced model output
- job_analysis: Two-phase job extraction/analysis and merge rules
- cover_letter_agent: Critique/revise loop for cover letters
"""

from jobfit.services.ai.errors import (
    AIError,
    AIServiceError,
    AnalysisValidationFailure,
    DailyQuotaExceeded,
    OutputParseFailure,
    ProviderError,
    ProxyError,
    RateLimitExceeded,
    RetryAttemptsExhausted,
)
from jobfit.services.ai.model_resolver import TaskClass, UserTier, resolve_model
from jobfit.services.ai.output_sanitizer import clean_json_output, parse_json_output
from jobfit.services.ai.telemetry import TelemetryEntry, TelemetryLogger, create_telemetry_logger
from jobfit.services.ai.types import ExecutionContext, InferenceRequest, InferenceResult, RetryPolicy
from jobfit.services.ai.inference_client import DirectClient, ProxyClient, get_inference_client
from jobfit.services.ai.retry_executor import RetryExecutor
from jobfit.services.ai.job_analysis import JobAnalysisService, merge_job_analysis
from jobfit.services.ai.cover_letter_agent import CoverLetterAgent

__all__ = [
    'AIError',
    'AIServiceError',
    'AnalysisValidationFailure',
    'DailyQuotaExceeded',
    'OutputParseFailure',
    'ProviderError',
    'ProxyError',
    'RateLimitExceeded',
    'RetryAttemptsExhausted',
    'TaskClass',
    'UserTier',
    'resolve_model',
    'clean_json_output',
    'parse_json_output',
    'TelemetryEntry',
    'TelemetryLogger',
    'create_telemetry_logger',
    'ExecutionContext',
    'InferenceRequest',
    'InferenceResult',
    'RetryPolicy',
    'DirectClient',
    'ProxyClient',
    'get_inference_client',
    'RetryExecutor',
    'JobAnalysisService',
    'merge_job_analysis',
    'CoverLetterAgent',
]
