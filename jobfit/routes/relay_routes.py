"""
Gemini Relay Routes

Server-side counterpart of ``ProxyClient``: callers without their own API key
post a prompt payload here and the server calls Gemini with its key. The model
is chosen from the caller's tier, never from the request. Analysis calls are
told to reject content that is not a job posting; such rejections are not
counted as usage.
"""
import asyncio
import dataclasses
import logging

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from config.settings import settings
from jobfit.schemas import RelayRequestSchema, RelayResponseSchema
from jobfit.services.ai.inference_client import DirectClient
from jobfit.services.ai.model_resolver import TaskClass, normalize_task, resolve_model
from jobfit.services.ai.types import InferenceRequest

logger = logging.getLogger(__name__)

relay_bp = Blueprint('relay', __name__, url_prefix='/api/ai')

ERROR_PREFIX = "Edge Function Error"
NOT_A_JOB = "not_a_job"
NOT_A_JOB_MESSAGE = "This content doesn't look like a valid job description."
JOB_VALIDATION_INSTRUCTION = (
    "CRITICAL: First validate if the provided content is a job description or job-related. "
    'If it is NOT a job, your entire response must be: {"error": "not_a_job"}. '
    "Otherwise, proceed with the requested analysis."
)


def relay_error(message: str, status: int):
    """Relay errors are a bare ``{error}`` body, which is what ProxyClient reads."""
    return jsonify({'error': message}), status


def resolve_caller_tier(req) -> str:
    """
    Tier from the configured resolver, else free.

    The X-User-Tier header is only honoured when TRUST_TIER_HEADER is set,
    which is meant for local development behind no real auth.
    """
    resolver = current_app.config.get('TIER_RESOLVER')
    if resolver is not None:
        return resolver(req)
    if current_app.config.get('TRUST_TIER_HEADER'):
        return req.headers.get('X-User-Tier', 'free')
    return 'free'


def track_usage(user_id, tokens: int) -> None:
    store = current_app.extensions.get('telemetry_store')
    if store is None:
        return
    try:
        store.increment_usage(user_id, tokens)
    except Exception as e:
        logger.warning(f"Failed to record relay usage for {user_id or 'anonymous'}: {e}")


@relay_bp.route('/generate', methods=['POST'])
def generate():
    """
    Run one Gemini call on behalf of a client.

    POST /api/ai/generate

    Request body:
    {
        "payload": {"contents": [{"role": "user", "parts": [{"text": "..."}]}]},
        "task": "extraction" | "analysis",      // unknown values count as analysis
        "modelName": "gemini-2.0-flash",        // ignored, model follows the tier
        "generationConfig": {"temperature": 0.3, "responseMimeType": "application/json"}
    }

    Returns {"text": "...", "usage": {...}} or {"error": "..."}.
    Content that is not a job posting gets 400 {"error": "not_a_job", "message": "..."}.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return relay_error("Request body must be a JSON object", 400)

    try:
        body = RelayRequestSchema.model_validate(data)
    except ValidationError as e:
        return relay_error(f"Invalid request: {e.errors()[0]['msg']}", 400)

    tier = resolve_caller_tier(request)
    task = normalize_task(body.task)
    model_id = resolve_model(tier, task)

    try:
        inference_request = InferenceRequest.from_payload(model_id, body.payload, body.generation_config)
    except ValueError as e:
        return relay_error(f"Invalid payload: {e}", 400)

    if task is TaskClass.ANALYSIS:
        inference_request = dataclasses.replace(inference_request, system_instruction=JOB_VALIDATION_INSTRUCTION)

    api_key = current_app.config.get('GEMINI_API_KEY') or settings.gemini_api_key
    if not api_key:
        logger.error("Relay called but no Gemini API key is configured")
        return relay_error(f"{ERROR_PREFIX}: Server API key is not configured", 500)

    if body.model_name and body.model_name != model_id:
        logger.debug(f"Client asked for {body.model_name}, tier {tier} resolves to {model_id}")

    try:
        result = asyncio.run(DirectClient(api_key).generate(inference_request))
    except Exception as e:
        logger.error(f"Relay generation failed ({model_id}, task={task.value}): {e}")
        return relay_error(f"{ERROR_PREFIX}: {e}", 500)

    user_id = request.headers.get('X-User-Id')
    if task is TaskClass.ANALYSIS and NOT_A_JOB in (result.raw_text or ''):
        logger.warning(f"Analysis rejected as not a job for {user_id or 'anonymous'}")
        return jsonify({'error': NOT_A_JOB, 'message': NOT_A_JOB_MESSAGE}), 400

    usage = result.token_usage
    track_usage(user_id, usage.total_tokens if usage else 0)

    response = RelayResponseSchema(
        text=result.raw_text,
        usage=usage.to_dict() if usage else None,
    )
    return jsonify(response.model_dump(exclude_none=True)), 200
