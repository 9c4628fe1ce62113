"""Schemas for the Gemini relay endpoint."""
from typing import Any, Dict, Optional

from pydantic import Field

from jobfit.schemas.job_analysis_schema import CamelModel


class RelayRequestSchema(CamelModel):
    """Body posted by ProxyClient."""
    payload: Dict[str, Any]
    task: str = "analysis"
    # Informational only; the relay picks the model from the caller's tier
    model_name: Optional[str] = None
    generation_config: Optional[Dict[str, Any]] = None


class RelayResponseSchema(CamelModel):
    text: str
    usage: Optional[Dict[str, int]] = Field(None, description="Token usage counts")
