"""
AI Telemetry Models

One ``AILog`` row per completed inference call (success or terminal failure)
and one ``UsageCounter`` row per user accumulating requests and tokens.
"""
from sqlalchemy import BigInteger, Column, Integer, JSON, String, Text

from jobfit.models import BaseModel


class AILog(BaseModel):
    """Redacted record of one inference call."""

    __tablename__ = "ai_logs"

    user_id = Column(String(64), nullable=True, index=True)
    job_id = Column(String(64), nullable=True, index=True)
    event_type = Column(String(100), nullable=False, index=True)
    model_name = Column(String(100), nullable=False)
    prompt_text = Column(Text, nullable=True)
    response_text = Column(Text, nullable=True)
    latency_ms = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, index=True)
    error_message = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=False, default=dict)

    def to_dict(self):
        """Convert model to dictionary."""
        data = super().to_dict()
        data.update({
            "user_id": self.user_id,
            "job_id": self.job_id,
            "event_type": self.event_type,
            "model_name": self.model_name,
            "prompt_text": self.prompt_text,
            "response_text": self.response_text,
            "latency_ms": self.latency_ms,
            "status": self.status,
            "error_message": self.error_message,
            "metadata": self.extra_metadata,
        })
        return data


class UsageCounter(BaseModel):
    """Running usage totals per user. Anonymous usage is keyed by ``anonymous``."""

    __tablename__ = "ai_usage_counters"

    user_id = Column(String(64), nullable=False, unique=True, index=True)
    request_count = Column(Integer, nullable=False, default=0)
    total_tokens = Column(BigInteger, nullable=False, default=0)

    def to_dict(self):
        """Convert model to dictionary."""
        data = super().to_dict()
        data.update({
            "user_id": self.user_id,
            "request_count": self.request_count,
            "total_tokens": self.total_tokens,
        })
        return data
