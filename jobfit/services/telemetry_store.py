"""
Telemetry Store

SQLAlchemy-backed sink for AI telemetry: appends ``ai_logs`` rows and keeps
per-user usage counters.
"""
import logging
from contextlib import nullcontext
from threading import Lock
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobfit.models import Base
from jobfit.models.ai_log import AILog, UsageCounter

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"


def create_telemetry_engine(database_url: str) -> Engine:
    """
    Create an engine for the telemetry database.

    In-memory SQLite gets a single shared connection so that background
    writer threads and readers see the same database.
    """
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


class SQLTelemetryStore:
    """Telemetry sink writing to a relational database."""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None, create_tables: bool = True):
        """
        Args:
            database_url: SQLAlchemy URL, used when no engine is given
            engine: Pre-built engine
            create_tables: Create missing tables on startup
        """
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required")
            engine = create_telemetry_engine(database_url)

        self.engine = engine
        self.Session = sessionmaker(bind=engine, expire_on_commit=False)
        # SQLite allows one writer at a time; in-memory databases also share a single connection
        self._write_lock = Lock() if engine.dialect.name == "sqlite" else nullcontext()

        if create_tables:
            Base.metadata.create_all(engine)

        logger.info(f"SQLTelemetryStore initialized ({engine.url.get_backend_name()})")

    def write_log(self, record: Dict[str, Any]) -> None:
        """Append one telemetry record."""
        log = AILog(
            user_id=record.get("user_id"),
            job_id=record.get("job_id"),
            event_type=record["event_type"],
            model_name=record["model_name"],
            prompt_text=record.get("prompt_text"),
            response_text=record.get("response_text"),
            latency_ms=record.get("latency_ms"),
            status=record["status"],
            error_message=record.get("error_message"),
            extra_metadata=record.get("metadata") or {},
        )
        with self._write_lock, self.Session() as session:
            session.add(log)
            session.commit()

    def increment_usage(self, user_id: Optional[str], tokens: int) -> None:
        """
        Count one request and its tokens against a user.

        The counter is bumped with a single UPDATE so concurrent writers never
        lose increments. A missing row is inserted; if another writer inserted
        it first, the UPDATE is retried.
        """
        key = user_id or ANONYMOUS_USER
        tokens = max(int(tokens or 0), 0)
        bump = (
            update(UsageCounter)
            .where(UsageCounter.user_id == key)
            .values(
                request_count=UsageCounter.request_count + 1,
                total_tokens=UsageCounter.total_tokens + tokens,
            )
            .execution_options(synchronize_session=False)
        )

        with self._write_lock, self.Session() as session:
            if session.execute(bump).rowcount:
                session.commit()
                return

            session.add(UsageCounter(user_id=key, request_count=1, total_tokens=tokens))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                session.execute(bump)
                session.commit()

    def get_usage(self, user_id: Optional[str]) -> Dict[str, int]:
        """Current totals for a user (zeros if never seen)."""
        key = user_id or ANONYMOUS_USER
        with self.Session() as session:
            counter = session.execute(
                select(UsageCounter).where(UsageCounter.user_id == key)
            ).scalar_one_or_none()
            if counter is None:
                return {"request_count": 0, "total_tokens": 0}
            return {"request_count": counter.request_count, "total_tokens": counter.total_tokens}

    def recent_logs(self, limit: int = 50, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Most recent log rows, newest first."""
        with self.Session() as session:
            query = select(AILog).order_by(AILog.id.desc()).limit(limit)
            if event_type:
                query = query.where(AILog.event_type == event_type)
            return [log.to_dict() for log in session.execute(query).scalars()]
