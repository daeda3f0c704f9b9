from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adintel.db.base import Base
from adintel.db.models._common import new_id, utcnow


class JobStatus(StrEnum):
    PENDING = "pending"
    CAPTIONING = "captioning"
    CAPTIONED = "captioned"
    INDEXED = "indexed"
    SKIPPED = "skipped"
    FAILED = "failed"


# Jobs in these states have outstanding work and are re-enqueued on startup
RESUMABLE_JOB_STATUSES: frozenset[str] = frozenset(
    {JobStatus.PENDING, JobStatus.CAPTIONING, JobStatus.CAPTIONED}
)


class IndexingJob(Base):
    """Persisted intent to caption and index one content item."""

    __tablename__ = "indexing_jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    content_item_id: Mapped[str] = mapped_column(String(64), index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(16), default=JobStatus.PENDING, index=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    # Summary produced by captioning, kept so a retry does not caption twice
    summary: Mapped[str | None] = mapped_column(Text)
    last_error: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
