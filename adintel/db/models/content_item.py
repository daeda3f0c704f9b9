from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adintel.db.base import Base
from adintel.db.models._common import new_id, utcnow


class ContentType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"
    TEXT = "text"
    LINK = "link"
    CAMPAIGN = "campaign"


class ContentCategory(StrEnum):
    INSPIRATION = "inspiration"
    CONTENT_LIBRARY = "content-library"
    CAMPAIGNS = "campaigns"


class IndexStatus(StrEnum):
    PENDING = "pending"
    CAPTIONING = "captioning"
    CAPTIONED = "captioned"
    INDEXED = "indexed"
    FAILED = "failed"


MEDIA_TYPES: frozenset[str] = frozenset({ContentType.IMAGE, ContentType.VIDEO})


class ContentItem(Base):
    __tablename__ = "content_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    category: Mapped[str] = mapped_column(String(32), index=True)
    type: Mapped[str] = mapped_column(String(16))
    name: Mapped[str] = mapped_column(String(500))
    url: Mapped[str | None] = mapped_column(String(2048))
    thumbnail: Mapped[str | None] = mapped_column(String(2048))
    # Caption for text items, AI summary for media once captioned
    text_content: Mapped[str | None] = mapped_column(Text)
    index_status: Mapped[str] = mapped_column(String(16), default=IndexStatus.PENDING)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
