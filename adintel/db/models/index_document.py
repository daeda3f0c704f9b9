from __future__ import annotations

from datetime import datetime
from typing import Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import DDL, JSON, DateTime, ForeignKey, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from adintel.db.base import Base
from adintel.db.models._common import utcnow

# text-embedding-3-small; the embedder requests this size explicitly
EMBEDDING_DIMENSIONS = 1536


class IndexCollection(Base):
    __tablename__ = "index_collections"

    name: Mapped[str] = mapped_column(String(200), primary_key=True)
    collection_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class IndexDocument(Base):
    """One searchable entry; the composite primary key allows at most one entry per id."""

    __tablename__ = "index_documents"

    collection: Mapped[str] = mapped_column(
        ForeignKey("index_collections.name", ondelete="CASCADE"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(200), primary_key=True)
    document: Mapped[str] = mapped_column(Text)
    document_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    embedding: Mapped[Any] = mapped_column(Vector(EMBEDDING_DIMENSIONS))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


event.listen(
    IndexDocument.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS vector").execute_if(dialect="postgresql"),
)
