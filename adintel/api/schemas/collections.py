from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, ConfigDict, Field

from adintel.api.schemas.base import CamelModel


class CollectionCreateRequest(CamelModel):
    name: str | None = Field(default=None, max_length=200)
    metadata: dict[str, Any] | None = None


class CollectionResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("collection_metadata", "metadata")
    )
    created_at: datetime | None = None


class AddDocumentsRequest(CamelModel):
    documents: list[str] | None = None
    ids: list[str] | None = None
    metadatas: list[dict[str, Any] | None] | None = None


class QueryCollectionRequest(CamelModel):
    query_texts: list[str] | None = None
    n_results: int = Field(default=5, ge=1, le=100)
    where: dict[str, Any] | None = None
