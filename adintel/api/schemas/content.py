from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, ConfigDict, Field

from adintel.api.schemas.base import CamelModel
from adintel.db.models.content_item import ContentCategory, ContentType


class ContentItemCreateRequest(CamelModel):
    """Request model for adding an item to a content section."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "category": "inspiration",
                    "type": "image",
                    "name": "summer-promo.jpg",
                    "url": "https://cdn.example.com/summer-promo.jpg",
                }
            ]
        }
    )

    id: str | None = Field(default=None, max_length=64, description="Client-chosen id")
    category: ContentCategory
    type: ContentType
    name: str = Field(..., min_length=1, max_length=500)
    url: str | None = Field(default=None, max_length=2048)
    thumbnail: str | None = Field(default=None, max_length=2048)
    text: str | None = Field(default=None, description="Caption or text body")


class ContentItemUpdateRequest(CamelModel):
    category: ContentCategory | None = None
    type: ContentType | None = None
    name: str | None = Field(default=None, min_length=1, max_length=500)
    url: str | None = Field(default=None, max_length=2048)
    thumbnail: str | None = Field(default=None, max_length=2048)
    text: str | None = None


class ContentItemResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category: str
    type: str
    name: str
    url: str | None = None
    thumbnail: str | None = None
    text: str | None = Field(default=None, validation_alias=AliasChoices("text", "text_content"))
    index_status: str
    created_at: datetime
    updated_at: datetime


class IndexingJobResponse(CamelModel):
    """Response returned when indexing work has been queued."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    content_item_id: str
    status: str
    attempts: int
    last_error: str | None = None
