from __future__ import annotations

from pydantic import ConfigDict, Field

from adintel.api.schemas.base import CamelModel


class AnalyzeMediaRequest(CamelModel):
    """Request model for background media analysis."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "url": "https://cdn.example.com/summer-promo.jpg",
                    "type": "image",
                    "name": "summer-promo.jpg",
                    "id": "3f2a9c",
                    "category": "inspiration",
                }
            ]
        }
    )

    url: str | None = None
    type: str | None = Field(default=None, description="image or video")
    name: str | None = None
    id: str | None = Field(default=None, description="Content item to update with the summary")
    category: str | None = None


class AcceptedResponse(CamelModel):
    accepted: bool = True
    message: str


class ProcessContentRequest(CamelModel):
    id: str | None = None
    type: str | None = None
    url: str | None = None
    name: str | None = None
    category: str | None = None
    summary: str | None = None


class MediaUploadResponse(CamelModel):
    url: str
    bucket: str


class MediaDeleteRequest(CamelModel):
    url: str = Field(..., min_length=1)
    bucket: str = "campaign-media"
