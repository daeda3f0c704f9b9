from __future__ import annotations

from pydantic import Field

from adintel.api.schemas.base import CamelModel


class SearchRequest(CamelModel):
    query: str | None = None
    max_results: int = Field(default=10, ge=1, le=50)


class ScrapeRequest(CamelModel):
    url: str | None = None
    include_links: bool = True
    include_images: bool = False
