from __future__ import annotations

from adintel.api.schemas.base import CamelModel


class DownloadVideoRequest(CamelModel):
    url: str | None = None


class DownloadVideoResponse(CamelModel):
    success: bool = True
    video_url: str
    thumbnail: str
    filename: str
