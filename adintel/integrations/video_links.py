from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from fastapi import status

from adintel.integrations.http import HttpIntegration, IntegrationError

logger = logging.getLogger(__name__)

TIKWM_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class ResolvedVideo:
    video_url: str
    thumbnail: str


class VideoLinkError(IntegrationError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message, "video_download_failed")


class TikTokResolver(HttpIntegration):
    """Resolves a TikTok share link to a direct video URL through tikwm."""

    service_name = "TikTok downloader"

    def __init__(self, http_client: httpx.AsyncClient, api_url: str) -> None:
        super().__init__(http_client)
        self._api_url = api_url

    async def resolve(self, url: str) -> ResolvedVideo:
        response = await self._request(
            "GET", self._api_url, params={"url": url}, timeout=TIKWM_TIMEOUT_SECONDS
        )
        data = self._json(response, self.service_name)
        logger.debug("TikWM API response: %s", data)
        if not isinstance(data, dict) or data.get("code") != 0:
            raise VideoLinkError("Failed to download TikTok video")
        video = data.get("data") or {}
        if not video.get("play"):
            raise VideoLinkError("Failed to download TikTok video")
        return ResolvedVideo(video_url=video["play"], thumbnail=video.get("cover") or "")
