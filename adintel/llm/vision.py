from __future__ import annotations

import base64
import logging
import mimetypes
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlparse

import httpx
from fastapi import status
from openai.types.chat import ChatCompletion

from adintel.llm.client import LLMServiceError, OpenAICompatibleClient
from adintel.llm.prompts import MEDIA_CAPTION_SYSTEM_PROMPT, get_media_caption_prompt

logger = logging.getLogger(__name__)

FALLBACK_VIDEO_TYPE = "video/mp4"
# Gemini caps inline request data at 20 MB
MAX_INLINE_VIDEO_BYTES = 20 * 1024 * 1024


class MediaUnavailableError(LLMServiceError):
    """The media could not be downloaded for captioning."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, url: str) -> None:
        super().__init__(f"Could not download media from {url}", "media_unavailable")


class MediaTooLargeError(LLMServiceError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE

    def __init__(self, url: str) -> None:
        super().__init__(
            f"Video at {url} exceeds {MAX_INLINE_VIDEO_BYTES} bytes and has no thumbnail",
            "media_too_large",
        )


def resolve_video_type(url: str, content_type: str | None) -> str:
    """Prefer the served ``video/*`` type, then the file extension, then mp4."""
    if content_type:
        served = content_type.split(";")[0].strip().lower()
        if served.startswith("video/"):
            return served
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    if guessed and guessed.startswith("video/"):
        return guessed
    return FALLBACK_VIDEO_TYPE


class CaptioningClient(ABC):
    """Abstract base class for vision models that describe media assets."""

    @abstractmethod
    async def describe_media(
        self,
        url: str,
        media_type: str,
        name: str | None = None,
        thumbnail: str | None = None,
    ) -> str:
        """Return a natural-language description of the media at ``url``."""
        raise NotImplementedError

    def ensure_configured(self) -> None:
        """Raise when the backing model cannot be called."""
        return None


class GeminiVisionClient(OpenAICompatibleClient, CaptioningClient):
    """Gemini captioning through Google's OpenAI-compatible endpoint.

    Images and video thumbnails are passed by URL. A video without a thumbnail
    is downloaded and sent inline as a file part with its video mime type.
    """

    provider = "Gemini"
    api_key_setting = "gemini_api_key"

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        model: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(api_key, base_url)
        self.model = model
        self._http_client = http_client

    async def _video_part(self, url: str, name: str | None) -> dict[str, Any]:
        if self._http_client is not None:
            return await self._download_video(self._http_client, url, name)
        async with httpx.AsyncClient(timeout=60.0) as client:
            return await self._download_video(client, url, name)

    async def _download_video(
        self, client: httpx.AsyncClient, url: str, name: str | None
    ) -> dict[str, Any]:
        data = bytearray()
        try:
            async with client.stream("GET", url, follow_redirects=True) as response:
                response.raise_for_status()
                mime_type = resolve_video_type(url, response.headers.get("content-type"))
                async for chunk in response.aiter_bytes():
                    data.extend(chunk)
                    if len(data) > MAX_INLINE_VIDEO_BYTES:
                        raise MediaTooLargeError(url)
        except httpx.HTTPError as e:
            logger.error(f"Failed to download video for captioning from {url}. Error: {e}")
            raise MediaUnavailableError(url) from e
        encoded = base64.b64encode(bytes(data)).decode("ascii")
        file: dict[str, str] = {"file_data": f"data:{mime_type};base64,{encoded}"}
        if name:
            file["filename"] = name
        return {"type": "file", "file": file}

    async def describe_media(
        self,
        url: str,
        media_type: str,
        name: str | None = None,
        thumbnail: str | None = None,
    ) -> str:
        prompt = get_media_caption_prompt(media_type)
        if name:
            prompt = f"{prompt}\nFile name: {name}"
        try:
            if media_type == "video" and not thumbnail:
                media_part = await self._video_part(url, name)
            else:
                # Videos are described from their poster frame when one exists
                visual_url = thumbnail if media_type == "video" else url
                media_part = {"type": "image_url", "image_url": {"url": visual_url}}
            response: ChatCompletion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": MEDIA_CAPTION_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [{"type": "text", "text": prompt}, media_part],
                    },
                ],
            )
            content = response.choices[0].message.content
            summary = content.strip() if content else ""
            if not summary:
                raise ValueError("Empty caption from vision model")
            return summary
        except Exception as e:
            raise self._handle_errors(e) from e
