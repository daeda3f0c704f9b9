"""Supabase Storage buckets for uploaded campaign and library media."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Literal

import httpx

from adintel.core.errors import ServiceNotConfiguredError
from adintel.integrations.http import HttpIntegration, IntegrationError

logger = logging.getLogger(__name__)

MediaBucket = Literal["campaign-media", "content-library"]


class SupabaseMediaStore(HttpIntegration):
    service_name = "Supabase Storage"
    credential_setting = "supabase_service_key"

    def __init__(
        self, http_client: httpx.AsyncClient, project_url: str | None, service_key: str | None
    ) -> None:
        super().__init__(http_client, service_key)
        self._project_url = project_url.rstrip("/") if project_url else None

    def _base_url(self) -> str:
        if not self._project_url:
            raise ServiceNotConfiguredError(self.service_name, "supabase_url")
        return f"{self._project_url}/storage/v1"

    def _headers(self) -> dict[str, str]:
        key = self._require_credential()
        return {"Authorization": f"Bearer {key}", "apikey": key}

    @staticmethod
    def build_object_name(filename: str) -> str:
        """Unique object name that keeps the original extension."""
        extension = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
        return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}.{extension}"

    def public_url(self, bucket: MediaBucket, object_name: str) -> str:
        return f"{self._base_url()}/object/public/{bucket}/{object_name}"

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str | None,
        bucket: MediaBucket = "campaign-media",
    ) -> str:
        """Store the file and return its public URL."""
        object_name = self.build_object_name(filename)
        headers = self._headers()
        headers["Content-Type"] = content_type or "application/octet-stream"
        headers["cache-control"] = "3600"
        headers["x-upsert"] = "false"
        response = await self._request(
            "POST",
            f"{self._base_url()}/object/{bucket}/{object_name}",
            headers=headers,
            content=content,
        )
        if response.is_error:
            logger.error("Error uploading file: %s", response.text)
            raise IntegrationError(
                f"Failed to upload file ({response.status_code})", "media_upload_failed"
            )
        return self.public_url(bucket, object_name)

    async def delete(self, url: str, bucket: MediaBucket = "campaign-media") -> None:
        object_name = url.rstrip("/").split("/")[-1]
        response = await self._request(
            "DELETE",
            f"{self._base_url()}/object/{bucket}",
            headers=self._headers(),
            json={"prefixes": [object_name]},
        )
        if response.is_error:
            logger.error("Error deleting file: %s", response.text)
            raise IntegrationError(
                f"Failed to delete file ({response.status_code})", "media_delete_failed"
            )
