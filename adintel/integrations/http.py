from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import status

from adintel.core.errors import ServiceError, ServiceNotConfiguredError

logger = logging.getLogger(__name__)


class IntegrationError(ServiceError):
    """A third-party HTTP service failed or returned something unusable."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self, message: str, error_code: str = "upstream_error", status_code: int | None = None
    ) -> None:
        super().__init__(message, error_code)
        if status_code is not None:
            self.status_code = status_code


class IntegrationUnavailableError(IntegrationError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str) -> None:
        super().__init__(message, "upstream_unavailable")


class HttpIntegration:
    """Base for collaborators reached over plain JSON/HTTP with a shared httpx client."""

    service_name: str = "service"
    credential_setting: str = ""

    def __init__(self, http_client: httpx.AsyncClient, credential: str | None = None) -> None:
        self._http = http_client
        self._credential = credential

    def _require_credential(self) -> str:
        if not self._credential:
            raise ServiceNotConfiguredError(self.service_name, self.credential_setting)
        return self._credential

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any | None = None,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {"headers": headers, "json": json, "params": params}
        if content is not None:
            kwargs["content"] = content
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{self.service_name} request timed out. Error: {e}")
            raise IntegrationUnavailableError(f"{self.service_name} request timed out.") from e
        except httpx.HTTPError as e:
            logger.error(f"{self.service_name} request failed. Error: {e}")
            raise IntegrationUnavailableError(f"{self.service_name} is unreachable.") from e

    @staticmethod
    def _json(response: httpx.Response, service_name: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise IntegrationError(f"{service_name} returned invalid JSON.") from e
