"""Composio tool-execution API for posting to connected social accounts."""

from __future__ import annotations

from typing import Any

import httpx

from adintel.integrations.http import HttpIntegration, IntegrationError


class ComposioClient(HttpIntegration):
    service_name = "Composio"
    credential_setting = "composio_api_key"

    def __init__(self, http_client: httpx.AsyncClient, api_key: str | None, api_url: str) -> None:
        super().__init__(http_client, api_key)
        self._api_url = api_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self._require_credential()}

    async def list_connected_toolkits(self, user_id: str) -> list[str]:
        """Return the toolkit slugs (e.g. ``linkedin``) the user has connected."""
        response = await self._request(
            "GET",
            f"{self._api_url}/connected_accounts",
            headers=self._headers(),
            params={"user_ids": user_id},
        )
        if response.is_error:
            raise IntegrationError(
                f"Composio connected accounts lookup failed ({response.status_code})",
                "composio_error",
            )
        data = self._json(response, self.service_name)
        slugs: list[str] = []
        for account in data.get("items", []):
            slug = (account.get("toolkit") or {}).get("slug")
            if slug:
                slugs.append(str(slug).lower())
        return slugs

    async def execute_tool(
        self, tool_slug: str, user_id: str, arguments: dict[str, Any]
    ) -> dict[str, Any]:
        """Run a Composio tool; raises if the tool reports failure."""
        response = await self._request(
            "POST",
            f"{self._api_url}/tools/execute/{tool_slug}",
            headers=self._headers(),
            json={"user_id": user_id, "arguments": arguments},
        )
        if response.is_error:
            raise IntegrationError(
                f"{tool_slug} failed ({response.status_code}): {response.text}", "composio_error"
            )
        result = self._json(response, self.service_name)
        if result.get("successful") is False:
            raise IntegrationError(result.get("error") or f"{tool_slug} failed", "composio_error")
        return result
