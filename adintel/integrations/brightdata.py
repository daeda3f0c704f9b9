"""BrightData web search and scrape tools."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from adintel.integrations.http import HttpIntegration, IntegrationError

logger = logging.getLogger(__name__)


class BrightDataClient(HttpIntegration):
    service_name = "BrightData"
    credential_setting = "brightdata_token"

    def __init__(
        self, http_client: httpx.AsyncClient, token: str | None, api_url: str
    ) -> None:
        super().__init__(http_client, token)
        self._api_url = api_url

    async def _call_tool(self, tool: str, arguments: dict[str, Any]) -> Any:
        token = self._require_credential()
        response = await self._request(
            "POST",
            self._api_url,
            headers={"Authorization": f"Bearer {token}"},
            json={"tool": tool, "arguments": arguments},
        )
        if response.is_error:
            logger.error("BrightData %s error: %s", tool, response.text)
            raise IntegrationError(
                f"BrightData {tool} request failed",
                "brightdata_error",
                status_code=response.status_code,
            )
        return self._json(response, self.service_name)

    async def search(self, query: str, max_results: int = 10) -> dict[str, Any]:
        data = await self._call_tool(
            "search_engine", {"query": query, "max_results": max_results}
        )
        results = data.get("results", data) if isinstance(data, dict) else data
        return {"success": True, "results": results, "query": query}

    async def scrape(
        self, url: str, include_links: bool = True, include_images: bool = False
    ) -> dict[str, Any]:
        data = await self._call_tool(
            "scrape_as_markdown",
            {"url": url, "include_links": include_links, "include_images": include_images},
        )
        logger.info("BrightData scrape success for URL: %s", url)
        if isinstance(data, dict):
            markdown = data.get("content") or data.get("markdown") or data
            metadata = data.get("metadata") or {}
        else:
            markdown, metadata = data, {}
        return {"success": True, "markdown": markdown, "url": url, "metadata": metadata}
