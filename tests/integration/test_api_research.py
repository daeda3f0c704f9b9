"""Integration tests for the BrightData search and scrape proxy."""

from __future__ import annotations

import json

import httpx
import pytest
from conftest import UpstreamStub
from fastapi import status
from httpx import AsyncClient

TOOLS_URL = "https://mcp.brightdata.com/api/tools/call"


@pytest.mark.asyncio
async def test_search_returns_results(
    async_http_client: AsyncClient, upstream: UpstreamStub
) -> None:
    # Arrange
    results = [{"title": "Acme", "url": "https://acme.example.com"}]
    upstream.add("POST", TOOLS_URL, httpx.Response(200, json={"results": results}))

    # Act
    response = await async_http_client.post(
        "/api/brightdata/search", json={"query": "  acme shoes  ", "maxResults": 5}
    )

    # Assert
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "results": results, "query": "acme shoes"}
    sent = upstream.requests[0]
    assert sent.headers["authorization"].startswith("Bearer ")
    assert json.loads(sent.content) == {
        "tool": "search_engine",
        "arguments": {"query": "acme shoes", "max_results": 5},
    }


@pytest.mark.asyncio
async def test_scrape_returns_markdown(
    async_http_client: AsyncClient, upstream: UpstreamStub
) -> None:
    # Arrange
    upstream.add(
        "POST",
        TOOLS_URL,
        httpx.Response(200, json={"content": "# Acme", "metadata": {"title": "Acme"}}),
    )

    # Act
    response = await async_http_client.post(
        "/api/brightdata/scrape", json={"url": "https://acme.example.com"}
    )

    # Assert
    assert response.json() == {
        "success": True,
        "markdown": "# Acme",
        "url": "https://acme.example.com",
        "metadata": {"title": "Acme"},
    }
    arguments = json.loads(upstream.requests[0].content)["arguments"]
    assert arguments == {
        "url": "https://acme.example.com",
        "include_links": True,
        "include_images": False,
    }


@pytest.mark.asyncio
async def test_upstream_error_keeps_its_status(
    async_http_client: AsyncClient, upstream: UpstreamStub
) -> None:
    # Arrange
    upstream.add("POST", TOOLS_URL, httpx.Response(503, text="maintenance"))

    # Act
    response = await async_http_client.post("/api/brightdata/search", json={"query": "acme"})

    # Assert
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json() == {
        "error": "brightdata_error",
        "message": "BrightData search_engine request failed",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "payload", "message"),
    [
        ("/api/brightdata/search", {}, "Query is required"),
        ("/api/brightdata/search", {"query": "   "}, "Query is required"),
        ("/api/brightdata/scrape", {}, "Valid URL is required"),
        ("/api/brightdata/scrape", {"url": "acme.example.com"}, "Valid URL is required"),
    ],
)
async def test_research_validation(
    async_http_client: AsyncClient,
    upstream: UpstreamStub,
    path: str,
    payload: dict[str, str],
    message: str,
) -> None:
    # Act
    response = await async_http_client.post(path, json=payload)

    # Assert
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "bad_request", "message": message}
    assert upstream.requests == []
