"""Integration tests for media upload, analysis and direct indexing endpoints."""

from __future__ import annotations

import json

import httpx
import pytest
from conftest import DEFAULT_CAPTION, FakeCaptioner, UpstreamStub
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from adintel.db.models.indexing_job import IndexingJob, JobStatus
from adintel.services.indexing_queue import IndexingQueue
from adintel.vector.index import VectorIndex

STORAGE_URL = "https://project.supabase.co/storage/v1"
ACCEPTED = {
    "accepted": True,
    "message": "Media analysis job accepted and processing in background",
}


async def _jobs(session_maker: async_sessionmaker[AsyncSession]) -> list[IndexingJob]:
    async with session_maker() as session:
        result = await session.execute(select(IndexingJob))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_analyze_media_accepts_and_queues_one_job(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    # Act
    response = await async_http_client.post(
        "/api/analyze-media",
        json={"url": "https://cdn.example.com/a.jpg", "type": "image", "name": "a.jpg"},
    )

    # Assert
    assert response.status_code == status.HTTP_202_ACCEPTED
    assert response.json() == ACCEPTED
    assert app_queue.pending() == 1
    assert len(await _jobs(session_maker)) == 1


@pytest.mark.asyncio
async def test_analyze_media_for_content_item_updates_and_indexes_it(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    captioner: FakeCaptioner,
    vector_index: VectorIndex,
) -> None:
    # Arrange
    created = await async_http_client.post(
        "/api/content-items",
        json={
            "category": "content-library",
            "type": "video",
            "name": "promo.mp4",
            "url": "https://cdn.example.com/promo.mp4",
            "thumbnail": "https://cdn.example.com/promo.jpg",
        },
    )
    item_id = created.json()["id"]
    await app_queue.drain()
    captioner.caption = "A runner crossing a bridge at dawn in slow motion"

    # Act
    response = await async_http_client.post(
        "/api/analyze-media",
        json={
            "url": "https://cdn.example.com/promo.mp4",
            "type": "video",
            "name": "promo.mp4",
            "id": item_id,
            "category": "content-library",
        },
    )
    await app_queue.drain()

    # Assert
    assert response.status_code == status.HTTP_202_ACCEPTED
    assert captioner.calls[0]["thumbnail"] == "https://cdn.example.com/promo.jpg"
    assert await vector_index.document_exists(item_id) is True
    documents = await vector_index.get_documents("user_default")
    assert documents["ids"] == [item_id]


@pytest.mark.asyncio
async def test_analyze_media_without_item_only_captions(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    captioner: FakeCaptioner,
    session_maker: async_sessionmaker[AsyncSession],
    vector_index: VectorIndex,
) -> None:
    # Act
    await async_http_client.post(
        "/api/analyze-media", json={"url": "https://cdn.example.com/a.jpg", "type": "image"}
    )
    await app_queue.drain()

    # Assert
    assert len(captioner.calls) == 1
    jobs = await _jobs(session_maker)
    assert jobs[0].status == JobStatus.SKIPPED
    assert jobs[0].summary == DEFAULT_CAPTION
    assert await vector_index.list_collections() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"type": "image"}, "Missing url or type."),
        ({"url": "https://cdn.example.com/a.jpg"}, "Missing url or type."),
        ({"url": "not a url", "type": "image"}, "Invalid media URL."),
        ({"url": "ftp://cdn.example.com/a.jpg", "type": "image"}, "Invalid media URL."),
    ],
)
async def test_analyze_media_validation(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    payload: dict[str, str],
    message: str,
) -> None:
    # Act
    response = await async_http_client.post("/api/analyze-media", json=payload)

    # Assert
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "bad_request", "message": message}
    assert app_queue.pending() == 0


@pytest.mark.asyncio
async def test_process_content_stores_summary_and_indexes(
    async_http_client: AsyncClient, vector_index: VectorIndex, captioner: FakeCaptioner
) -> None:
    # Act
    response = await async_http_client.post(
        "/api/process-content",
        json={
            "id": "deck-1",
            "type": "pdf",
            "name": "deck.pdf",
            "category": "content-library",
            "summary": "Quarterly brand deck with campaign results",
        },
    )

    # Assert
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "summary": "Quarterly brand deck with campaign results",
        "indexResult": {"success": True, "added": 1},
    }
    assert captioner.calls == []
    assert await vector_index.document_exists("deck-1") is True


@pytest.mark.asyncio
async def test_process_content_requires_id(async_http_client: AsyncClient) -> None:
    response = await async_http_client.post("/api/process-content", json={"summary": "x"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Missing content item id"


@pytest.mark.asyncio
async def test_upload_media_returns_public_url(
    async_http_client: AsyncClient, upstream: UpstreamStub
) -> None:
    # Arrange
    upstream.add(
        "POST", f"{STORAGE_URL}/object/content-library/", httpx.Response(200, json={"Key": "k"})
    )

    # Act
    response = await async_http_client.post(
        "/api/media/upload",
        files={"file": ("photo.png", b"\x89PNG data", "image/png")},
        data={"bucket": "content-library"},
    )

    # Assert
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["bucket"] == "content-library"
    assert body["url"].startswith(f"{STORAGE_URL}/object/public/content-library/")
    assert body["url"].endswith(".png")
    sent = upstream.requests[0]
    assert sent.headers["content-type"] == "image/png"
    assert sent.headers["authorization"].startswith("Bearer ")
    assert sent.content == b"\x89PNG data"


@pytest.mark.asyncio
async def test_upload_to_unknown_bucket_is_rejected(async_http_client: AsyncClient) -> None:
    response = await async_http_client.post(
        "/api/media/upload",
        files={"file": ("photo.png", b"data", "image/png")},
        data={"bucket": "secrets"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_upload_failure_is_reported(
    async_http_client: AsyncClient, upstream: UpstreamStub
) -> None:
    # Arrange
    upstream.add("POST", f"{STORAGE_URL}/object/", httpx.Response(413, text="too large"))

    # Act
    response = await async_http_client.post(
        "/api/media/upload", files={"file": ("big.mp4", b"data", "video/mp4")}
    )

    # Assert
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json() == {
        "error": "media_upload_failed",
        "message": "Failed to upload file (413)",
    }


@pytest.mark.asyncio
async def test_delete_media_removes_object(
    async_http_client: AsyncClient, upstream: UpstreamStub
) -> None:
    # Arrange
    upstream.add("DELETE", f"{STORAGE_URL}/object/campaign-media", httpx.Response(200, json=[]))
    public_url = f"{STORAGE_URL}/object/public/campaign-media/1700000000000-abc.jpg"

    # Act
    response = await async_http_client.request("DELETE", "/api/media", json={"url": public_url})

    # Assert
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}
    assert json.loads(upstream.requests[0].content) == {"prefixes": ["1700000000000-abc.jpg"]}
