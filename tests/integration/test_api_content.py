"""Integration tests for content item endpoints and their indexing."""

from __future__ import annotations

import pytest
from conftest import DEFAULT_CAPTION, FakeCaptioner
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from adintel.api.schemas import ContentItemResponse, IndexingJobResponse
from adintel.db.models.indexing_job import IndexingJob, JobStatus
from adintel.services.indexing_queue import IndexingQueue
from adintel.vector.index import VectorIndex, VectorIndexError

IMAGE = {
    "category": "inspiration",
    "type": "image",
    "name": "summer-promo.jpg",
    "url": "https://cdn.example.com/summer-promo.jpg",
}


async def _create(client: AsyncClient, payload: dict[str, str]) -> ContentItemResponse:
    response = await client.post("/api/content-items", json=payload)
    assert response.status_code == status.HTTP_201_CREATED
    return ContentItemResponse.model_validate(response.json())


@pytest.mark.asyncio
async def test_created_image_is_captioned_and_indexed(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    captioner: FakeCaptioner,
    vector_index: VectorIndex,
) -> None:
    """Adding media queues one job that captions, stores and indexes it."""
    # Act
    created = await _create(async_http_client, IMAGE)
    queued = app_queue.pending()
    await app_queue.drain()
    response = await async_http_client.get(f"/api/content-items/{created.id}")

    # Assert
    assert created.index_status == "pending"
    assert queued == 1
    assert len(captioner.calls) == 1
    body = response.json()
    assert body["indexStatus"] == "indexed"
    assert body["text"] == DEFAULT_CAPTION
    documents = await vector_index.get_documents("user_default")
    assert documents["ids"] == [created.id]
    assert documents["metadatas"][0]["category"] == "inspiration"


@pytest.mark.asyncio
async def test_text_item_is_indexed_with_its_text(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    captioner: FakeCaptioner,
    vector_index: VectorIndex,
) -> None:
    # Arrange
    payload = {
        "id": "tagline-1",
        "category": "content-library",
        "type": "text",
        "name": "Tagline",
        "text": "Run further, recover faster",
    }

    # Act
    created = await _create(async_http_client, payload)
    await app_queue.drain()

    # Assert
    assert created.id == "tagline-1"
    assert captioner.calls == []
    documents = await vector_index.get_documents("user_default")
    assert documents["documents"] == ["Run further, recover faster"]


@pytest.mark.asyncio
async def test_list_filters_by_category(async_http_client: AsyncClient) -> None:
    # Arrange
    await _create(async_http_client, IMAGE)
    await _create(
        async_http_client,
        {"category": "content-library", "type": "pdf", "name": "deck.pdf"},
    )

    # Act
    response = await async_http_client.get(
        "/api/content-items", params={"category": "content-library"}
    )

    # Assert
    assert response.status_code == status.HTTP_200_OK
    assert [item["name"] for item in response.json()] == ["deck.pdf"]


@pytest.mark.asyncio
async def test_update_changes_only_given_fields(async_http_client: AsyncClient) -> None:
    # Arrange
    created = await _create(async_http_client, IMAGE)

    # Act
    response = await async_http_client.patch(
        f"/api/content-items/{created.id}", json={"name": "renamed.jpg"}
    )

    # Assert
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["name"] == "renamed.jpg"
    assert body["url"] == IMAGE["url"]


@pytest.mark.asyncio
async def test_delete_removes_item_and_index_entry(
    async_http_client: AsyncClient, app_queue: IndexingQueue, vector_index: VectorIndex
) -> None:
    # Arrange
    created = await _create(async_http_client, IMAGE)
    await app_queue.drain()

    # Act
    response = await async_http_client.delete(f"/api/content-items/{created.id}")
    missing = await async_http_client.get(f"/api/content-items/{created.id}")

    # Assert
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json() == {
        "error": "content_not_found",
        "message": f"Content item '{created.id}' not found",
    }
    assert await vector_index.document_exists(created.id) is False


@pytest.mark.asyncio
async def test_item_deleted_before_indexing_is_never_indexed(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    captioner: FakeCaptioner,
    vector_index: VectorIndex,
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    # Arrange
    created = await _create(async_http_client, IMAGE)

    # Act
    response = await async_http_client.delete(f"/api/content-items/{created.id}")
    await app_queue.drain()

    # Assert
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert captioner.calls == []
    assert await vector_index.document_exists(created.id) is False
    async with session_maker() as session:
        jobs = await session.execute(
            select(IndexingJob).where(IndexingJob.content_item_id == created.id)
        )
        assert [job.status for job in jobs.scalars().all()] == [JobStatus.SKIPPED]


@pytest.mark.asyncio
async def test_delete_drops_index_entry_after_commit(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # Arrange
    created = await _create(async_http_client, IMAGE)
    await app_queue.drain()
    events: list[str] = []
    commit = AsyncSession.commit
    delete_documents = VectorIndex.delete_documents

    async def recording_commit(self: AsyncSession) -> None:
        events.append("commit")
        await commit(self)

    async def recording_delete(
        self: VectorIndex, ids: list[str], collection: str | None = None
    ) -> int:
        events.append("delete_documents")
        return await delete_documents(self, ids, collection)

    monkeypatch.setattr(AsyncSession, "commit", recording_commit)
    monkeypatch.setattr(VectorIndex, "delete_documents", recording_delete)

    # Act
    response = await async_http_client.delete(f"/api/content-items/{created.id}")

    # Assert
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert events[:2] == ["commit", "delete_documents"]


@pytest.mark.asyncio
async def test_delete_succeeds_when_index_is_unreachable(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    # Arrange
    created = await _create(async_http_client, IMAGE)
    await app_queue.drain()

    async def failing_delete(
        self: VectorIndex, ids: list[str], collection: str | None = None
    ) -> int:
        raise VectorIndexError("index offline")

    monkeypatch.setattr(VectorIndex, "delete_documents", failing_delete)

    # Act
    response = await async_http_client.delete(f"/api/content-items/{created.id}")
    missing = await async_http_client.get(f"/api/content-items/{created.id}")

    # Assert
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert missing.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_reindex_request_does_not_duplicate_entry(
    async_http_client: AsyncClient,
    app_queue: IndexingQueue,
    captioner: FakeCaptioner,
    vector_index: VectorIndex,
) -> None:
    """Indexing an already indexed item reuses its summary and leaves one entry."""
    # Arrange
    created = await _create(async_http_client, IMAGE)
    await app_queue.drain()

    # Act
    response = await async_http_client.post(f"/api/content-items/{created.id}/index")
    await app_queue.drain()

    # Assert
    assert response.status_code == status.HTTP_202_ACCEPTED
    job = IndexingJobResponse.model_validate(response.json())
    assert job.content_item_id == created.id
    assert job.status == "pending"
    assert len(captioner.calls) == 1
    documents = await vector_index.get_documents("user_default")
    assert documents["ids"] == [created.id]


@pytest.mark.asyncio
async def test_failed_captioning_marks_item_failed(
    async_http_client: AsyncClient, app_queue: IndexingQueue, captioner: FakeCaptioner
) -> None:
    # Arrange
    captioner.failures = 10
    created = await _create(async_http_client, IMAGE)

    # Act
    await app_queue.drain()
    response = await async_http_client.get(f"/api/content-items/{created.id}")

    # Assert
    assert response.json()["indexStatus"] == "failed"
    assert len(captioner.calls) == 3


@pytest.mark.asyncio
async def test_index_unknown_item_returns_not_found(async_http_client: AsyncClient) -> None:
    response = await async_http_client.post("/api/content-items/missing/index")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "content_not_found"


@pytest.mark.asyncio
async def test_invalid_category_is_rejected(async_http_client: AsyncClient) -> None:
    # Act
    response = await async_http_client.post(
        "/api/content-items", json={**IMAGE, "category": "somewhere-else"}
    )

    # Assert
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    body = response.json()
    assert body["error"] == "validation_error"
    assert body["message"] == "Request validation failed"
