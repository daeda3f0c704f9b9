"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
import math
import os

# Settings are validated when adintel is first imported, so the test environment
# has to be in place before any application import below.
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["INDEXING_RETRY_DELAY_SECONDS"] = "0"
os.environ["RATE_LIMIT_STORAGE_URL"] = "memory://"
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")
os.environ.setdefault("BRIGHTDATA_TOKEN", "test-brightdata-token")
os.environ.setdefault("COMPOSIO_API_KEY", "test-composio-key")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")

from collections.abc import AsyncIterator  # noqa: E402
from typing import Any  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlalchemy.sql.compiler import SQLCompiler  # noqa: E402
from sqlalchemy.sql.elements import BinaryExpression  # noqa: E402
from sqlalchemy.sql.operators import custom_op  # noqa: E402

import adintel.db.models  # noqa: E402, F401
from adintel.core.rate_limit import limiter  # noqa: E402
from adintel.db.base import Base  # noqa: E402
from adintel.db.models.index_document import EMBEDDING_DIMENSIONS  # noqa: E402
from adintel.db.session import Database  # noqa: E402
from adintel.llm.chat import ChatClient, ChatModel  # noqa: E402
from adintel.llm.client import LLMUnavailableError  # noqa: E402
from adintel.llm.embeddings import Embedder  # noqa: E402
from adintel.llm.schemas import ChatChunk, ChatTurn  # noqa: E402
from adintel.llm.vision import CaptioningClient  # noqa: E402
from adintel.main import create_app  # noqa: E402
from adintel.services.indexing_pipeline import IndexingPipeline  # noqa: E402
from adintel.services.indexing_queue import IndexingQueue  # noqa: E402
from adintel.vector.index import VectorIndex  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"

DEFAULT_CAPTION = "A sunlit beach with a red umbrella and two friends laughing by the shore"


class FakeEmbedder(Embedder):
    """Letter-frequency vectors: texts sharing words end up close together."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.failures = 0
        self.before_embed: Any = None

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.failures:
            self.failures -= 1
            raise LLMUnavailableError("Embedding model unavailable")
        if self.before_embed is not None:
            await self.before_embed(texts)
        return [letter_vector(text) for text in texts]


def letter_vector(text: str) -> list[float]:
    """Letter counts in the first 26 slots, zero-padded to the index column size."""
    counts = [0.0] * EMBEDDING_DIMENSIONS
    for char in text.lower():
        if "a" <= char <= "z":
            counts[ord(char) - ord("a")] += 1.0
    return counts


def _sqlite_cosine_distance(left: str | None, right: str | None) -> float | None:
    if left is None or right is None:
        return None
    a, b = json.loads(left), json.loads(right)
    dot = math.fsum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(math.fsum(x * x for x in a)) * math.sqrt(math.fsum(y * y for y in b))
    if norm == 0:
        return 1.0
    return 1.0 - dot / norm


@compiles(BinaryExpression, "sqlite")
def _compile_vector_operators_for_sqlite(
    element: BinaryExpression[Any], compiler: SQLCompiler, **kw: Any
) -> str:
    """SQLite has no pgvector; render ``a <=> b`` as a registered function call."""
    operator = element.operator
    if isinstance(operator, custom_op) and operator.opstring == "<=>":
        left = compiler.process(element.left, **kw)
        right = compiler.process(element.right, **kw)
        return f"cosine_distance({left}, {right})"
    return compiler.visit_binary(element, **kw)


class FakeCaptioner(CaptioningClient):
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.failures = 0
        self.caption = DEFAULT_CAPTION

    async def describe_media(
        self,
        url: str,
        media_type: str,
        name: str | None = None,
        thumbnail: str | None = None,
    ) -> str:
        self.calls.append(
            {"url": url, "media_type": media_type, "name": name, "thumbnail": thumbnail}
        )
        if self.failures:
            self.failures -= 1
            raise LLMUnavailableError("Vision model unavailable")
        return self.caption


class FakeChatClient(ChatClient):
    def __init__(self) -> None:
        self.chunks: list[ChatChunk] = [ChatChunk(text="Hello"), ChatChunk(text=" there")]
        self.error: Exception | None = None
        self.calls: list[dict[str, Any]] = []

    async def stream_chat(
        self,
        model: ChatModel,
        system_prompt: str,
        messages: list[ChatTurn],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[ChatChunk]:
        self.calls.append(
            {"model": model, "system_prompt": system_prompt, "messages": messages, "tools": tools}
        )
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


class UpstreamStub:
    """Canned responses for outbound HTTP calls, matched by method and URL prefix.

    Several responses registered for one route are returned in order; the last
    one repeats.
    """

    def __init__(self) -> None:
        self._routes: list[tuple[str, str, list[httpx.Response]]] = []
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url_prefix: str, *responses: httpx.Response) -> None:
        self._routes.append((method.upper(), url_prefix, list(responses)))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        for method, prefix, responses in self._routes:
            if request.method == method and url.startswith(prefix):
                response = responses.pop(0) if len(responses) > 1 else responses[0]
                return httpx.Response(
                    response.status_code, headers=response.headers, content=response.content
                )
        return httpx.Response(404, json={"error": f"no stub for {request.method} {url}"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))


@pytest.fixture(autouse=True)
def reset_rate_limits() -> None:
    """Rate limit counters are process-wide; start every test with a clean slate."""
    limiter.reset()


@pytest_asyncio.fixture
async def database() -> AsyncIterator[Database]:
    """A fresh in-memory database per test, shared by every session through one connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def register_vector_functions(dbapi_connection: Any, _: Any) -> None:
        dbapi_connection.create_function(
            "cosine_distance", 2, _sqlite_cosine_distance, deterministic=True
        )

    db = Database(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.dispose()


@pytest.fixture
def session_maker(database: Database) -> async_sessionmaker[AsyncSession]:
    return database.session_maker


@pytest_asyncio.fixture
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def captioner() -> FakeCaptioner:
    return FakeCaptioner()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def vector_index(
    session_maker: async_sessionmaker[AsyncSession], embedder: FakeEmbedder
) -> VectorIndex:
    return VectorIndex(session_maker, embedder, "user_default")


@pytest.fixture
def pipeline(
    session_maker: async_sessionmaker[AsyncSession],
    captioner: FakeCaptioner,
    vector_index: VectorIndex,
) -> IndexingPipeline:
    return IndexingPipeline(session_maker, captioner, vector_index)


@pytest_asyncio.fixture
async def queue(
    session_maker: async_sessionmaker[AsyncSession], pipeline: IndexingPipeline
) -> AsyncIterator[IndexingQueue]:
    indexing_queue = IndexingQueue(session_maker, pipeline, max_attempts=3, retry_delay=0)
    yield indexing_queue
    await indexing_queue.stop()


@pytest_asyncio.fixture
async def async_app(
    database: Database,
    upstream: UpstreamStub,
    embedder: FakeEmbedder,
    captioner: FakeCaptioner,
    chat_client: FakeChatClient,
) -> AsyncIterator[FastAPI]:
    """App wired to the test database, fake model clients and stubbed HTTP collaborators.

    ASGITransport does not run the lifespan, so no background worker is started;
    tests call ``app_queue.drain()`` to run queued jobs.
    """
    http_client = upstream.client()
    fastapi_app = create_app(
        database,
        http_client=http_client,
        embedder=embedder,
        captioner=captioner,
        chat_client=chat_client,
    )
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    await fastapi_app.state.indexing_queue.stop()
    await http_client.aclose()


@pytest.fixture
def app_queue(async_app: FastAPI) -> IndexingQueue:
    return async_app.state.indexing_queue


@pytest_asyncio.fixture
async def async_http_client(async_app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Creates an async http client."""
    transport = ASGITransport(app=async_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


# Synchronous fixtures (function-scoped, for synchronous tests that don't need database access)


@pytest.fixture(scope="function")
def app() -> FastAPI:
    """Creates a FastAPI app for synchronous tests (function-scoped)."""
    return create_app(
        embedder=FakeEmbedder(), captioner=FakeCaptioner(), chat_client=FakeChatClient()
    )


@pytest.fixture(scope="function")
def http_client(app: FastAPI) -> TestClient:
    """Creates a synchronous http client (for synchronous tests, can run in parallel)."""
    return TestClient(app)
