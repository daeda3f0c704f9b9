from __future__ import annotations

import logging
import sys
import types
from importlib.metadata import PackageNotFoundError, version
from typing import cast

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ExceptionHandler

from adintel.api.router import router as api_router
from adintel.core.config import InvalidSettingsError, MissingRequiredSettingsError
from adintel.core.errors import (
    http_exception_handler,
    rate_limit_exception_handler,
    request_validation_exception_handler,
    unhandled_exception_handler,
)
from adintel.core.lifespan import lifespan
from adintel.core.logging import configure_logging
from adintel.core.rate_limit import limiter
from adintel.db.models.index_document import EMBEDDING_DIMENSIONS
from adintel.db.session import Database
from adintel.integrations.brightdata import BrightDataClient
from adintel.integrations.competitor_research import CompetitorResearchClient
from adintel.integrations.composio import ComposioClient
from adintel.integrations.media_store import SupabaseMediaStore
from adintel.integrations.video_links import TikTokResolver
from adintel.llm.chat import ChatClient, ProviderChatClient
from adintel.llm.embeddings import Embedder, OpenAIEmbedder
from adintel.llm.vision import CaptioningClient, GeminiVisionClient
from adintel.services.campaign_service import campaign_service_factory_provider
from adintel.services.competitor_analysis import CompetitorAnalysisService
from adintel.services.content_service import content_service_factory_provider
from adintel.services.indexing_pipeline import IndexingPipeline
from adintel.services.indexing_queue import IndexingQueue
from adintel.services.social_actions import SocialActionService
from adintel.vector.index import VectorIndex

# Import settings - this may raise MissingRequiredSettingsError
try:
    from adintel.core.config import settings
except MissingRequiredSettingsError as e:
    print("ERROR: Missing required environment variables:", file=sys.stderr)
    for field in e.missing_fields:
        print(f"  - {field}", file=sys.stderr)
    print(
        "\nPlease set these in your .env file (see env.example for reference)",
        file=sys.stderr,
    )
    sys.exit(1)
except InvalidSettingsError as e:
    print("ERROR: Invalid environment variable values:", file=sys.stderr)
    for field, message in e.invalid_fields:
        print(f"  - {field}: {message}", file=sys.stderr)
    print(
        "\nPlease update these in your .env file (see env.example for reference)",
        file=sys.stderr,
    )
    sys.exit(1)


def create_app(
    database: Database | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    embedder: Embedder | None = None,
    captioner: CaptioningClient | None = None,
    chat_client: ChatClient | None = None,
) -> FastAPI:
    """Build the application and the collaborator handles it owns.

    Every handle is created here once and shared by reference through ``app.state``;
    tests pass their own database and fakes for the model clients.
    """
    configure_logging()

    try:
        api_version = version("ad-intelligence-api")
    except PackageNotFoundError:
        api_version = "0.1.0"  # Fallback if package not installed
        logging.warning("ad-intelligence-api package not found, using fallback version 0.1.0")

    is_debug_mode = settings.environment == "local"
    app = FastAPI(
        title=settings.app_name,
        version=api_version,
        debug=is_debug_mode,
        lifespan=lifespan,
    )
    app.add_exception_handler(
        StarletteHTTPException, cast(ExceptionHandler, http_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast(ExceptionHandler, request_validation_exception_handler)
    )
    app.add_exception_handler(
        RateLimitExceeded, cast(ExceptionHandler, rate_limit_exception_handler)
    )
    app.add_exception_handler(Exception, cast(ExceptionHandler, unhandled_exception_handler))
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.include_router(api_router, prefix="/api")

    if database is None:
        assert settings.database_url is not None
        database = Database.from_url(settings.database_url)
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    if embedder is None:
        embedder = OpenAIEmbedder(
            settings.openai_api_key, settings.embedding_model, dimensions=EMBEDDING_DIMENSIONS
        )
    if captioner is None:
        captioner = GeminiVisionClient(
            settings.gemini_api_key,
            settings.gemini_base_url,
            settings.vision_model,
            http_client=http_client,
        )
    if chat_client is None:
        chat_client = ProviderChatClient.from_settings(settings)

    vector_index = VectorIndex(
        database.session_maker, embedder, settings.vector_default_collection
    )
    pipeline = IndexingPipeline(database.session_maker, captioner, vector_index)
    research_client = CompetitorResearchClient(
        http_client,
        settings.anthropic_api_key,
        messages_url=settings.competitor_messages_url,
        model=settings.competitor_model,
        api_version=settings.competitor_api_version,
        websearch_beta=settings.competitor_websearch_beta,
        web_search_enabled=settings.competitor_web_search_enabled,
        max_tokens=settings.competitor_max_tokens,
    )

    app.state.database = database
    app.state.http_client = http_client
    app.state.vector_index = vector_index
    app.state.captioner = captioner
    app.state.chat_client = chat_client
    app.state.indexing_pipeline = pipeline
    app.state.indexing_queue = IndexingQueue(
        database.session_maker,
        pipeline,
        max_attempts=settings.indexing_max_attempts,
        retry_delay=settings.indexing_retry_delay_seconds,
    )
    app.state.competitor_service = CompetitorAnalysisService(research_client)
    app.state.brightdata = BrightDataClient(
        http_client, settings.brightdata_token, settings.brightdata_api_url
    )
    app.state.social_actions = SocialActionService(
        ComposioClient(http_client, settings.composio_api_key, settings.composio_api_url)
    )
    app.state.media_store = SupabaseMediaStore(
        http_client, settings.supabase_url, settings.supabase_service_key
    )
    app.state.tiktok_resolver = TikTokResolver(http_client, settings.tikwm_api_url)

    _services = {
        "content_service": content_service_factory_provider(),
        "campaign_service": campaign_service_factory_provider(),
    }
    app.state.services = types.MappingProxyType(_services)

    return app


app = create_app()
