"""API-layer dependencies: request-scoped wiring (UoW, collaborator handles)."""

from adintel.api.dependencies.clients import (
    get_brightdata,
    get_captioner,
    get_chat_client,
    get_competitor_service,
    get_indexing_pipeline,
    get_indexing_queue,
    get_media_store,
    get_social_actions,
    get_tiktok_resolver,
    get_vector_index,
)
from adintel.api.dependencies.unit_of_work import UnitOfWork, get_uow

__all__ = [
    "UnitOfWork",
    "get_brightdata",
    "get_captioner",
    "get_chat_client",
    "get_competitor_service",
    "get_indexing_pipeline",
    "get_indexing_queue",
    "get_media_store",
    "get_social_actions",
    "get_tiktok_resolver",
    "get_uow",
    "get_vector_index",
]
