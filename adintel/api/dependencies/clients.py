"""Collaborator handles built once in ``create_app`` and read from ``app.state``."""

from __future__ import annotations

from fastapi import Request

from adintel.integrations.brightdata import BrightDataClient
from adintel.integrations.media_store import SupabaseMediaStore
from adintel.integrations.video_links import TikTokResolver
from adintel.llm.chat import ChatClient
from adintel.llm.vision import CaptioningClient
from adintel.services.competitor_analysis import CompetitorAnalysisService
from adintel.services.indexing_pipeline import IndexingPipeline
from adintel.services.indexing_queue import IndexingQueue
from adintel.services.social_actions import SocialActionService
from adintel.vector.index import VectorIndex


def get_vector_index(request: Request) -> VectorIndex:
    return request.app.state.vector_index


def get_captioner(request: Request) -> CaptioningClient:
    return request.app.state.captioner


def get_indexing_pipeline(request: Request) -> IndexingPipeline:
    return request.app.state.indexing_pipeline


def get_indexing_queue(request: Request) -> IndexingQueue:
    return request.app.state.indexing_queue


def get_chat_client(request: Request) -> ChatClient:
    return request.app.state.chat_client


def get_competitor_service(request: Request) -> CompetitorAnalysisService:
    return request.app.state.competitor_service


def get_brightdata(request: Request) -> BrightDataClient:
    return request.app.state.brightdata


def get_social_actions(request: Request) -> SocialActionService:
    return request.app.state.social_actions


def get_media_store(request: Request) -> SupabaseMediaStore:
    return request.app.state.media_store


def get_tiktok_resolver(request: Request) -> TikTokResolver:
    return request.app.state.tiktok_resolver
