from adintel.services.campaign_service import (
    CampaignNotFoundError,
    CampaignService,
    campaign_service_factory_provider,
)
from adintel.services.chat_service import ChatService
from adintel.services.competitor_analysis import CompetitorAnalysisService
from adintel.services.content_service import (
    ContentNotFoundError,
    ContentService,
    content_service_factory_provider,
)
from adintel.services.indexing_pipeline import IndexableItem, IndexingPipeline
from adintel.services.indexing_queue import IndexingQueue
from adintel.services.social_actions import SocialActionService

__all__ = [
    "CampaignNotFoundError",
    "CampaignService",
    "ChatService",
    "CompetitorAnalysisService",
    "ContentNotFoundError",
    "ContentService",
    "IndexableItem",
    "IndexingPipeline",
    "IndexingQueue",
    "SocialActionService",
    "campaign_service_factory_provider",
    "content_service_factory_provider",
]
