from adintel.integrations.brightdata import BrightDataClient
from adintel.integrations.competitor_research import CompetitorResearchClient
from adintel.integrations.composio import ComposioClient
from adintel.integrations.http import IntegrationError, IntegrationUnavailableError
from adintel.integrations.media_store import SupabaseMediaStore
from adintel.integrations.video_links import TikTokResolver, VideoLinkError

__all__ = [
    "BrightDataClient",
    "CompetitorResearchClient",
    "ComposioClient",
    "IntegrationError",
    "IntegrationUnavailableError",
    "SupabaseMediaStore",
    "TikTokResolver",
    "VideoLinkError",
]
