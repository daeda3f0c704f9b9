"""API request and response schemas.

Import request/response models from the submodules (e.g. content, campaigns)
or from this package for a single entry point.
"""

from __future__ import annotations

from adintel.api.schemas.campaigns import (
    CampaignCreateRequest,
    CampaignHistoryResponse,
    CampaignResponse,
    CampaignUpdateRequest,
    ChatHistoryAppendRequest,
    ChatMessageResponse,
)
from adintel.api.schemas.chat import ChatRequest
from adintel.api.schemas.collections import (
    AddDocumentsRequest,
    CollectionCreateRequest,
    CollectionResponse,
    QueryCollectionRequest,
)
from adintel.api.schemas.content import (
    ContentItemCreateRequest,
    ContentItemResponse,
    ContentItemUpdateRequest,
    IndexingJobResponse,
)
from adintel.api.schemas.downloads import DownloadVideoRequest, DownloadVideoResponse
from adintel.api.schemas.media import (
    AcceptedResponse,
    AnalyzeMediaRequest,
    MediaDeleteRequest,
    MediaUploadResponse,
    ProcessContentRequest,
)
from adintel.api.schemas.meta import HealthResponse
from adintel.api.schemas.research import ScrapeRequest, SearchRequest
from adintel.api.schemas.social import (
    ActionResultResponse,
    ConnectedAccountsResponse,
    ExecuteActionRequest,
)

__all__ = [
    "AcceptedResponse",
    "ActionResultResponse",
    "AddDocumentsRequest",
    "AnalyzeMediaRequest",
    "CampaignCreateRequest",
    "CampaignHistoryResponse",
    "CampaignResponse",
    "CampaignUpdateRequest",
    "ChatHistoryAppendRequest",
    "ChatMessageResponse",
    "ChatRequest",
    "CollectionCreateRequest",
    "CollectionResponse",
    "ConnectedAccountsResponse",
    "ContentItemCreateRequest",
    "ContentItemResponse",
    "ContentItemUpdateRequest",
    "DownloadVideoRequest",
    "DownloadVideoResponse",
    "ExecuteActionRequest",
    "HealthResponse",
    "IndexingJobResponse",
    "MediaDeleteRequest",
    "MediaUploadResponse",
    "ProcessContentRequest",
    "QueryCollectionRequest",
    "ScrapeRequest",
    "SearchRequest",
]
