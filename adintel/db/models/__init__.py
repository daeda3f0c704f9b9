from adintel.db.models.campaign import Campaign
from adintel.db.models.chat_message import ChatMessage
from adintel.db.models.content_item import ContentItem
from adintel.db.models.index_document import IndexCollection, IndexDocument
from adintel.db.models.indexing_job import IndexingJob

__all__ = [
    "Campaign",
    "ChatMessage",
    "ContentItem",
    "IndexCollection",
    "IndexDocument",
    "IndexingJob",
]
