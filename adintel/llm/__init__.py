from adintel.llm.chat import ChatClient, ProviderChatClient
from adintel.llm.embeddings import Embedder, OpenAIEmbedder
from adintel.llm.vision import CaptioningClient, GeminiVisionClient

__all__ = [
    "CaptioningClient",
    "ChatClient",
    "Embedder",
    "GeminiVisionClient",
    "OpenAIEmbedder",
    "ProviderChatClient",
]
