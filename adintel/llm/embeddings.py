from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from adintel.llm.client import OpenAICompatibleClient


class Embedder(ABC):
    """Turns document and query text into vectors for the similarity index."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        raise NotImplementedError


class OpenAIEmbedder(OpenAICompatibleClient, Embedder):
    def __init__(self, api_key: str | None, model: str, dimensions: int | None = None) -> None:
        super().__init__(api_key)
        self.model = model
        self.dimensions = dimensions

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            # The embeddings API rejects empty strings
            inputs = [text if text.strip() else " " for text in texts]
            kwargs: dict[str, Any] = {"model": self.model, "input": inputs}
            if self.dimensions is not None:
                kwargs["dimensions"] = self.dimensions
            response = await self.client.embeddings.create(**kwargs)
            ordered = sorted(response.data, key=lambda item: item.index)
            if len(ordered) != len(texts):
                raise ValueError("Embedding count does not match input count")
            return [list(item.embedding) for item in ordered]
        except Exception as e:
            raise self._handle_errors(e) from e
