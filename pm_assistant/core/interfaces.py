# interfaces.py
"""Contracts the assistant expects from its external collaborators."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .models import IndexedDocument, PayloadFilter, SearchHit


class LLMInterface(ABC):
    """Abstract interface for LLM implementations"""

    @abstractmethod
    async def generate_response(self, prompt: str) -> str:
        pass


class EmbeddingInterface(ABC):
    """Abstract interface for embedding providers.

    Implementations raise ``RateLimitError`` when the provider is throttling
    so callers can back off and retry.
    """

    dimension: int

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        pass

    @abstractmethod
    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        pass


class VectorIndexInterface(ABC):
    """Abstract interface for the semantic vector index"""

    @abstractmethod
    async def delete_collection(self) -> None:
        """Drop the collection. A missing collection is not an error."""

    @abstractmethod
    async def recreate_collection(self, dimension: int, distance: str) -> None:
        pass

    @abstractmethod
    async def declare_payload_index(self, field: str, kind: str) -> None:
        pass

    @abstractmethod
    async def upsert(
        self, documents: List[IndexedDocument], vectors: List[List[float]]
    ) -> int:
        pass

    @abstractmethod
    async def scroll(
        self, payload_filter: Optional[PayloadFilter], limit: int
    ) -> List[SearchHit]:
        pass

    @abstractmethod
    async def count(self, payload_filter: Optional[PayloadFilter]) -> int:
        pass

    @abstractmethod
    async def search(
        self,
        vector: List[float],
        limit: int,
        payload_filter: Optional[PayloadFilter] = None,
    ) -> List[SearchHit]:
        pass

    @abstractmethod
    async def stats(self) -> Dict[str, Any]:
        pass
