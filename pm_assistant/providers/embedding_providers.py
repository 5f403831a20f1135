# embedding_providers.py
"""Embedding providers: local SentenceTransformer or an Ollama server."""

import asyncio
import logging
from typing import List, Optional

import httpx

from pm_assistant.core import EmbeddingInterface, settings
from pm_assistant.core.exceptions import RateLimitError, UpstreamServiceError

logger = logging.getLogger(__name__)


class SentenceTransformerEmbeddings(EmbeddingInterface):
    """Free local embeddings with SentenceTransformer.

    The model is loaded on first use so importing the app stays cheap.
    """

    def __init__(self, model_name: Optional[str] = None, dimension: Optional[int] = None):
        self.model_name = model_name or settings.EMBEDDING_MODEL
        self.dimension = dimension or settings.EMBEDDING_DIMENSION
        self._model = None

    def _load_model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info(f"Loading SentenceTransformer model {self.model_name}...")
            self._model = SentenceTransformer(self.model_name)
            logger.info("SentenceTransformer model loaded successfully")
        return self._model

    def _encode(self, texts: List[str]) -> List[List[float]]:
        model = self._load_model()
        return model.encode(texts).tolist()

    async def embed(self, text: str) -> List[float]:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, texts)


class OllamaEmbeddings(EmbeddingInterface):
    """Embeddings from a local Ollama server (``/api/embed``)"""

    def __init__(
        self,
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
        dimension: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.model_name = model_name or settings.OLLAMA_EMBED_MODEL
        self.base_url = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self.dimension = dimension or settings.EMBEDDING_DIMENSION
        self._client = client

    async def embed(self, text: str) -> List[float]:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        payload = {
            "model": self.model_name,
            "input": [" ".join(text.split()) for text in texts],
        }
        client = self._client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT * 4)
        try:
            response = await client.post(f"{self.base_url}/api/embed", json=payload)
        except httpx.HTTPError as e:
            raise UpstreamServiceError(f"Ollama embedding request failed: {str(e)}") from e
        finally:
            if self._client is None:
                await client.aclose()

        if response.status_code == 429:
            raise RateLimitError("Ollama is rate limiting embedding requests")
        if response.status_code >= 400:
            raise UpstreamServiceError(
                f"Ollama API error {response.status_code}: {response.text}"
            )

        embeddings = response.json().get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise UpstreamServiceError("Invalid embeddings received from Ollama")
        return embeddings


def create_embeddings(provider: Optional[str] = None) -> EmbeddingInterface:
    """Factory for the configured embedding provider"""
    provider = (provider or settings.EMBEDDING_PROVIDER).lower()
    if provider == "ollama":
        return OllamaEmbeddings()
    if provider == "sentence-transformers":
        return SentenceTransformerEmbeddings()
    raise ValueError(f"Unknown embedding provider: {provider}")
