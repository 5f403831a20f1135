# Providers package
"""External service providers for the project assistant."""

from .embedding_providers import OllamaEmbeddings, SentenceTransformerEmbeddings, create_embeddings
from .llm_providers import GroqLLM, OllamaLLM, create_llm

__all__ = [
    "GroqLLM",
    "OllamaLLM",
    "create_llm",
    "OllamaEmbeddings",
    "SentenceTransformerEmbeddings",
    "create_embeddings",
]
