# Core package
"""Core models, settings and contracts for the project assistant."""

from .config import Config, DefectStatus
from .interfaces import EmbeddingInterface, LLMInterface, VectorIndexInterface
from .models import (
    ChatReply,
    IndexedDocument,
    Message,
    PayloadFilter,
    SearchHit,
    SyncResult,
)
from .settings import settings

__all__ = [
    "Config",
    "DefectStatus",
    "EmbeddingInterface",
    "LLMInterface",
    "VectorIndexInterface",
    "ChatReply",
    "IndexedDocument",
    "Message",
    "PayloadFilter",
    "SearchHit",
    "SyncResult",
    "settings",
]
