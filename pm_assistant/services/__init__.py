# Services package
"""Indexing, scheduling and external lookups for the project assistant."""

from .document_builder import build_documents
from .external_data import NamedayEntry, NamedayService, WeatherService
from .index_sync import IndexSyncEngine
from .sync_coordinator import SyncCoordinator
from .vector_service import ChromaVectorIndex

__all__ = [
    "build_documents",
    "ChromaVectorIndex",
    "IndexSyncEngine",
    "SyncCoordinator",
    "NamedayEntry",
    "NamedayService",
    "WeatherService",
]
