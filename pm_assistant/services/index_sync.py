# index_sync.py
"""Full rebuild of the semantic index from the tracker store."""

import asyncio
import logging
import random
from typing import List, Optional, Tuple

from pm_assistant.core import (
    Config,
    EmbeddingInterface,
    IndexedDocument,
    SyncResult,
    VectorIndexInterface,
    settings,
)
from pm_assistant.core.exceptions import EmbeddingRetryError, RateLimitError
from pm_assistant.data import BaseProjectRepository
from .document_builder import build_documents

logger = logging.getLogger(__name__)


class IndexSyncEngine:
    """Rebuilds the vector index from scratch.

    The collection is dropped and recreated on every run; a failed run can
    leave the collection missing until the next successful rebuild.
    """

    def __init__(
        self,
        repository: BaseProjectRepository,
        embedder: EmbeddingInterface,
        vector_index: VectorIndexInterface,
        batch_size: Optional[int] = None,
        max_retries: Optional[int] = None,
        distance: str = "cosine",
    ):
        self.repository = repository
        self.embedder = embedder
        self.vector_index = vector_index
        self.batch_size = batch_size or settings.EMBED_BATCH_SIZE
        self.max_retries = max_retries or settings.EMBED_MAX_RETRIES
        self.distance = distance

    async def rebuild(self) -> SyncResult:
        """Drop, recreate and repopulate the collection"""
        logger.info("Starting full index rebuild...")

        await self.vector_index.delete_collection()
        await self.vector_index.recreate_collection(self.embedder.dimension, self.distance)
        for field, kind in Config.PAYLOAD_INDEXES.items():
            await self.vector_index.declare_payload_index(field, kind)

        documents, skipped = await self.load_documents()
        if not documents:
            logger.info("No valid documents to sync")
            return SyncResult(synced=0, skipped=skipped, message="No valid documents to sync.")

        synced = 0
        for start in range(0, len(documents), self.batch_size):
            batch = documents[start:start + self.batch_size]
            vectors = await self.embed_with_retry([doc.text for doc in batch])
            synced += await self.vector_index.upsert(batch, vectors)
            logger.info(f"Indexed {synced}/{len(documents)} documents")

        logger.info(f"Index rebuild finished: {synced} documents, {skipped} skipped")
        return SyncResult(synced=synced, skipped=skipped)

    async def load_documents(self) -> Tuple[List[IndexedDocument], int]:
        """Read every source table concurrently and flatten the rows"""
        requirements, defects, notes, retrospectives, releases, links = await asyncio.gather(
            asyncio.to_thread(self.repository.get_current_requirements),
            asyncio.to_thread(self.repository.get_defects),
            asyncio.to_thread(self.repository.get_notes),
            asyncio.to_thread(self.repository.get_retrospective_items),
            asyncio.to_thread(self.repository.get_releases),
            asyncio.to_thread(self.repository.get_defect_requirement_links),
        )
        return build_documents(requirements, defects, notes, retrospectives, releases, links)

    async def embed_with_retry(self, texts: List[str]) -> List[List[float]]:
        """Embed one batch, backing off exponentially while rate limited"""
        for attempt in range(self.max_retries):
            try:
                return await self.embedder.embed_batch(texts)
            except RateLimitError:
                if attempt == self.max_retries - 1:
                    break
                delay = 2 ** attempt + random.uniform(0, 1)
                logger.warning(
                    f"Embedding rate limited (attempt {attempt + 1}/{self.max_retries}), "
                    f"retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        raise EmbeddingRetryError(
            f"Failed to embed batch after {self.max_retries} attempts",
            attempts=self.max_retries,
        )
