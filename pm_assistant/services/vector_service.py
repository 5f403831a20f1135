# vector_service.py
"""ChromaDB-backed vector index for tracker documents."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import chromadb

from pm_assistant.core import (
    IndexedDocument,
    PayloadFilter,
    SearchHit,
    VectorIndexInterface,
    settings,
)
from pm_assistant.core.exceptions import VectorServiceError

logger = logging.getLogger(__name__)

SUPPORTED_DISTANCES = ("cosine", "l2", "ip")
SUPPORTED_INDEX_KINDS = ("keyword", "text", "integer", "bool")


def _is_missing_collection(error: Exception) -> bool:
    message = str(error).lower()
    return "does not exist" in message or "not found" in message


def build_where(payload_filter: Optional[PayloadFilter]) -> Optional[Dict[str, Any]]:
    """Translate a PayloadFilter into a Chroma ``where`` clause"""
    if payload_filter is None:
        return None

    clauses = []
    for key, value in payload_filter.equals.items():
        clauses.append({key: {"$eq": value}})
    for key, values in payload_filter.any_of.items():
        clauses.append({key: {"$in": list(values)}})
    for key, values in payload_filter.none_of.items():
        clauses.append({key: {"$nin": list(values)}})

    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class ChromaVectorIndex(VectorIndexInterface):
    """Vector index stored in a ChromaDB collection.

    Chroma calls are blocking, so every public method runs them in a worker
    thread. Chroma filters any metadata field, so payload index declarations
    are only recorded and reported in ``stats``.
    """

    def __init__(
        self,
        client=None,
        collection_name: Optional[str] = None,
        persist_directory: Optional[str] = None,
    ):
        self.client = client or chromadb.PersistentClient(
            path=persist_directory or settings.VECTOR_DB_PATH
        )
        self.collection_name = collection_name or settings.VECTOR_COLLECTION
        self._collection = None
        self._dimension: Optional[int] = None
        self._payload_indexes: Dict[str, str] = {}

    def _get_collection(self):
        if self._collection is None:
            try:
                self._collection = self.client.get_collection(self.collection_name)
            except Exception as e:
                raise VectorServiceError(
                    f"Vector collection '{self.collection_name}' is not available. "
                    "Run a sync to rebuild it."
                ) from e
            self._dimension = (self._collection.metadata or {}).get("dimension")
        return self._collection

    def _delete_collection(self) -> None:
        try:
            self.client.delete_collection(self.collection_name)
            logger.info(f"Deleted vector collection: {self.collection_name}")
        except Exception as e:
            if not _is_missing_collection(e):
                raise VectorServiceError(f"Failed to delete collection: {str(e)}") from e
            logger.info(f"Vector collection {self.collection_name} did not exist")
        self._collection = None
        self._dimension = None
        self._payload_indexes = {}

    def _recreate_collection(self, dimension: int, distance: str) -> None:
        if distance not in SUPPORTED_DISTANCES:
            raise VectorServiceError(f"Unsupported distance metric: {distance}")
        try:
            self._collection = self.client.create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": distance, "dimension": dimension},
            )
        except Exception as e:
            raise VectorServiceError(f"Failed to create collection: {str(e)}") from e
        self._dimension = dimension
        logger.info(
            f"Created vector collection {self.collection_name} "
            f"(dimension={dimension}, distance={distance})"
        )

    def _upsert(self, documents: List[IndexedDocument], vectors: List[List[float]]) -> int:
        if len(documents) != len(vectors):
            raise VectorServiceError(
                f"Got {len(vectors)} vectors for {len(documents)} documents"
            )
        if not documents:
            return 0
        for vector in vectors:
            if self._dimension and len(vector) != self._dimension:
                raise VectorServiceError(
                    f"Vector dimension {len(vector)} does not match collection "
                    f"dimension {self._dimension}"
                )

        collection = self._get_collection()
        try:
            collection.upsert(
                ids=[doc.fingerprint for doc in documents],
                embeddings=vectors,
                documents=[doc.text for doc in documents],
                metadatas=[doc.payload for doc in documents],
            )
        except Exception as e:
            raise VectorServiceError(f"Failed to upsert documents: {str(e)}") from e
        return len(documents)

    def _scroll(self, payload_filter: Optional[PayloadFilter], limit: int) -> List[SearchHit]:
        collection = self._get_collection()
        try:
            result = collection.get(
                where=build_where(payload_filter),
                limit=limit,
                include=["documents", "metadatas"],
            )
        except Exception as e:
            raise VectorServiceError(f"Failed to scroll collection: {str(e)}") from e
        return [
            SearchHit(fingerprint=doc_id, text=text or "", payload=dict(metadata or {}))
            for doc_id, text, metadata in zip(
                result["ids"], result["documents"], result["metadatas"]
            )
        ]

    def _count(self, payload_filter: Optional[PayloadFilter]) -> int:
        collection = self._get_collection()
        where = build_where(payload_filter)
        try:
            if where is None:
                return collection.count()
            return len(collection.get(where=where, include=["metadatas"])["ids"])
        except Exception as e:
            raise VectorServiceError(f"Failed to count documents: {str(e)}") from e

    def _search(
        self,
        vector: List[float],
        limit: int,
        payload_filter: Optional[PayloadFilter],
    ) -> List[SearchHit]:
        collection = self._get_collection()
        try:
            result = collection.query(
                query_embeddings=[vector],
                n_results=limit,
                where=build_where(payload_filter),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            raise VectorServiceError(f"Failed to search collection: {str(e)}") from e

        hits = []
        for doc_id, text, metadata, distance in zip(
            result["ids"][0],
            result["documents"][0],
            result["metadatas"][0],
            result["distances"][0],
        ):
            hits.append(
                SearchHit(
                    fingerprint=doc_id,
                    text=text or "",
                    payload=dict(metadata or {}),
                    score=1.0 - float(distance),
                )
            )
        return hits

    async def delete_collection(self) -> None:
        await asyncio.to_thread(self._delete_collection)

    async def recreate_collection(self, dimension: int, distance: str) -> None:
        await asyncio.to_thread(self._recreate_collection, dimension, distance)

    async def declare_payload_index(self, field: str, kind: str) -> None:
        if kind not in SUPPORTED_INDEX_KINDS:
            raise VectorServiceError(f"Unsupported payload index kind: {kind}")
        self._payload_indexes[field] = kind
        logger.debug(f"Declared {kind} payload index on '{field}'")

    async def upsert(self, documents: List[IndexedDocument], vectors: List[List[float]]) -> int:
        return await asyncio.to_thread(self._upsert, documents, vectors)

    async def scroll(self, payload_filter: Optional[PayloadFilter], limit: int) -> List[SearchHit]:
        return await asyncio.to_thread(self._scroll, payload_filter, limit)

    async def count(self, payload_filter: Optional[PayloadFilter]) -> int:
        return await asyncio.to_thread(self._count, payload_filter)

    async def search(
        self,
        vector: List[float],
        limit: int,
        payload_filter: Optional[PayloadFilter] = None,
    ) -> List[SearchHit]:
        return await asyncio.to_thread(self._search, vector, limit, payload_filter)

    async def stats(self) -> Dict[str, Any]:
        """Get statistics about the vector collection."""
        try:
            total = await self.count(None)
        except VectorServiceError as e:
            return {"status": "unavailable", "total_vectors": 0, "error": str(e)}
        return {
            "status": "available",
            "total_vectors": total,
            "collection": self.collection_name,
            "dimension": self._dimension,
            "payload_indexes": dict(self._payload_indexes),
        }
