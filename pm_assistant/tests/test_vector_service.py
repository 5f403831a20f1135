# test_vector_service.py
"""Tests for the ChromaDB vector index."""

import uuid

import chromadb
import pytest

from pm_assistant.core import IndexedDocument, PayloadFilter
from pm_assistant.core.exceptions import VectorServiceError
from pm_assistant.services.vector_service import ChromaVectorIndex, build_where


@pytest.fixture(scope="module")
def chroma_client():
    return chromadb.EphemeralClient()


@pytest.fixture
def chroma_index(chroma_client):
    """Index over a collection name no other test uses."""
    return ChromaVectorIndex(client=chroma_client, collection_name=f"test_{uuid.uuid4().hex[:12]}")


def defect(key, status, project="crm-project"):
    return IndexedDocument.build(
        "defect",
        key,
        f"Type: Defect. ID: DEF-{key}. Status: {status}.",
        title=f"Defect {key}",
        project=project,
        status=status,
    )


class TestBuildWhere:
    """Test cases for translating payload filters."""

    def test_no_filter(self):
        assert build_where(None) is None
        assert build_where(PayloadFilter()) is None

    def test_single_condition(self):
        assert build_where(PayloadFilter(equals={"type": "defect"})) == {"type": {"$eq": "defect"}}

    def test_combined_conditions(self):
        payload_filter = PayloadFilter(
            equals={"type": "defect", "project": "crm-project"},
            none_of={"status": ["Closed"]},
        )
        assert build_where(payload_filter) == {
            "$and": [
                {"type": {"$eq": "defect"}},
                {"project": {"$eq": "crm-project"}},
                {"status": {"$nin": ["Closed"]}},
            ]
        }

    def test_any_of(self):
        where = build_where(PayloadFilter(any_of={"status": ["Done", "Closed"]}))
        assert where == {"status": {"$in": ["Done", "Closed"]}}


class TestChromaVectorIndex:
    """Test cases against an in-process Chroma client."""

    @pytest.mark.asyncio
    async def test_missing_collection_is_reported(self, chroma_index):
        with pytest.raises(VectorServiceError):
            await chroma_index.count(None)

        stats = await chroma_index.stats()
        assert stats["status"] == "unavailable"

    @pytest.mark.asyncio
    async def test_delete_missing_collection_is_not_an_error(self, chroma_index):
        await chroma_index.delete_collection()

    @pytest.mark.asyncio
    async def test_upsert_count_and_scroll(self, chroma_index):
        await chroma_index.recreate_collection(3, "cosine")
        documents = [
            defect(1, "Assigned to Developer"),
            defect(2, "Closed"),
            defect(3, "Done", project="sales-app"),
        ]
        vectors = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
        assert await chroma_index.upsert(documents, vectors) == 3

        crm_open = PayloadFilter(equals={"project": "crm-project"}, none_of={"status": ["Closed"]})
        assert await chroma_index.count(None) == 3
        assert await chroma_index.count(crm_open) == 1

        hits = await chroma_index.scroll(crm_open, limit=10)
        assert [hit.payload["title"] for hit in hits] == ["Defect 1"]
        assert hits[0].fingerprint == documents[0].fingerprint

    @pytest.mark.asyncio
    async def test_upsert_same_fingerprint_replaces(self, chroma_index):
        await chroma_index.recreate_collection(3, "cosine")
        await chroma_index.upsert([defect(1, "Done")], [[1.0, 0.0, 0.0]])
        await chroma_index.upsert([defect(1, "Closed")], [[1.0, 0.0, 0.0]])

        hits = await chroma_index.scroll(None, limit=10)
        assert len(hits) == 1
        assert hits[0].payload["status"] == "Closed"

    @pytest.mark.asyncio
    async def test_search_orders_by_similarity(self, chroma_index):
        await chroma_index.recreate_collection(3, "cosine")
        await chroma_index.upsert(
            [defect(1, "Done"), defect(2, "Done")],
            [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
        )

        hits = await chroma_index.search([0.9, 0.1, 0.0], limit=2)
        assert hits[0].payload["title"] == "Defect 1"
        assert hits[0].score > hits[1].score

    @pytest.mark.asyncio
    async def test_dimension_mismatch_is_rejected(self, chroma_index):
        await chroma_index.recreate_collection(3, "cosine")
        with pytest.raises(VectorServiceError):
            await chroma_index.upsert([defect(1, "Done")], [[1.0, 0.0]])

    @pytest.mark.asyncio
    async def test_recreate_after_delete_is_empty(self, chroma_index):
        await chroma_index.recreate_collection(3, "cosine")
        await chroma_index.upsert([defect(1, "Done")], [[1.0, 0.0, 0.0]])

        await chroma_index.delete_collection()
        await chroma_index.recreate_collection(3, "cosine")
        await chroma_index.declare_payload_index("project", "keyword")

        stats = await chroma_index.stats()
        assert stats["total_vectors"] == 0
        assert stats["payload_indexes"] == {"project": "keyword"}

    @pytest.mark.asyncio
    async def test_unsupported_settings(self, chroma_index):
        with pytest.raises(VectorServiceError):
            await chroma_index.recreate_collection(3, "manhattan")
        with pytest.raises(VectorServiceError):
            await chroma_index.declare_payload_index("project", "geo")
