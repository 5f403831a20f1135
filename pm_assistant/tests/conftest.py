# conftest.py
"""Pytest configuration and shared fixtures."""

import hashlib
import math
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from pm_assistant.core import EmbeddingInterface, LLMInterface, VectorIndexInterface
from pm_assistant.core.exceptions import RateLimitError, VectorServiceError
from pm_assistant.data import SQLAlchemyProjectRepository
from pm_assistant.data.database import DatabaseInitializer
from pm_assistant.data.models import (
    DatabaseManager,
    DefectModel,
    DefectRequirementLinkModel,
    NoteModel,
    ProjectModel,
    ReleaseModel,
    RequirementModel,
    RetrospectiveItemModel,
)


class FakeEmbedder(EmbeddingInterface):
    """Deterministic hash-based embeddings with optional rate limiting"""

    def __init__(self, dimension: int = 8, rate_limited_calls: int = 0):
        self.dimension = dimension
        self.rate_limited_calls = rate_limited_calls
        self.always_rate_limited = False
        self.calls = 0

    def vector_for(self, text: str) -> List[float]:
        digest = hashlib.sha256(text.encode()).digest()
        values = [digest[i] / 255.0 + 0.01 for i in range(self.dimension)]
        norm = math.sqrt(sum(v * v for v in values))
        return [v / norm for v in values]

    async def embed(self, text: str) -> List[float]:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        self.calls += 1
        if self.always_rate_limited or self.calls <= self.rate_limited_calls:
            raise RateLimitError("Too many requests")
        return [self.vector_for(text) for text in texts]


class FakeLLM(LLMInterface):
    """Returns canned text (or raises) and records every prompt"""

    def __init__(self, response: str = "Mock LLM response for testing", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts: List[str] = []

    async def generate_response(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class InMemoryVectorIndex(VectorIndexInterface):
    """Dict-backed vector index that records the order of operations"""

    def __init__(self):
        self.documents: Optional[Dict[str, Any]] = None
        self.dimension: Optional[int] = None
        self.payload_indexes: Dict[str, str] = {}
        self.operations: List[str] = []

    def _require(self) -> Dict[str, Any]:
        if self.documents is None:
            raise VectorServiceError("Vector collection is not available. Run a sync to rebuild it.")
        return self.documents

    async def delete_collection(self) -> None:
        self.operations.append("delete")
        self.documents = None
        self.payload_indexes = {}

    async def recreate_collection(self, dimension: int, distance: str) -> None:
        self.operations.append("recreate")
        self.documents = {}
        self.dimension = dimension

    async def declare_payload_index(self, field: str, kind: str) -> None:
        self.operations.append(f"index:{field}")
        self.payload_indexes[field] = kind

    async def upsert(self, documents, vectors) -> int:
        self.operations.append("upsert")
        store = self._require()
        for document, vector in zip(documents, vectors):
            store[document.fingerprint] = (document, vector)
        return len(documents)

    def _filtered(self, payload_filter):
        from pm_assistant.core import SearchHit

        hits = []
        for fingerprint, (document, vector) in self._require().items():
            if payload_filter is None or payload_filter.matches(document.payload):
                hits.append((SearchHit(fingerprint, document.text, dict(document.payload)), vector))
        return hits

    async def scroll(self, payload_filter, limit: int):
        return [hit for hit, _ in self._filtered(payload_filter)][:limit]

    async def count(self, payload_filter) -> int:
        return len(self._filtered(payload_filter))

    async def search(self, vector, limit: int, payload_filter=None):
        from pm_assistant.core import SearchHit

        scored = []
        for hit, stored in self._filtered(payload_filter):
            score = sum(a * b for a, b in zip(vector, stored))
            scored.append(SearchHit(hit.fingerprint, hit.text, hit.payload, score))
        scored.sort(key=lambda hit: hit.score, reverse=True)
        return scored[:limit]

    async def stats(self) -> Dict[str, Any]:
        if self.documents is None:
            return {"status": "unavailable", "total_vectors": 0}
        return {"status": "available", "total_vectors": len(self.documents)}


@pytest.fixture
def temp_db():
    """Create a temporary test database for each test."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp_file:
        temp_db_path = tmp_file.name

    manager = DatabaseManager(f"sqlite:///{temp_db_path}")
    try:
        DatabaseInitializer(manager).initialize_database()
        yield manager
    finally:
        manager.engine.dispose()
        Path(temp_db_path).unlink(missing_ok=True)


def seed_tracker(manager: DatabaseManager) -> None:
    """Two projects: crm-project with releases and mixed defects, sales-app with neither"""
    with manager.get_session() as session:
        crm = ProjectModel(name="crm-project")
        sales = ProjectModel(name="sales-app")
        session.add_all([crm, sales])
        session.flush()

        old_release = ReleaseModel(project_id=crm.id, name="R1", release_date="2024-03-01", is_current=False)
        new_release = ReleaseModel(project_id=crm.id, name="R2", release_date="2024-06-15", is_current=True)
        session.add_all([old_release, new_release])
        session.flush()

        login = RequirementModel(
            project_id=crm.id,
            title="Login Page",
            status="In Progress",
            status_date="2024-02-01",
            sprint="Sprint 1",
            is_current=True,
            release_id=new_release.id,
        )
        export = RequirementModel(
            project_id=crm.id,
            title="CSV Export",
            status="To Do",
            status_date="2024-02-02",
            sprint="Sprint 2",
            is_current=True,
        )
        invoices = RequirementModel(
            project_id=sales.id,
            title="Invoices",
            status="Done",
            status_date="2024-02-03",
            sprint="Sprint 1",
            is_current=True,
        )
        session.add_all([login, export, invoices])
        session.flush()
        for requirement in (login, export, invoices):
            requirement.requirement_group_id = requirement.id

        defects = [
            DefectModel(project_id=crm.id, title="Login button misaligned", area="UI",
                        status="Assigned to Developer", created_date="2024-02-10"),
            DefectModel(project_id=crm.id, title="Password reset email missing", area="Auth",
                        status="Assigned to Developer", created_date="2024-02-11"),
            DefectModel(project_id=crm.id, title="Session timeout too short", area="Auth",
                        status="Assigned to Tester", created_date="2024-02-12"),
            DefectModel(project_id=crm.id, title="Typo on dashboard", area="UI",
                        status="Done", created_date="2024-02-13"),
            DefectModel(project_id=crm.id, title="Old export crash", area="Export",
                        status="Closed", created_date="2024-02-14"),
            DefectModel(project_id=sales.id, title="Invoice total rounding", area="Billing",
                        status="Assigned to Developer", created_date="2024-02-15"),
        ]
        session.add_all(defects)
        session.flush()

        session.add(DefectRequirementLinkModel(defect_id=defects[0].id, requirement_group_id=login.id))
        session.add(NoteModel(project_id=crm.id, note_date="2024-02-20", note_text="Demo went well"))
        session.add(
            RetrospectiveItemModel(
                project_id=crm.id,
                column_type="improve",
                description="Write more tests",
                item_date="2024-02-21",
            )
        )
        session.commit()


@pytest.fixture
def repository(temp_db):
    """Repository over a seeded tracker database."""
    seed_tracker(temp_db)
    return SQLAlchemyProjectRepository(temp_db)


@pytest.fixture
def empty_repository(temp_db):
    """Repository over a database with no tracker data."""
    return SQLAlchemyProjectRepository(temp_db)


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def vector_index():
    return InMemoryVectorIndex()


@pytest.fixture
def fake_llm():
    return FakeLLM()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


# Custom collection hook for organizing tests
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "test_web_health" in item.nodeid or "test_query_router" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
