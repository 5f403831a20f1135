# test_query_router.py
"""End-to-end tests for routing chat messages over an indexed tracker."""

import random

import pytest
import pytest_asyncio

from pm_assistant.query_handlers import QueryRouter
from pm_assistant.query_handlers.classifier import GREETING_REPLY, IntentResolver
from pm_assistant.query_handlers.router import INDEX_UNAVAILABLE_REPLY
from pm_assistant.query_handlers.semantic_handler import NO_RESULTS_REPLY
from pm_assistant.services.index_sync import IndexSyncEngine

from .conftest import FakeEmbedder, FakeLLM, InMemoryVectorIndex


class RecordingCoordinator:
    """Stands in for SyncCoordinator and records sync requests"""

    def __init__(self):
        self.requests = 0

    def request_sync(self, delay=None):
        self.requests += 1


@pytest.fixture
def coordinator():
    return RecordingCoordinator()


@pytest_asyncio.fixture
async def indexed(repository, embedder, vector_index):
    await IndexSyncEngine(repository, embedder, vector_index).rebuild()
    return repository, embedder, vector_index


@pytest.fixture
def router(indexed, coordinator):
    repository, embedder, vector_index = indexed
    return QueryRouter(
        repository,
        embedder,
        vector_index,
        llm=FakeLLM("Generated answer"),
        coordinator=coordinator,
    )


class TestDefectQueries:
    """Test cases for defect counts and lists."""

    @pytest.mark.asyncio
    async def test_count_undone(self, router):
        response = await router.handle_message("how many undone defects for crm-project?")
        assert response.reply.reply == 'There are 3 undone defects in project "crm-project".'
        assert response.method_used == "get_defects_count"
        assert response.additional_info == {"stage": "keywords"}

    @pytest.mark.asyncio
    async def test_autocorrected_project(self, router):
        response = await router.handle_message("how many defects for crm-projct")
        assert response.reply.reply == 'There are 3 in-progress defects in project "crm-project".'

    @pytest.mark.asyncio
    async def test_list_closed(self, router):
        response = await router.handle_message("show me the closed defects for crm-project")
        assert response.reply.reply == (
            'Here are the closed defects for "crm-project":\n\n'
            "- Old export crash (Status: Closed)"
        )

    @pytest.mark.asyncio
    async def test_list_done_is_empty_for_other_project(self, router):
        response = await router.handle_message("list done defects for sales-app")
        assert response.reply.reply == 'I couldn\'t find any done defects for project "sales-app".'

    @pytest.mark.asyncio
    async def test_suggestion_for_distant_name(self, router):
        response = await router.handle_message("show me defects for crmprojekt")
        assert response.reply.reply == (
            'I couldn\'t find a project named "crmprojekt". Did you mean "crm-project"?'
        )

    @pytest.mark.asyncio
    async def test_unknown_project(self, router):
        response = await router.handle_message("how many defects for zzz")
        assert response.reply.reply == 'I couldn\'t find a project named "zzz".'


class TestReleaseQueries:
    """Test cases for release dates."""

    @pytest.mark.asyncio
    async def test_current_release(self, router):
        response = await router.handle_message("release date for crm-project")
        assert response.reply.reply == 'The current release for crm-project is "R2", scheduled for 2024-06-15.'

    @pytest.mark.asyncio
    async def test_project_without_releases(self, router):
        response = await router.handle_message("what is the release date for sales-app?")
        assert response.reply.reply == 'I couldn\'t find any release information for the project "sales-app".'

    @pytest.mark.asyncio
    async def test_unindexed_releases(self, router, vector_index):
        for fingerprint, (document, _) in list(vector_index.documents.items()):
            if document.payload["type"] == "release":
                del vector_index.documents[fingerprint]

        response = await router.handle_message("release date for crm-project")
        assert response.reply.reply == 'I couldn\'t find any release information for the project "crm-project".'


class TestCreateItem:
    """Test cases for creating items from chat."""

    @pytest.mark.asyncio
    async def test_create_defect(self, router, repository, coordinator):
        response = await router.handle_message('create a defect titled "Export hangs" for project sales-app')

        assert response.reply.reply == 'OK, I\'ve created the defect "Export hangs" in project "sales-app".'
        assert response.reply.data_changed
        assert response.reply.new_item == {"project": "sales-app", "title": "Export hangs"}
        assert coordinator.requests == 1
        assert any(row["title"] == "Export hangs" for row in repository.get_defects())

    @pytest.mark.asyncio
    async def test_create_requirement_in_sprint(self, router, repository, coordinator):
        text = 'create a requirement titled "User Profile V2" for project crm-project in sprint 7'
        response = await router.handle_message(text)

        assert response.reply.reply == (
            'OK, I\'ve created the requirement "User Profile V2" in project "crm-project" '
            "and placed it in Sprint 7."
        )
        assert response.reply.to_dict()["new_item"]["sprint"] == "Sprint 7"
        created = [row for row in repository.get_current_requirements() if row["title"] == "User Profile V2"]
        assert created[0]["sprint"] == "Sprint 7"
        assert created[0]["status"] == "To Do"

    @pytest.mark.asyncio
    async def test_requirement_needs_sprint(self, router, coordinator):
        response = await router.handle_message('create a requirement titled "Audit log" for project crm-project')

        assert response.reply.reply == (
            'OK, I can create the requirement "Audit log" for project "crm-project". '
            "Which sprint should it be in?"
        )
        assert not response.reply.data_changed
        assert coordinator.requests == 0

    @pytest.mark.asyncio
    async def test_missing_title(self, router):
        response = await router.handle_message("create a defect for sales-app")
        assert response.reply.reply == "I can create a defect, but I need a title."


class TestOtherIntents:
    """Test cases for direct replies, small talk and semantic answers."""

    @pytest.mark.asyncio
    async def test_greeting(self, router):
        response = await router.handle_message("hello")
        assert response.reply.reply == GREETING_REPLY
        assert response.method_used == "greeting"

    @pytest.mark.asyncio
    async def test_joke(self, router):
        router.smalltalk_handler.rng = random.Random(1)
        response = await router.handle_message("tell me a joke")
        assert response.method_used == "get_joke"
        assert response.reply.reply

    @pytest.mark.asyncio
    async def test_general_question_uses_search_results(self, indexed):
        repository, embedder, vector_index = indexed
        classifier = FakeLLM('{"intent": "get_general_info", "parameters": {"query": "login"}}')
        answerer = FakeLLM("The login page is in progress.")
        router = QueryRouter(
            repository,
            embedder,
            vector_index,
            llm=answerer,
            resolver=IntentResolver(classifier),
        )

        response = await router.handle_message("what is blocking the login work", project_context="crm-project")

        assert response.reply.reply == "The login page is in progress."
        assert response.method_used == "get_general_info"
        assert "SEARCH RESULTS" in answerer.prompts[0]
        assert "crm-project" in answerer.prompts[0]
        assert "sales-app" not in answerer.prompts[0]

    @pytest.mark.asyncio
    async def test_without_classifier_falls_back_to_search(self, indexed):
        repository, embedder, vector_index = indexed
        llm = FakeLLM("Summary text")
        router = QueryRouter(repository, embedder, vector_index, llm=llm, resolver=IntentResolver(None))
        response = await router.handle_message("give me a summary for crm-project")

        # No classifier: the message falls through to a general search
        assert response.method_used == "get_general_info"
        assert response.reply.reply == "Summary text"

    @pytest.mark.asyncio
    async def test_summary_intent(self, indexed):
        repository, embedder, vector_index = indexed
        classifier = FakeLLM('{"intent": "get_project_summary", "parameters": {"project_name": "crm-project"}}')
        llm = FakeLLM("Summary text")
        router = QueryRouter(repository, embedder, vector_index, llm=llm, resolver=IntentResolver(classifier))

        response = await router.handle_message("what's up with crm")

        assert response.reply.reply == "Summary text"
        prompt = llm.prompts[0]
        assert "Login Page" in prompt
        assert "Password reset email missing" in prompt
        assert "Old export crash" not in prompt
        assert "Invoices" not in prompt


class TestFailures:
    """Test cases for failures surfaced as replies."""

    @pytest.mark.asyncio
    async def test_missing_index(self, repository):
        router = QueryRouter(repository, FakeEmbedder(), InMemoryVectorIndex(), llm=FakeLLM())
        response = await router.handle_message("how many defects for crm-project")

        assert response.method_used == "index_unavailable"
        assert response.reply.reply == INDEX_UNAVAILABLE_REPLY

    @pytest.mark.asyncio
    async def test_empty_index_has_no_results(self, repository):
        vector_index = InMemoryVectorIndex()
        await IndexSyncEngine(repository, FakeEmbedder(), vector_index).rebuild()
        vector_index.documents.clear()

        router = QueryRouter(repository, FakeEmbedder(), vector_index, resolver=IntentResolver(None))
        response = await router.handle_message("anything about invoices")

        assert response.reply.reply == NO_RESULTS_REPLY

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported(self, indexed):
        repository, _, vector_index = indexed

        class BrokenEmbedder(FakeEmbedder):
            async def embed(self, text):
                raise ValueError("model exploded")

        router = QueryRouter(repository, BrokenEmbedder(), vector_index, resolver=IntentResolver(None))
        response = await router.handle_message("anything about invoices")

        assert response.method_used == "error"
        assert response.additional_info == {
            "error": "Sorry, I encountered an error.",
            "details": "model exploded",
        }
