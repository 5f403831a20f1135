# semantic_handler.py
"""Handler for project summaries and general questions answered from semantic search."""

import logging
from typing import List, Optional

from pm_assistant.core import (
    ChatReply,
    Config,
    EmbeddingInterface,
    LLMInterface,
    Message,
    PayloadFilter,
    SearchHit,
    VectorIndexInterface,
    settings,
)
from pm_assistant.core.exceptions import ClassifierError, RateLimitError, UpstreamServiceError
from .extractors import extract_project
from .types import Intent, IntentParameters
from .utils import ProjectResolver

logger = logging.getLogger(__name__)

NO_RESULTS_REPLY = "I couldn't find any information related to that."
GENERATION_FAILED_REPLY = (
    "Sorry, I couldn't reach the AI service to answer that. Please try again later."
)


def _context(hits: List[SearchHit]) -> str:
    return "\n".join(hit.to_context_line() for hit in hits)


class SemanticHandler:
    """Retrieves related documents and lets the LLM phrase the answer"""

    def __init__(
        self,
        embedder: EmbeddingInterface,
        vector_index: VectorIndexInterface,
        llm: Optional[LLMInterface],
        projects: ProjectResolver,
        top_k: Optional[int] = None,
        summary_limit: Optional[int] = None,
    ):
        self.embedder = embedder
        self.vector_index = vector_index
        self.llm = llm
        self.projects = projects
        self.top_k = top_k or settings.SEARCH_TOP_K
        self.summary_limit = summary_limit or settings.SUMMARY_SEARCH_LIMIT

    async def _generate(self, prompt: str) -> str:
        if self.llm is None:
            raise UpstreamServiceError("No LLM configured")
        return await self.llm.generate_response(prompt)

    async def handle_summary(self, message: Message, params: IntentParameters) -> ChatReply:
        requested = (
            params.project_name
            or extract_project(message.text, Intent.GET_PROJECT_SUMMARY)
            or message.project_context
        )
        if not requested:
            return ChatReply("Which project would you like a summary for?")

        project, reply = await self.projects.resolve(requested)
        if reply:
            return ChatReply(reply)

        try:
            vector = await self.embedder.embed(project)
            requirements = await self.vector_index.search(
                vector,
                self.summary_limit,
                PayloadFilter(equals={"project": project, "type": "requirement"}),
            )
            defects = await self.vector_index.search(
                vector,
                self.summary_limit,
                PayloadFilter(
                    equals={"project": project, "type": "defect"},
                    none_of={"status": list(Config.FINISHED_DEFECT_STATUSES)},
                ),
            )

            prompt = f"""
            You are a project assistant. Based on the following data, provide a concise summary for the user.
            The user wants to know all the data for the project "{project}".
            Summarize the requirements and the open defects.

            REQUIREMENTS DATA:
            {_context(requirements) or "No requirements found."}

            OPEN DEFECTS DATA:
            {_context(defects) or "No open defects found."}

            ---
            Provide a clear, bulleted summary.
            """
            answer = await self._generate(prompt)
        except (ClassifierError, RateLimitError, UpstreamServiceError) as e:
            logger.error(f"Project summary failed for {project}: {str(e)}")
            return ChatReply(GENERATION_FAILED_REPLY)

        return ChatReply(answer)

    async def handle_general(self, message: Message, params: IntentParameters) -> ChatReply:
        project = None
        if params.project_name:
            project, reply = await self.projects.resolve(params.project_name)
            if reply:
                return ChatReply(reply)
        elif message.project_context:
            # The UI hint only narrows the search when it is a confident match
            project = await self.projects.resolve_silently(message.project_context)

        query = (params.query or message.text)[: settings.MAX_QUERY_CHARS]
        payload_filter = PayloadFilter(equals={"project": project}) if project else None

        try:
            vector = await self.embedder.embed(query)
            hits = await self.vector_index.search(vector, self.top_k, payload_filter)
            if not hits:
                return ChatReply(NO_RESULTS_REPLY)

            prompt = f"""
            You are a helpful project assistant. Based on the following search results, answer the user's question.

            SEARCH RESULTS:
            {_context(hits)}

            User's Question: {message.text}

            Provide a concise, direct answer.
            """
            answer = await self._generate(prompt)
        except (ClassifierError, RateLimitError, UpstreamServiceError) as e:
            logger.error(f"General question failed: {str(e)}")
            return ChatReply(GENERATION_FAILED_REPLY)

        return ChatReply(answer)
