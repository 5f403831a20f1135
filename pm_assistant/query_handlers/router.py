# chat_router.py
"""Main orchestrating router for chat messages."""

import logging
from typing import Optional

from pm_assistant.core import ChatReply, EmbeddingInterface, LLMInterface, Message, VectorIndexInterface
from pm_assistant.core.exceptions import VectorServiceError
from pm_assistant.data import BaseProjectRepository
from .classifier import IntentResolver
from .create_item_handler import CreateItemHandler
from .defects_handler import DefectsHandler
from .release_handler import ReleaseHandler
from .semantic_handler import SemanticHandler
from .smalltalk_handler import SmallTalkHandler
from .types import Intent, RouterResponse
from .utils import ProjectResolver

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Sorry, I encountered an error."
INDEX_UNAVAILABLE_REPLY = (
    "The search index is not available right now. Please run a sync and try again."
)


class QueryRouter:
    """Resolves the intent of a message and dispatches it to the matching handler"""

    def __init__(
        self,
        repository: BaseProjectRepository,
        embedder: EmbeddingInterface,
        vector_index: VectorIndexInterface,
        llm: Optional[LLMInterface] = None,
        coordinator=None,
        weather=None,
        nameday=None,
        resolver: Optional[IntentResolver] = None,
    ):
        self.llm = llm

        # Initialize components
        self.projects = ProjectResolver(repository)
        self.resolver = resolver or IntentResolver(llm)

        # Initialize handlers
        self.defects_handler = DefectsHandler(vector_index, self.projects)
        self.release_handler = ReleaseHandler(vector_index, self.projects)
        self.create_item_handler = CreateItemHandler(repository, self.projects, coordinator)
        self.semantic_handler = SemanticHandler(embedder, vector_index, llm, self.projects)
        self.smalltalk_handler = SmallTalkHandler(repository, weather=weather, nameday=nameday)

    async def handle_message(self, text: str, project_context: Optional[str] = None) -> RouterResponse:
        """Answer one chat message. Unexpected failures come back as an error response."""
        message = Message(text=text, project_context=project_context)

        try:
            resolution = await self.resolver.resolve(message)
            if resolution.is_direct_reply:
                return RouterResponse(reply=ChatReply(resolution.reply), method_used=resolution.stage)

            intent = resolution.intent.intent
            params = resolution.intent.parameters
            logger.info(f"Dispatching intent '{intent.value}' (resolved by {resolution.stage})")

            reply = await self._dispatch(message, intent, params)
            return RouterResponse(
                reply=reply,
                method_used=intent.value,
                additional_info={"stage": resolution.stage},
            )

        except VectorServiceError as e:
            logger.error(f"Vector index unavailable: {str(e)}")
            return RouterResponse(
                reply=ChatReply(INDEX_UNAVAILABLE_REPLY),
                method_used="index_unavailable",
                additional_info={"error": str(e)},
            )
        except Exception as e:
            logger.exception(f"Error routing message: {str(e)}")
            return RouterResponse(
                reply=ChatReply(GENERIC_ERROR),
                method_used="error",
                additional_info={"error": GENERIC_ERROR, "details": str(e)},
            )

    async def _dispatch(self, message: Message, intent: Intent, params) -> ChatReply:
        if intent == Intent.GET_JOKE:
            return self.smalltalk_handler.joke()
        if intent == Intent.GET_WEATHER:
            return await self.smalltalk_handler.handle_weather(message, params)
        if intent == Intent.GET_NAMEDAY:
            return await self.smalltalk_handler.handle_nameday(message, params)
        if intent in (Intent.GET_DEFECTS_LIST, Intent.GET_DEFECTS_COUNT):
            return await self.defects_handler.handle(message, params, intent)
        if intent == Intent.GET_RELEASE_DATE:
            return await self.release_handler.handle(message, params)
        if intent == Intent.CREATE_ITEM:
            return await self.create_item_handler.handle(message, params)
        if intent == Intent.GET_PROJECT_SUMMARY:
            return await self.semantic_handler.handle_summary(message, params)
        # general info, unknown and anything else
        return await self.semantic_handler.handle_general(message, params)
