# release_handler.py
"""Handler for release date questions."""

from typing import Optional

from pm_assistant.core import ChatReply, Message, PayloadFilter, VectorIndexInterface, settings
from .extractors import extract_project
from .types import Intent, IntentParameters
from .utils import ProjectResolver

MISSING_PROJECT_REPLY = (
    "Please specify a project for the release date. "
    "For example, 'what is the release date for crm-project?'"
)


class ReleaseHandler:
    """Answers release dates for a single item or for a whole project"""

    def __init__(
        self,
        vector_index: VectorIndexInterface,
        projects: ProjectResolver,
        scan_limit: Optional[int] = None,
    ):
        self.vector_index = vector_index
        self.projects = projects
        self.scan_limit = scan_limit or settings.RELEASE_SCAN_LIMIT

    async def handle(self, message: Message, params: IntentParameters) -> ChatReply:
        if params.item_id:
            return await self._item_release(params.item_id)

        requested = params.project_name or extract_project(message.text, Intent.GET_RELEASE_DATE)
        if not requested:
            return ChatReply(MISSING_PROJECT_REPLY)

        project, reply = await self.projects.resolve(requested)
        if reply:
            return ChatReply(reply)

        releases = await self.vector_index.scroll(
            PayloadFilter(equals={"project": project, "type": "release"}), self.scan_limit
        )
        if not releases:
            return ChatReply(f'I couldn\'t find any release information for the project "{project}".')

        # Dates are ISO strings so they sort chronologically
        latest = sorted(releases, key=lambda hit: str(hit.payload.get("date") or ""), reverse=True)[0]
        name, when = latest.payload.get("name"), latest.payload.get("date")
        if not name or not when:
            return ChatReply(
                f"I found release information for {project}, but the data seems to be incomplete."
            )
        label = "current" if latest.payload.get("is_current") else "latest"
        return ChatReply(f'The {label} release for {project} is "{name}", scheduled for {when}.')

    async def _item_release(self, item_id: str) -> ChatReply:
        hits = await self.vector_index.scroll(PayloadFilter(equals={"title": item_id}), 1)
        if not hits:
            return ChatReply(f'I couldn\'t find any information for the ID "{item_id}".')

        item = hits[0].payload
        if item.get("release_name") and item.get("release_date"):
            return ChatReply(
                f'The release for {item.get("title")} is "{item["release_name"]}", '
                f'scheduled for {item["release_date"]}.'
            )
        return ChatReply(f"I found {item.get('title')}, but it doesn't have a release date assigned to it.")
