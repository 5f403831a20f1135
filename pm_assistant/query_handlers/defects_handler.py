# defects_handler.py
"""Handler for defect list and count queries."""

import logging
from typing import Optional, Tuple

from pm_assistant.core import ChatReply, Config, DefectStatus, Message, PayloadFilter, VectorIndexInterface, settings
from .extractors import derive_status_filter, extract_project
from .types import Intent, IntentParameters
from .utils import ProjectResolver

logger = logging.getLogger(__name__)

MISSING_PROJECT_REPLY = (
    "Please specify a project. For example, 'show me the defects for crm-project'."
)


def defect_filter(project: str, status_filter: Optional[str]) -> Tuple[PayloadFilter, str]:
    """Payload filter and reply wording for a status filter keyword"""
    payload_filter = PayloadFilter(equals={"project": project, "type": "defect"})

    if status_filter == "undone":
        payload_filter.any_of["status"] = list(Config.OPEN_DEFECT_STATUSES)
        return payload_filter, "undone"
    if status_filter == "done":
        payload_filter.equals["status"] = DefectStatus.DONE.value
        return payload_filter, "done"
    if status_filter == "closed":
        payload_filter.equals["status"] = DefectStatus.CLOSED.value
        return payload_filter, "closed"
    if status_filter == "all_including_closed":
        return payload_filter, "total (including closed)"

    # "all" and anything unrecognised mean defects still in progress
    payload_filter.none_of["status"] = list(Config.FINISHED_DEFECT_STATUSES)
    return payload_filter, "in-progress"


class DefectsHandler:
    """Lists or counts a project's defects straight from the index payloads"""

    def __init__(
        self,
        vector_index: VectorIndexInterface,
        projects: ProjectResolver,
        page_size: Optional[int] = None,
    ):
        self.vector_index = vector_index
        self.projects = projects
        self.page_size = page_size or settings.DEFECT_PAGE_SIZE

    async def handle(self, message: Message, params: IntentParameters, intent: Intent) -> ChatReply:
        requested = params.project_name or extract_project(message.text, intent)
        if not requested:
            return ChatReply(MISSING_PROJECT_REPLY)

        project, reply = await self.projects.resolve(requested)
        if reply:
            return ChatReply(reply)

        status_filter = (params.defect_status_filter or "").lower() or derive_status_filter(message.text)
        payload_filter, description = defect_filter(project, status_filter)
        logger.info(f"Defect query for {project} with filter '{status_filter}'")

        if intent == Intent.GET_DEFECTS_COUNT:
            count = await self.vector_index.count(payload_filter)
            return ChatReply(f'There are {count} {description} defects in project "{project}".')

        defects = await self.vector_index.scroll(payload_filter, self.page_size)
        if not defects:
            return ChatReply(f'I couldn\'t find any {description} defects for project "{project}".')

        lines = [f'Here are the {description} defects for "{project}":', ""]
        for defect in defects:
            lines.append(f"- {defect.payload.get('title')} (Status: {defect.payload.get('status')})")
        return ChatReply("\n".join(lines))
