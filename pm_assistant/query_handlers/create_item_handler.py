# create_item_handler.py
"""Handler for creating requirements and defects from chat."""

import asyncio
import logging
from typing import Optional

from pm_assistant.core import ChatReply, Message
from pm_assistant.core.exceptions import DatabaseError
from pm_assistant.data import BaseProjectRepository
from .extractors import extract_conversational_project, extract_item_type, extract_sprint, extract_title
from .types import IntentParameters
from .utils import ProjectResolver

logger = logging.getLogger(__name__)

SUPPORTED_ITEM_TYPES = ("requirement", "defect")


def sprint_label(sprint: str) -> str:
    """``7`` -> ``Sprint 7``; already labelled sprints are kept as they are"""
    sprint = sprint.strip()
    if sprint.lower().startswith("sprint"):
        return "Sprint " + sprint[len("sprint"):].strip()
    return f"Sprint {sprint}"


class CreateItemHandler:
    """Creates an item once type, title, project and (for requirements) sprint are known.

    Each missing slot gets its own follow-up question. A successful write
    asks the sync coordinator for a rebuild without waiting for it.
    """

    def __init__(self, repository: BaseProjectRepository, projects: ProjectResolver, coordinator=None):
        self.repository = repository
        self.projects = projects
        self.coordinator = coordinator

    async def handle(self, message: Message, params: IntentParameters) -> ChatReply:
        text = message.text
        item_type = (params.item_type or extract_item_type(text) or "").lower() or None
        title = params.title or extract_title(text)
        requested = params.project_name or extract_conversational_project(text)
        sprint = params.sprint or (extract_sprint(text) if item_type == "requirement" else None)

        if not item_type:
            return ChatReply("Please specify if you want to create a requirement or a defect.")
        if item_type not in SUPPORTED_ITEM_TYPES:
            return ChatReply(
                "I can create requirements and defects, but I don't know how to create "
                f'an item of type "{item_type}" yet.'
            )
        if not title:
            return ChatReply(f"I can create a {item_type}, but I need a title.")
        if not requested:
            return ChatReply(f"Please specify a project for the {item_type}.")

        project, reply = await self.projects.resolve(requested)
        if reply:
            return ChatReply(reply)

        if item_type == "requirement" and not sprint:
            return ChatReply(
                f'OK, I can create the requirement "{title}" for project "{project}". '
                "Which sprint should it be in?"
            )

        project_id = await asyncio.to_thread(self.repository.get_project_id, project)
        if project_id is None:
            return ChatReply(f'I couldn\'t find a project named "{project}".')

        try:
            if item_type == "requirement":
                sprint_name = sprint_label(sprint)
                await asyncio.to_thread(self.repository.create_requirement, project_id, title, sprint_name)
                reply = (
                    f'OK, I\'ve created the requirement "{title}" in project "{project}" '
                    f"and placed it in {sprint_name}."
                )
                new_item = {"project": project, "sprint": sprint_name, "title": title}
            else:
                await asyncio.to_thread(self.repository.create_defect, project_id, title)
                reply = f'OK, I\'ve created the defect "{title}" in project "{project}".'
                new_item = {"project": project, "title": title}
        except DatabaseError as e:
            logger.error(f"Failed to create {item_type}: {str(e)}")
            return ChatReply(f"Sorry, I couldn't create the {item_type} right now. Please try again.")

        logger.info(f"Created {item_type} '{title}' in {project}")
        if self.coordinator is not None:
            self.coordinator.request_sync()
        return ChatReply(reply, data_changed=True, new_item=new_item)
