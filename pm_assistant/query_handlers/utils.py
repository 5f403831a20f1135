# query_utils.py
"""Helpers shared by the query handlers."""

import asyncio
import logging
from typing import Optional, Tuple

from pm_assistant.data import BaseProjectRepository
from .matcher import AutocorrectMatch, ExactMatch, NoMatch, ProjectMatch, SuggestionMatch, match_project

logger = logging.getLogger(__name__)


class ProjectResolver:
    """Resolves user-typed project names against the live project list"""

    def __init__(self, repository: BaseProjectRepository):
        self.repository = repository

    async def match(self, name: Optional[str]) -> ProjectMatch:
        if not name:
            return NoMatch()
        projects = await asyncio.to_thread(self.repository.get_project_names)
        return match_project(name, projects)

    async def resolve(self, name: str) -> Tuple[Optional[str], Optional[str]]:
        """Return ``(canonical_name, None)`` or ``(None, reply_for_user)``.

        Exact and autocorrected names proceed; a suggestion asks the user to
        confirm and anything else is reported as not found.
        """
        result = await self.match(name)
        if isinstance(result, ExactMatch):
            return result.name, None
        if isinstance(result, AutocorrectMatch):
            logger.info(f"Autocorrected project '{name}' to '{result.name}'")
            return result.name, None
        if isinstance(result, SuggestionMatch):
            return None, f'I couldn\'t find a project named "{name}". Did you mean "{result.name}"?'
        return None, f'I couldn\'t find a project named "{name}".'

    async def resolve_silently(self, name: Optional[str]) -> Optional[str]:
        """Canonical name for a confident match, else None. Used for UI hints."""
        result = await self.match(name)
        if isinstance(result, (ExactMatch, AutocorrectMatch)):
            return result.name
        return None
