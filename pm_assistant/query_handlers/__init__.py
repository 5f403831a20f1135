# Query package
"""Chat message routing for the project assistant."""

from .classifier import IntentResolver
from .create_item_handler import CreateItemHandler
from .defects_handler import DefectsHandler
from .matcher import AutocorrectMatch, ExactMatch, NoMatch, SuggestionMatch, edit_distance, match_project
from .release_handler import ReleaseHandler
from .router import QueryRouter
from .semantic_handler import SemanticHandler
from .smalltalk_handler import SmallTalkHandler
from .types import Intent, IntentParameters, ParsedIntent, Resolution, RouterResponse

__all__ = [
    # Handlers
    "CreateItemHandler",
    "DefectsHandler",
    "ReleaseHandler",
    "SemanticHandler",
    "SmallTalkHandler",
    # Core components
    "IntentResolver",
    "QueryRouter",
    "edit_distance",
    "match_project",
    # Types
    "AutocorrectMatch",
    "ExactMatch",
    "NoMatch",
    "SuggestionMatch",
    "Intent",
    "IntentParameters",
    "ParsedIntent",
    "Resolution",
    "RouterResponse",
]
