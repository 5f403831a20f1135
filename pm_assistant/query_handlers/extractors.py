# extractors.py
"""Regex extractors that pull slot values out of raw chat messages.

Every extractor is a plain function ``(text) -> Optional[str]`` that never
raises. Where several surface forms exist for one slot, the patterns are kept
in a list ordered by confidence and combined with ``first_match``.
"""

import re
from typing import Callable, Iterable, Optional, Pattern

from .types import Intent

Extractor = Callable[[str], Optional[str]]

PROJECT_PATTERNS = {
    Intent.GET_RELEASE_DATE: re.compile(r"release date for\s+(.+)", re.IGNORECASE),
    Intent.GET_PROJECT_SUMMARY: re.compile(
        r"(?:summary for|everything for)\s+(.+)", re.IGNORECASE
    ),
    Intent.GET_DEFECTS_LIST: re.compile(
        r"(?:defects?|counter|number|undone|not done|done|closed)(?:.*?)(?: for| in| of)"
        r"\s+(?:the\s+)?([a-zA-Z0-9\s\-_]+)(?:\?|$)",
        re.IGNORECASE,
    ),
}
PROJECT_PATTERNS[Intent.GET_DEFECTS_COUNT] = PROJECT_PATTERNS[Intent.GET_DEFECTS_LIST]

LOOSE_DEFECT_PROJECT = re.compile(r"defects?\s+([a-zA-Z0-9-]+)", re.IGNORECASE)

CONVERSATIONAL_PROJECT_PATTERNS = [
    re.compile(
        r"\b(?:(?:for|in|on|to)\s+project|project|for|in|on|to)\s+(?:the\s+)?"
        r"(['\"]?)([\w\s-]+?)\1"
        r"(?=\s|,\s|\.\s|\?\s|sprint|title|titled|called|requirement|defect|$)",
        re.IGNORECASE,
    ),
    re.compile(r"^(['\"]?)([\w\s-]+?)\1\s+(?:requirement|defect)", re.IGNORECASE),
]

TITLE_PATTERNS = [
    re.compile(r"(?:requirement|defect)\s+(['\"])(.+?)\1", re.IGNORECASE),
    re.compile(
        r"(?:titled|title is|title|with title|named|called|call it|the title should be)"
        r"\s+(['\"]?)(.+?)\1(?=[.,]?(\s+for|\s+in|\s+on|\s+sprint|project|$))",
        re.IGNORECASE,
    ),
    re.compile(r":\s+(['\"]?)(.+?)\1$", re.IGNORECASE),
    re.compile(r"(['\"])(.+?)\1\s+title", re.IGNORECASE),
]

SPRINT_PATTERN = re.compile(
    r"(?:in\s+)?sprint\s+([a-zA-Z0-9_.-]+)|([a-zA-Z0-9_.-]+)\s+sprint", re.IGNORECASE
)

ITEM_TYPE_PATTERN = re.compile(r"\b(requirement|defect)\b", re.IGNORECASE)


def first_match(extractors: Iterable[Extractor], text: str) -> Optional[str]:
    """Run extractors in order and return the first non-empty result"""
    for extractor in extractors:
        value = extractor(text)
        if value:
            return value
    return None


def _strip_project_suffix(name: str) -> str:
    if name.lower().endswith(" project"):
        name = name[: -len(" project")]
    return name.strip()


def _pattern_group(pattern: Pattern, group: int = 1) -> Extractor:
    def extract(text: str) -> Optional[str]:
        match = pattern.search(text or "")
        if match and match.group(group):
            return match.group(group)
        return None

    return extract


def extract_project(text: str, intent: Intent) -> Optional[str]:
    """Project name for an intent, using the intent's own template first"""
    extractors = []
    if intent in PROJECT_PATTERNS:
        extractors.append(_pattern_group(PROJECT_PATTERNS[intent]))
    if intent in (Intent.GET_DEFECTS_LIST, Intent.GET_DEFECTS_COUNT):
        extractors.append(_pattern_group(LOOSE_DEFECT_PROJECT))

    name = first_match(extractors, text)
    if not name:
        return None
    name = name.strip().rstrip("?").strip()
    name = _strip_project_suffix(name)
    return name or None


def extract_conversational_project(text: str) -> Optional[str]:
    """Project named in a create request: "for project X", "X requirement", ..."""
    name = first_match(
        [_pattern_group(pattern, 2) for pattern in CONVERSATIONAL_PROJECT_PATTERNS], text
    )
    if not name:
        return None
    return _strip_project_suffix(name.strip()) or None


def _clean_title(title: str) -> str:
    title = title.strip()
    if title and title[-1] in ".,?!\"'":
        title = title[:-1]
    if len(title) > 1 and title.startswith('"') and title.endswith('"'):
        title = title[1:-1]
    return title


def extract_title(text: str) -> Optional[str]:
    title = first_match([_pattern_group(pattern, 2) for pattern in TITLE_PATTERNS], text)
    if not title:
        return None
    return _clean_title(title) or None


def extract_sprint(text: str) -> Optional[str]:
    """Sprint identifier from "in sprint X" or "X sprint" """
    match = SPRINT_PATTERN.search(text or "")
    if not match:
        return None
    sprint = (match.group(1) or match.group(2)).strip().rstrip(".")
    return sprint or None


def extract_item_type(text: str) -> Optional[str]:
    match = ITEM_TYPE_PATTERN.search(text or "")
    return match.group(1).lower() if match else None


def derive_status_filter(text: str) -> Optional[str]:
    """Defect status filter implied by the wording of a message"""
    lower = (text or "").lower()
    if "undone" in lower or "not done" in lower:
        return "undone"
    if "done" in lower:
        return "done"
    if "closed" in lower:
        return "closed"
    if "all the defects" in lower:
        return "all_including_closed"
    if "defects" in lower:
        return "all"
    return None
