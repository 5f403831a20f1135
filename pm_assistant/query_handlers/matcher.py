# matcher.py
"""Fuzzy resolution of user-typed project names."""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

AUTOCORRECT_DISTANCE = 1
SUGGESTION_DISTANCE = 2


@dataclass(frozen=True)
class ExactMatch:
    name: str


@dataclass(frozen=True)
class AutocorrectMatch:
    """Close enough to use without asking"""

    name: str


@dataclass(frozen=True)
class SuggestionMatch:
    """Close enough to ask the user to confirm"""

    name: str


@dataclass(frozen=True)
class NoMatch:
    pass


ProjectMatch = Union[ExactMatch, AutocorrectMatch, SuggestionMatch, NoMatch]


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit cost insertions, deletions and substitutions"""
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], previous[j], current[j - 1]) + 1)
        previous = current
    return previous[-1]


def match_project(user_input: Optional[str], projects: Iterable[str]) -> ProjectMatch:
    """Resolve a project name against the canonical list.

    Exact (case-insensitive) wins immediately; otherwise the closest project
    is an autocorrect within distance 1 and a suggestion within distance 2.
    The first of several equally close projects is returned.
    """
    if not user_input or not user_input.strip():
        return NoMatch()
    wanted = user_input.strip().lower()

    best: Optional[str] = None
    best_distance = None
    for project in projects:
        candidate = project.lower()
        if candidate == wanted:
            return ExactMatch(project)
        distance = edit_distance(wanted, candidate)
        if best_distance is None or distance < best_distance:
            best, best_distance = project, distance

    if best is None:
        return NoMatch()
    if best_distance <= AUTOCORRECT_DISTANCE:
        return AutocorrectMatch(best)
    if best_distance <= SUGGESTION_DISTANCE:
        return SuggestionMatch(best)
    return NoMatch()
