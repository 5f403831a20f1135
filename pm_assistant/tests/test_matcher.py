# test_matcher.py
"""Tests for edit distance and project name matching."""

import pytest

from pm_assistant.query_handlers.matcher import (
    AutocorrectMatch,
    ExactMatch,
    NoMatch,
    SuggestionMatch,
    edit_distance,
    match_project,
)

PROJECTS = ["crm-project", "sales-app"]


class TestEditDistance:
    """Test cases for Levenshtein distance."""

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("", "", 0),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("crm-project", "crm-projct", 1),
            ("crm-project", "crm-projects", 1),
            ("flaw", "lawn", 2),
        ],
    )
    def test_known_distances(self, a, b, expected):
        assert edit_distance(a, b) == expected

    @pytest.mark.parametrize("a, b", [("abc", "yabd"), ("sales-app", "sale"), ("x", ""), ("book", "back")])
    def test_symmetric(self, a, b):
        assert edit_distance(a, b) == edit_distance(b, a)

    @pytest.mark.parametrize("word", ["", "a", "crm-project"])
    def test_identity_is_zero(self, word):
        assert edit_distance(word, word) == 0


class TestMatchProject:
    """Test cases for the exact / autocorrect / suggestion / no-match policy."""

    def test_exact_match(self):
        assert match_project("crm-project", PROJECTS) == ExactMatch("crm-project")

    def test_exact_match_ignores_case(self):
        assert match_project("CRM-Project", PROJECTS) == ExactMatch("crm-project")

    def test_missing_letter_autocorrects(self):
        assert match_project("crm-projct", PROJECTS) == AutocorrectMatch("crm-project")

    def test_extra_letter_autocorrects(self):
        assert match_project("crm-projects", PROJECTS) == AutocorrectMatch("crm-project")

    def test_distance_two_is_a_suggestion(self):
        assert match_project("crmprojekt", PROJECTS) == SuggestionMatch("crm-project")

    def test_unrelated_name_is_no_match(self):
        assert match_project("xyz", PROJECTS) == NoMatch()

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_input_is_no_match(self, value):
        assert match_project(value, PROJECTS) == NoMatch()

    def test_empty_project_list(self):
        assert match_project("crm-project", []) == NoMatch()

    def test_returns_canonical_spelling(self):
        result = match_project("SALES-AP", ["Sales-App"])
        assert isinstance(result, AutocorrectMatch)
        assert result.name == "Sales-App"

    def test_missing_hyphen_is_one_edit(self):
        assert edit_distance("crmproject", "crm-project") == 1
        assert match_project("crmproject", PROJECTS) == AutocorrectMatch("crm-project")
