# test_extractors.py
"""Tests for the regex slot extractors."""

import pytest

from pm_assistant.query_handlers.extractors import (
    derive_status_filter,
    extract_conversational_project,
    extract_item_type,
    extract_project,
    extract_sprint,
    extract_title,
    first_match,
)
from pm_assistant.query_handlers.types import Intent


class TestProjectExtraction:
    """Test cases for intent-specific project extraction."""

    def test_release_date_template(self):
        assert extract_project("release date for crm-project", Intent.GET_RELEASE_DATE) == "crm-project"

    def test_release_date_strips_question_mark(self):
        assert extract_project("what is the release date for sales-app?", Intent.GET_RELEASE_DATE) == "sales-app"

    def test_summary_template(self):
        assert extract_project("give me a summary for crm-project", Intent.GET_PROJECT_SUMMARY) == "crm-project"

    def test_defects_template(self):
        text = "how many undone defects for crm-project?"
        assert extract_project(text, Intent.GET_DEFECTS_COUNT) == "crm-project"

    def test_defects_loose_fallback(self):
        assert extract_project("defects crm-project", Intent.GET_DEFECTS_LIST) == "crm-project"

    def test_trailing_project_word_is_stripped(self):
        text = "show me the defects for the crm project"
        assert extract_project(text, Intent.GET_DEFECTS_LIST) == "crm"

    def test_intent_without_template(self):
        assert extract_project("tell me something about crm-project", Intent.GET_JOKE) is None


class TestConversationalProject:
    """Test cases for project names in create requests."""

    def test_for_project(self):
        text = 'create a requirement titled "User Profile V2" for project crm-project'
        assert extract_conversational_project(text) == "crm-project"

    def test_quoted_name(self):
        assert extract_conversational_project('add a defect to "sales-app" titled Broken link') == "sales-app"

    def test_name_before_item_type(self):
        assert extract_conversational_project("crm requirement called Audit log") == "crm"

    def test_nothing_to_find(self):
        assert extract_conversational_project("create something") is None


class TestTitleExtraction:
    """Test cases for item titles."""

    def test_titled_with_quotes(self):
        text = 'create a requirement titled "User Profile V2" for project crm-project'
        assert extract_title(text) == "User Profile V2"

    def test_quoted_after_item_type(self):
        assert extract_title("create defect 'Crash on save' in sales-app") == "Crash on save"

    def test_colon_form(self):
        assert extract_title("new defect for crm-project: Login fails on Safari") == "Login fails on Safari"

    def test_trailing_punctuation_removed(self):
        assert extract_title("add a requirement called Dark mode.") == "Dark mode"

    def test_no_title(self):
        assert extract_title("create a requirement for crm-project") is None


class TestSprintExtraction:
    """Test cases for sprint identifiers."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("put it in sprint 7", "7"),
            ("7 sprint", "7"),
            ("Sprint 12", "12"),
            ("place it in sprint alpha-2.", "alpha-2"),
        ],
    )
    def test_sprint_forms(self, text, expected):
        assert extract_sprint(text) == expected

    def test_no_sprint(self):
        assert extract_sprint("create a defect") is None


class TestSmallExtractors:
    """Test cases for item type, status wording and the combinator."""

    def test_item_type(self):
        assert extract_item_type("Create a Requirement please") == "requirement"
        assert extract_item_type("log a defect") == "defect"
        assert extract_item_type("create a task") is None

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("how many undone defects", "undone"),
            ("defects not done yet", "undone"),
            ("list done defects", "done"),
            ("closed defects please", "closed"),
            ("show me all the defects", "all_including_closed"),
            ("defects for crm", "all"),
            ("hello", None),
        ],
    )
    def test_status_filter(self, text, expected):
        assert derive_status_filter(text) == expected

    def test_first_match_respects_order(self):
        calls = []

        def first(text):
            calls.append("first")
            return None

        def second(text):
            calls.append("second")
            return "two"

        def third(text):
            calls.append("third")
            return "three"

        assert first_match([first, second, third], "anything") == "two"
        assert calls == ["first", "second"]

    def test_extractors_never_raise_on_empty_text(self):
        assert extract_title("") is None
        assert extract_sprint("") is None
        assert extract_conversational_project("") is None
        assert extract_project("", Intent.GET_DEFECTS_LIST) is None
