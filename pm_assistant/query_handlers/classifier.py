# intent_classifier.py
"""Intent resolution: deterministic rules first, remote classifier second."""

import json
import logging
import re
from datetime import date
from typing import Optional

from pydantic import ValidationError

from pm_assistant.core import Config, LLMInterface, Message
from pm_assistant.core.exceptions import (
    ClassifierBusyError,
    ClassifierError,
    ClassifierParseError,
    InvalidCredentialsError,
    ServiceUnavailableError,
)
from pm_assistant.providers.llm_providers import strip_reasoning
from .extractors import (
    derive_status_filter,
    extract_conversational_project,
    extract_item_type,
    extract_project,
    extract_sprint,
    extract_title,
)
from .types import Intent, IntentParameters, ParsedIntent, Resolution

logger = logging.getLogger(__name__)

GREETING_REPLY = "Hello! How can I help you with your project data today?"
HOW_ARE_YOU_REPLY = "I'm a bot, but I'm ready to assist you!"
RELEASE_GUARD_REPLY = (
    "Your request is a bit unclear. If you're asking for a release date, "
    "please try asking again using the words 'release date'."
)
DATE_GUARD_REPLY = (
    "Your request is a bit unclear. If you're asking for a release date, "
    "please try again using the phrase 'release date for [project name]'."
)

CLASSIFIER_FAILURE_REPLIES = {
    InvalidCredentialsError: (
        "The AI service rejected the configured credentials. "
        "Please check the API key and try again."
    ),
    ClassifierBusyError: "The AI service is busy right now. Please try again in a moment.",
    ServiceUnavailableError: (
        "The AI service is temporarily unavailable. Please try again later."
    ),
    ClassifierParseError: (
        "Sorry, I had trouble understanding that. Could you please rephrase your request?"
    ),
}
GENERIC_CLASSIFIER_REPLY = "Something went wrong while processing your request. Please try again."

INTENT_PROMPT = """
Analyze the user's message to determine their primary intent and extract key parameters.
Your response must be ONLY a single JSON object of the form {{"intent": "...", "parameters": {{...}}}}.
**INTENTS:**
- "get_defects_list": User wants a list of defects. Examples: "give me the defects for crm-project", "show me the undone defects for crm".
- "get_defects_count": User wants a count of defects. Examples: "how many defects are in crm-project?".
- "create_item": User wants to create a new item (requirement or defect). The parameters can appear in any order.
- "get_joke": User asks for a joke.
- "get_weather": User wants to know the current or future weather.
- "get_nameday": User wants to know who is celebrating their nameday.
- "get_release_date": User is asking for the release date of a project or a specific item.
- "get_project_summary": User wants a summary of a project's data.
- "get_general_info": A general question that requires searching the database that does not match any other intent.
- "unknown": The intent is unclear.
**PARAMETERS TO EXTRACT:**
- "project_name": The name of the project.
- "defect_status_filter": The status filter for defect queries.
- "item_type": "requirement" or "defect".
- "item_id": The specific ID of an item.
- "title": The title for an item to be created.
- "sprint": The name or number of the sprint.
- "location": The city/place for the weather forecast.
- "timeframe": "today", "tomorrow", "next 7 days".
- "query": The user's core question.
User message: "{message}"
"""

COUNT_TRIGGER = re.compile(r"\b(?:how many|count of|number of)\b.*\bdefects?\b")
LIST_TRIGGER = re.compile(
    r"\bdefects (?:for|in)\b|\blist (?:\w+ )?defects\b|\bshow me (?:the )?(?:\w+ )?defects\b"
    r"|\bgive me the (?:\w+ )?defects\b"
)
CREATE_PREFIXES = ("create", "add", "new")


def clean_classifier_output(text: str) -> str:
    """Reduce a raw classifier response to the JSON object it contains"""
    cleaned = strip_reasoning(text or "")
    first, last = cleaned.find("{"), cleaned.rfind("}")
    if first != -1 and last > first:
        return cleaned[first:last + 1]
    return cleaned.replace("```json", "").replace("```", "").strip()


def parse_classifier_output(text: str) -> ParsedIntent:
    """Decode and validate a classifier response.

    Raises:
        ClassifierParseError: when the response is not a JSON object
    """
    cleaned = clean_classifier_output(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ClassifierParseError(f"Classifier returned invalid JSON: {str(e)}") from e
    if not isinstance(data, dict):
        raise ClassifierParseError("Classifier response is not a JSON object")
    try:
        return ParsedIntent.model_validate(data)
    except ValidationError as e:
        raise ClassifierParseError(f"Classifier response failed validation: {str(e)}") from e


def reply_for_classifier_error(error: ClassifierError) -> str:
    for error_type, reply in CLASSIFIER_FAILURE_REPLIES.items():
        if isinstance(error, error_type):
            return reply
    return GENERIC_CLASSIFIER_REPLY


class IntentResolver:
    """Turns a chat message into either a direct reply or a ParsedIntent"""

    def __init__(self, llm: Optional[LLMInterface] = None, today=None):
        self.llm = llm
        self._today = today or date.today

    async def resolve(self, message: Message) -> Resolution:
        resolution = self.resolve_deterministic(message)
        if resolution is not None:
            logger.info(f"Message resolved by rules ({resolution.stage})")
            return resolution

        parsed = self.quick_rules(message.text)
        if parsed is not None:
            logger.info(f"Message matched keyword rule: {parsed.intent.value}")
            return Resolution(intent=parsed, stage="keywords")

        return await self.classify(message)

    def resolve_deterministic(self, message: Message) -> Optional[Resolution]:
        """Canned replies, keyword intents and ambiguity guards"""
        lower = message.lower

        if lower in Config.GREETINGS:
            return Resolution(reply=GREETING_REPLY, stage="greeting")
        if "how are you" in lower:
            return Resolution(reply=HOW_ARE_YOU_REPLY, stage="greeting")
        if any(question in lower for question in Config.DATE_QUESTIONS):
            today = self._today().strftime(Config.REPLY_DATE_FORMAT)
            return Resolution(reply=f"Today is {today}.", stage="date")

        intent = None
        if "eortologio" in lower or "nameday" in lower:
            intent = Intent.GET_NAMEDAY
        if "joke" in lower:
            intent = Intent.GET_JOKE
        if "weather" in lower:
            intent = Intent.GET_WEATHER

        if "release" in lower and "date" not in lower:
            return Resolution(reply=RELEASE_GUARD_REPLY, stage="guard")
        # Plain substring test, so words like "update" also trip the guard
        if (
            "date" in lower
            and "release date" not in lower
            and "today" not in lower
            and "nameday" not in lower
        ):
            return Resolution(reply=DATE_GUARD_REPLY, stage="guard")

        if intent is not None:
            return Resolution(intent=ParsedIntent(intent=intent), stage="keywords")
        return None

    def quick_rules(self, text: str) -> Optional[ParsedIntent]:
        """Unambiguous defect, release and create requests that need no classifier"""
        lower = text.lower().strip()

        if COUNT_TRIGGER.search(lower):
            return ParsedIntent(
                intent=Intent.GET_DEFECTS_COUNT,
                parameters=IntentParameters(
                    project_name=extract_project(text, Intent.GET_DEFECTS_COUNT),
                    defect_status_filter=derive_status_filter(text),
                ),
            )

        if LIST_TRIGGER.search(lower):
            return ParsedIntent(
                intent=Intent.GET_DEFECTS_LIST,
                parameters=IntentParameters(
                    project_name=extract_project(text, Intent.GET_DEFECTS_LIST),
                    defect_status_filter=derive_status_filter(text),
                ),
            )

        if "release date" in lower:
            return ParsedIntent(
                intent=Intent.GET_RELEASE_DATE,
                parameters=IntentParameters(
                    project_name=extract_project(text, Intent.GET_RELEASE_DATE)
                ),
            )

        if lower.startswith(CREATE_PREFIXES) or "create a" in lower:
            item_type = extract_item_type(text)
            if item_type:
                return ParsedIntent(
                    intent=Intent.CREATE_ITEM,
                    parameters=IntentParameters(
                        item_type=item_type,
                        title=extract_title(text),
                        project_name=extract_conversational_project(text),
                        sprint=extract_sprint(text),
                    ),
                )
        return None

    async def classify(self, message: Message) -> Resolution:
        """Ask the remote classifier. Failures become replies, never exceptions."""
        if self.llm is None:
            logger.warning("No classifier configured, falling back to general search")
            return Resolution(intent=ParsedIntent(intent=Intent.GET_GENERAL_INFO))

        try:
            raw = await self.llm.generate_response(INTENT_PROMPT.format(message=message.text))
            parsed = parse_classifier_output(raw)
        except ClassifierError as e:
            logger.warning(f"Intent classification failed ({type(e).__name__}): {str(e)}")
            return Resolution(reply=reply_for_classifier_error(e), stage="classifier_error")

        logger.info(f"Classifier returned intent: {parsed.intent.value}")
        return Resolution(intent=parsed, stage="classifier")
