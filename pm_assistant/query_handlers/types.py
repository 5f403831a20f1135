# query_types.py
"""Data types and models for the query routing system."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pm_assistant.core import ChatReply


class Intent(str, Enum):
    """What the user wants the assistant to do"""

    GET_DEFECTS_LIST = "get_defects_list"
    GET_DEFECTS_COUNT = "get_defects_count"
    CREATE_ITEM = "create_item"
    GET_RELEASE_DATE = "get_release_date"
    GET_PROJECT_SUMMARY = "get_project_summary"
    GET_WEATHER = "get_weather"
    GET_NAMEDAY = "get_nameday"
    GET_JOKE = "get_joke"
    GET_GENERAL_INFO = "get_general_info"
    UNKNOWN = "unknown"


class IntentParameters(BaseModel):
    """Slots extracted from a message. Every slot is optional."""

    model_config = ConfigDict(extra="ignore")

    project_name: Optional[str] = None
    defect_status_filter: Optional[str] = None
    item_type: Optional[str] = None
    item_id: Optional[str] = None
    title: Optional[str] = None
    sprint: Optional[str] = None
    location: Optional[str] = None
    timeframe: Optional[str] = None
    query: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> Optional[str]:
        """Classifiers sometimes send numbers or empty strings for slots"""
        if v is None or isinstance(v, (dict, list)):
            return None
        text = str(v).strip()
        return text or None


class ParsedIntent(BaseModel):
    """Validated classifier output: ``{"intent": ..., "parameters": {...}}``"""

    model_config = ConfigDict(extra="ignore")

    intent: Intent = Intent.UNKNOWN
    parameters: IntentParameters = Field(default_factory=IntentParameters)

    @field_validator("intent", mode="before")
    @classmethod
    def unknown_for_unlisted(cls, v: Any) -> Intent:
        if isinstance(v, Intent):
            return v
        try:
            return Intent(str(v).strip().lower())
        except ValueError:
            return Intent.UNKNOWN

    @field_validator("parameters", mode="before")
    @classmethod
    def empty_parameters(cls, v: Any) -> Any:
        if isinstance(v, (dict, IntentParameters)):
            return v
        return {}


@dataclass
class Resolution:
    """Outcome of intent resolution: either a finished reply or an intent to execute"""

    intent: Optional[ParsedIntent] = None
    reply: Optional[str] = None
    stage: str = "classifier"

    @property
    def is_direct_reply(self) -> bool:
        return self.reply is not None


@dataclass
class RouterResponse:
    """Response from the query router"""

    reply: ChatReply
    method_used: str
    additional_info: Dict[str, Any] = field(default_factory=dict)
