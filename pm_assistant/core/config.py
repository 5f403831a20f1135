# config.py
import os
from enum import Enum


class DefectStatus(Enum):
    """Workflow states a defect can be in"""

    ASSIGNED_TO_DEVELOPER = "Assigned to Developer"
    ASSIGNED_TO_TESTER = "Assigned to Tester"
    DONE = "Done"
    CLOSED = "Closed"


class Config:
    """Fixed configuration for the project assistant"""

    GREETINGS = ("hello", "hi", "hey")

    DATE_QUESTIONS = (
        "what day is today",
        "what's the date",
        "tell me the today date",
        "today is",
    )

    JOKES = [
        "Why don't scientists trust atoms? Because they make up everything!",
        "I told my computer I needed a break, and now it won't stop sending me Kit-Kat ads.",
        "Why did the scarecrow win an award? Because he was outstanding in his field!",
        "What do you call a fake noodle? An Impasta!",
        "Why did the programmer get stuck in the shower? Because the instructions said \"lather, rinse, repeat\"!",
        "Why do programmers prefer dark mode? Because light attracts bugs!",
    ]

    # Defects still being worked on
    OPEN_DEFECT_STATUSES = [
        DefectStatus.ASSIGNED_TO_DEVELOPER.value,
        DefectStatus.ASSIGNED_TO_TESTER.value,
    ]
    FINISHED_DEFECT_STATUSES = [DefectStatus.DONE.value, DefectStatus.CLOSED.value]

    # Defaults for items created from chat
    NEW_REQUIREMENT_STATUS = "To Do"
    NEW_DEFECT_AREA = "Imported"

    DATE_FORMAT = "%Y-%m-%d"
    REPLY_DATE_FORMAT = "%A, %B %d, %Y"
    NAMEDAY_TIMEZONE = "Europe/Athens"

    # Payload fields the vector index can filter on
    PAYLOAD_INDEXES = {
        "project": "keyword",
        "type": "keyword",
        "status": "keyword",
        "title": "text",
    }

    # Environment configuration
    IS_DEVELOPMENT = os.getenv("ENVIRONMENT", "development") == "development"

    @classmethod
    def load_env_for_development(cls):
        """Load .env file only for local development"""
        if cls.IS_DEVELOPMENT:
            from dotenv import load_dotenv

            load_dotenv()
