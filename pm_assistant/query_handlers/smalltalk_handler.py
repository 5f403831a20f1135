# smalltalk_handler.py
"""Handlers for jokes, weather and namedays."""

import asyncio
import logging
import random
from datetime import timedelta
from typing import Optional

from pm_assistant.core import ChatReply, Config, Message
from pm_assistant.core.exceptions import AssistantError
from pm_assistant.data import BaseProjectRepository
from pm_assistant.services import NamedayService, WeatherService
from .types import IntentParameters

logger = logging.getLogger(__name__)

WEATHER_SETTING_KEY = "weather_location"
WEATHER_FAILED_REPLY = "Sorry, I was unable to connect to the weather service."
NAMEDAY_FAILED_REPLY = "Sorry, I was unable to connect to the nameday service at the moment."


class SmallTalkHandler:
    """Answers that do not touch project data"""

    def __init__(
        self,
        repository: BaseProjectRepository,
        weather: Optional[WeatherService] = None,
        nameday: Optional[NamedayService] = None,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.weather = weather or WeatherService()
        self.nameday = nameday or NamedayService()
        self.rng = rng or random.Random()

    def joke(self) -> ChatReply:
        return ChatReply(self.rng.choice(Config.JOKES))

    async def handle_weather(self, message: Message, params: IntentParameters) -> ChatReply:
        location = params.location
        if not location:
            location = await asyncio.to_thread(self.repository.get_setting, WEATHER_SETTING_KEY)
        if not location:
            return ChatReply(
                "I can get the weather for you, but I don't have a default location saved. "
                "Which city are you interested in?"
            )

        timeframe = (params.timeframe or "").lower()
        try:
            if "tomorrow" in timeframe or "next day" in timeframe:
                forecast = await self.weather.tomorrow_noon(location)
                if forecast is None:
                    return ChatReply(
                        f'I couldn\'t find weather data for "{location}". Please check the location name.'
                    )
                if "temp" not in forecast:
                    return ChatReply(
                        f"I found {forecast['city']}, but couldn't get a specific forecast for noon tomorrow."
                    )
                return ChatReply(
                    f"Tomorrow in {forecast['city']}, it will be around {forecast['temp']:.1f}°C "
                    f"with {forecast['description']}."
                )

            current = await self.weather.current(location)
        except (AssistantError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Weather lookup failed for {location}: {str(e)}")
            return ChatReply(WEATHER_FAILED_REPLY)

        if current is None:
            return ChatReply(
                f'I couldn\'t find weather data for "{location}". Please check the location name.'
            )
        return ChatReply(
            f"Currently in {current['city']}, it's {current['temp']:.1f}°C and feels like "
            f"{current['feels_like']:.1f}°C, with {current['description']}."
        )

    async def handle_nameday(self, message: Message, params: IntentParameters) -> ChatReply:
        timeframe = (params.timeframe or "").lower()
        today_only = "today" in timeframe or "today" in message.lower
        tomorrow_only = "tomorrow" in timeframe or "tomorrow" in message.lower

        try:
            entries = await self.nameday.fetch()
        except AssistantError as e:
            logger.error(f"Nameday scraping failed: {str(e)}")
            return ChatReply(NAMEDAY_FAILED_REPLY)
        if not entries:
            return ChatReply("I couldn't retrieve the nameday list at the moment.")

        today = self.nameday.local_today()

        if today_only:
            entry = self.nameday.find_today(entries, today)
            if entry is None:
                return ChatReply("I couldn't find today's nameday information.")
            if entry.names:
                return ChatReply(f"Today ({entry.date}) the namedays are: {entry.names}.")
            return ChatReply(f"There are no namedays listed for today ({entry.date}).")

        if tomorrow_only:
            entry = self.nameday.find_day(entries, today + timedelta(days=1))
            if entry is None:
                return ChatReply("I couldn't retrieve tomorrow's nameday information.")
            if entry.names:
                return ChatReply(f"Tomorrow ({entry.date}) the namedays are: {entry.names}.")
            return ChatReply(f"There are no namedays listed for tomorrow ({entry.date}).")

        lines = ["Here are the namedays for the next 7 days:", ""]
        for entry in self.nameday.upcoming(entries, today):
            names = entry.name_list()
            lines.append(f"{entry.date}:")
            if names:
                lines.extend(f"- {name}" for name in names)
            else:
                lines.append("- No namedays listed.")
            lines.append("")
        return ChatReply("\n".join(lines).rstrip() + "\n")
