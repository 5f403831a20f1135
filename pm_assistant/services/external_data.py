# external_data.py
"""Weather and nameday lookups used by the small-talk intents."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import httpx
from bs4 import BeautifulSoup

from pm_assistant.core import Config, settings
from pm_assistant.core.exceptions import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)

# Short month names as the nameday widget prints them
GREEK_MONTHS = [
    "Ιαν", "Φεβ", "Μαρ", "Απρ", "Μαΐ", "Ιουν",
    "Ιουλ", "Αυγ", "Σεπ", "Οκτ", "Νοε", "Δεκ",
]
TODAY_LABEL = "Σήμερα"


@dataclass
class NamedayEntry:
    """One row of the nameday widget"""

    date: str
    names: str = ""

    def name_list(self) -> List[str]:
        return [name for name in self.names.split(", ") if name] if self.names else []


def greek_day_label(day: date) -> str:
    """Render a date the way the widget does, e.g. ``19 Οκτ``"""
    return f"{day.day} {GREEK_MONTHS[day.month - 1]}"


class _HttpService:
    """Shared client handling for the outbound lookups"""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        client = self._client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT, follow_redirects=True
        )
        try:
            return await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise UpstreamServiceError(f"Request to {url} failed: {str(e)}") from e
        finally:
            if self._client is None:
                await client.aclose()


class WeatherService(_HttpService):
    """Current conditions and next-day forecast from OpenWeather"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(client)
        self.api_key = api_key or settings.OPENWEATHER_API_KEY
        self.base_url = (base_url or settings.OPENWEATHER_BASE_URL).rstrip("/")

    async def _fetch(self, endpoint: str, location: str) -> Optional[Dict[str, Any]]:
        if not self.api_key:
            raise ConfigurationError("OPENWEATHER_API_KEY is not set")
        response = await self._get(
            f"{self.base_url}/{endpoint}",
            params={"q": location, "units": "metric", "appid": self.api_key},
        )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamServiceError("Weather service returned invalid JSON") from e
        # /weather reports cod as an int, /forecast as a string
        if str(data.get("cod")) != "200":
            logger.info(f"No weather data for {location}: {data.get('message')}")
            return None
        return data

    async def current(self, location: str) -> Optional[Dict[str, Any]]:
        """Current conditions, or None when the location is unknown"""
        data = await self._fetch("weather", location)
        if data is None:
            return None
        return {
            "city": data["name"],
            "temp": float(data["main"]["temp"]),
            "feels_like": float(data["main"]["feels_like"]),
            "description": data["weather"][0]["description"],
        }

    async def tomorrow_noon(self, location: str, today: Optional[date] = None) -> Optional[Dict[str, Any]]:
        """Forecast slot for 12:00 tomorrow.

        Returns None when the location is unknown and a dict without
        ``temp`` when the city exists but the slot is missing.
        """
        data = await self._fetch("forecast", location)
        if data is None:
            return None
        tomorrow = (today or datetime.now(timezone.utc).date()) + timedelta(days=1)
        slot = f"{tomorrow.isoformat()} 12:00:00"
        city = data.get("city", {}).get("name", location)
        for item in data.get("list", []):
            if item.get("dt_txt") == slot:
                return {
                    "city": city,
                    "temp": float(item["main"]["temp"]),
                    "description": item["weather"][0]["description"],
                }
        return {"city": city}


class NamedayService(_HttpService):
    """Scrapes the Greek nameday widget"""

    def __init__(self, url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.url = url or settings.NAMEDAY_WIDGET_URL

    async def fetch(self) -> List[NamedayEntry]:
        response = await self._get(self.url)
        if response.status_code >= 400:
            raise UpstreamServiceError(
                f"Failed to fetch nameday widget with status: {response.status_code}"
            )
        return self.parse(response.text)

    @staticmethod
    def parse(html: str) -> List[NamedayEntry]:
        soup = BeautifulSoup(html, "html.parser")
        entries = []
        for row in soup.select("table tr"):
            date_cell = row.select_one("td#date")
            if date_cell is None:
                continue
            date_text = date_cell.get_text(strip=True)
            if not date_text:
                continue
            names_cell = row.select_one("td#maintd")
            names = names_cell.get_text(strip=True) if names_cell else ""
            entries.append(NamedayEntry(date=date_text, names="" if names == "-" else names))
        return entries

    @staticmethod
    def local_today() -> date:
        return datetime.now(ZoneInfo(Config.NAMEDAY_TIMEZONE)).date()

    @staticmethod
    def find_today(entries: List[NamedayEntry], today: date) -> Optional[NamedayEntry]:
        label = greek_day_label(today)
        for entry in entries:
            if entry.date == TODAY_LABEL or entry.date.startswith(label):
                return entry
        return None

    @staticmethod
    def find_day(entries: List[NamedayEntry], day: date) -> Optional[NamedayEntry]:
        label = greek_day_label(day)
        for entry in entries:
            if entry.date.startswith(label):
                return entry
        return None

    @staticmethod
    def upcoming(entries: List[NamedayEntry], today: date, days: int = 7) -> List[NamedayEntry]:
        """``days`` entries starting at today, or the first ``days`` if today is not listed"""
        label = greek_day_label(today)
        for index, entry in enumerate(entries):
            if entry.date.startswith(label):
                return entries[index:index + days]
        return entries[:days]
