"""AI-generated narrative insights for a weather snapshot."""

import logging
from typing import Final, Optional, Protocol

import httpx
from pydantic import ValidationError

from atmosphere.config import GEMINI_API_KEY, GEMINI_API_URL, GEMINI_MODEL
from atmosphere.weather.models import AIInsights, WeatherSnapshot

logger = logging.getLogger(__name__)

DEFAULT_INSIGHTS: Final[AIInsights] = AIInsights(
    human_insight="Conditions are steady. A pleasant day to observe the surroundings.",
    health_suggestion="Stay mindful of your comfort and hydration today.",
    travel_warning="No significant travel concerns detected at this moment.",
)

RESPONSE_SCHEMA: Final[dict] = {
    "type": "OBJECT",
    "properties": {
        "human_insight": {"type": "STRING"},
        "health_suggestion": {"type": "STRING"},
        "travel_warning": {"type": "STRING"},
    },
    "required": ["human_insight", "health_suggestion", "travel_warning"],
}


class InsightProvider(Protocol):
    """Produces insights for a snapshot in the requested language."""

    async def generate(self, snapshot: WeatherSnapshot, language: str) -> AIInsights:
        ...


def build_prompt(snapshot: WeatherSnapshot, language: str) -> str:
    return (
        f"Based on this current weather for {snapshot.city}:\n"
        f"Temp: {snapshot.temp}°C, Feels like: {snapshot.feels_like}°C\n"
        f"Condition: {snapshot.condition}\n"
        f"Rain Chance: {snapshot.rain_probability}%\n"
        f"AQI Index: {snapshot.aqi.score}, UV Index: {snapshot.uv_index}\n\n"
        "Provide weather insights in a human, calm, and trusted tone.\n"
        f"Write the response entirely in the language with ISO 639-1 code '{language}'.\n\n"
        "1. human_insight: A friendly observation about the day.\n"
        "2. health_suggestion: A suggestion based on UV, AQI, or temperature.\n"
        "3. travel_warning: If rain chance is high or wind is strong, provide a subtle warning.\n"
    )


class GeminiInsightClient:
    """Insight provider backed by the Gemini generateContent REST endpoint."""

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.url = f"{base_url}/{model}:generateContent"
        self.client = httpx.AsyncClient(transport=transport)

    async def generate(self, snapshot: WeatherSnapshot, language: str) -> AIInsights:
        """Ask the model for insights, DEFAULT_INSIGHTS on any failure."""
        if not self.api_key:
            logger.warning("No Gemini API key configured, using default insights")
            return DEFAULT_INSIGHTS

        payload = {
            "contents": [{"parts": [{"text": build_prompt(snapshot, language)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

        try:
            response = await self.client.post(
                self.url, json=payload, headers={"x-goog-api-key": self.api_key}
            )
            response.raise_for_status()
            text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
            if not text:
                raise ValueError("No response from AI")
            return AIInsights.model_validate_json(text)

        except (httpx.HTTPError, ValidationError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning(f"AI insight error: {e}")
            return DEFAULT_INSIGHTS

    async def aclose(self):
        await self.client.aclose()


class SafeInsights:
    """Wraps any insight provider so that a failure always yields DEFAULT_INSIGHTS."""

    def __init__(self, provider: Optional[InsightProvider] = None):
        self.provider = provider

    async def generate(self, snapshot: WeatherSnapshot, language: str) -> AIInsights:
        if self.provider is None:
            return DEFAULT_INSIGHTS
        try:
            return await self.provider.generate(snapshot, language)
        except Exception as e:
            logger.warning(f"Insight provider failed for {snapshot.city}: {e}")
            return DEFAULT_INSIGHTS
