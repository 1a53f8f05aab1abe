"""HTTP client for the Open-Meteo forecast and air-quality APIs."""

import logging
from typing import Any, Dict, Optional

import httpx

from atmosphere.config import (
    FORECAST_API_URL, AIR_QUALITY_API_URL, USER_AGENT,
    FORECAST_CURRENT_FIELDS, FORECAST_HOURLY_FIELDS, FORECAST_DAILY_FIELDS,
    AIR_QUALITY_CURRENT_FIELDS
)
from atmosphere.weather.models import AirQualityResponse, ForecastResponse

logger = logging.getLogger(__name__)


class OpenMeteoClient:
    """Async client for fetching forecast and air-quality data from Open-Meteo."""

    def __init__(
        self,
        forecast_url: str = FORECAST_API_URL,
        air_quality_url: str = AIR_QUALITY_API_URL,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the Open-Meteo client.

        Args:
            forecast_url: Forecast endpoint URL
            air_quality_url: Air-quality endpoint URL
            user_agent: User-Agent header for API requests
            transport: Optional httpx transport (used to stub the network)
        """
        self.forecast_url = forecast_url
        self.air_quality_url = air_quality_url
        self.user_agent = user_agent
        self.client = httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            transport=transport
        )

    async def get_forecast(self, lat: float, lon: float) -> ForecastResponse:
        """Fetch current, hourly and daily forecast for given coordinates.

        Args:
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees

        Returns:
            Validated forecast response

        Raises:
            ValueError: If coordinates are invalid
            httpx.HTTPError: If API request fails
            ValidationError: If response format is invalid
        """
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": FORECAST_CURRENT_FIELDS,
            "hourly": FORECAST_HOURLY_FIELDS,
            "daily": FORECAST_DAILY_FIELDS,
            "timezone": "auto",
        }
        data = await self._get_json(self.forecast_url, params, "forecast")
        forecast = ForecastResponse.model_validate(data)
        logger.info(
            f"Fetched forecast with {len(forecast.hourly.time)} hourly "
            f"and {len(forecast.daily.time)} daily entries"
        )
        return forecast

    async def get_air_quality(self, lat: float, lon: float) -> AirQualityResponse:
        """Fetch current air quality for given coordinates.

        Raises:
            ValueError: If coordinates are invalid
            httpx.HTTPError: If API request fails
            ValidationError: If response format is invalid
        """
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": AIR_QUALITY_CURRENT_FIELDS,
        }
        data = await self._get_json(self.air_quality_url, params, "air-quality")
        return AirQualityResponse.model_validate(data)

    async def _get_json(self, url: str, params: Dict[str, Any], name: str) -> Dict[str, Any]:
        """Run a GET request against one provider and return its JSON body."""
        lat, lon = params["latitude"], params["longitude"]
        if not (-90 <= lat <= 90) or not (-180 <= lon <= 180):
            raise ValueError(f"Invalid coordinates: lat={lat}, lon={lon}")

        logger.info(f"Fetching {name} for lat={lat}, lon={lon}")

        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from {name} API: {e.response.status_code} - {e.response.text}")
            raise
        except httpx.RequestError as e:
            logger.error(f"Request error to {name} API: {e}")
            raise

    async def aclose(self):
        """Close the async HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
