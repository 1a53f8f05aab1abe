"""Forecast aggregation: merges forecast, air quality and geocoding into a snapshot."""

import asyncio
import logging
from datetime import date, datetime
from typing import List, Optional, Set

import httpx
from pydantic import ValidationError

from atmosphere.config import DEFAULT_CITY
from atmosphere.storage import SnapshotCache
from atmosphere.weather.air_quality import classify_air_quality
from atmosphere.weather.client import OpenMeteoClient
from atmosphere.weather.conditions import translate_condition
from atmosphere.weather.errors import DataSyncFailure
from atmosphere.weather.geocoding import LocationResolver
from atmosphere.weather.models import (
    AirQualityResponse, DailyPoint, ForecastDaily, ForecastHourly,
    ForecastResponse, HourlyPoint, LocationResolution, WeatherSnapshot
)
from atmosphere.weather.rounding import round_half_up

logger = logging.getLogger(__name__)

HOURLY_LIMIT = 24
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Not provided by either API
PLACEHOLDER_SUNRISE = "06:00"
PLACEHOLDER_SUNSET = "20:00"
PLACEHOLDER_VISIBILITY = 10


class ForecastAggregator:
    """Builds weather snapshots from the forecast, air-quality and geocoding providers."""

    def __init__(
        self,
        client: Optional[OpenMeteoClient] = None,
        resolver: Optional[LocationResolver] = None,
        cache: Optional[SnapshotCache] = None
    ):
        """Initialize the aggregator.

        Args:
            client: Open-Meteo client instance (creates default if None)
            resolver: Location resolver instance (creates default if None)
            cache: Snapshot cache written after every snapshot, optional
        """
        self.client = client or OpenMeteoClient()
        self.resolver = resolver or LocationResolver()
        self.cache = cache
        self._pending_writes: Set[asyncio.Task] = set()

    async def resolve(
        self,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        city: Optional[str] = None
    ) -> WeatherSnapshot:
        """Get a snapshot for coordinates, a place name, or the default place.

        Coordinates win when both are given; `city` then only serves as
        the display name.

        Raises:
            LocationNotFound: If the place name cannot be geocoded
            DataSyncFailure: If a primary provider fails
        """
        if lat is not None and lon is not None:
            return await self.fetch_snapshot(lat, lon, city)
        return await self.fetch_snapshot_for_place(city or DEFAULT_CITY)

    async def fetch_snapshot_for_place(self, query: str) -> WeatherSnapshot:
        """Geocode a place name and build its snapshot."""
        location = await self.resolver.forward(query)
        return await self.fetch_snapshot(location.lat, location.lon, location.city)

    async def fetch_snapshot(
        self,
        lat: float,
        lon: float,
        name: Optional[str] = None
    ) -> WeatherSnapshot:
        """Build a snapshot for coordinates.

        The forecast and air-quality requests run concurrently with the
        reverse geocoding lookup; the snapshot is assembled once all three
        have settled.

        Args:
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees
            name: Display name already known by the caller

        Returns:
            WeatherSnapshot

        Raises:
            DataSyncFailure: If either primary request fails
        """
        logger.info(f"Building snapshot for lat={lat}, lon={lon}, name={name}")

        forecast, air_quality, location = await asyncio.gather(
            self.client.get_forecast(lat, lon),
            self.client.get_air_quality(lat, lon),
            self.resolver.reverse(lat, lon, fallback_name=name),
            return_exceptions=True
        )

        for result in (forecast, air_quality):
            if isinstance(result, (httpx.HTTPError, ValidationError, ValueError)):
                logger.error(f"Data sync failed for ({lat}, {lon}): {result}")
                raise DataSyncFailure("Data sync failed") from result
            if isinstance(result, BaseException):
                raise result

        if isinstance(location, BaseException):
            # reverse() absorbs its own errors; only cancellation gets here
            raise location

        try:
            snapshot = self._build_snapshot(forecast, air_quality, location)
        except (ValidationError, ValueError, IndexError) as e:
            logger.error(f"Inconsistent provider data for ({lat}, {lon}): {e}")
            raise DataSyncFailure("Data sync failed") from e

        logger.info(f"Built snapshot for {snapshot.city} ({snapshot.condition}, {snapshot.temp}°C)")
        self._schedule_cache_write(snapshot)
        return snapshot

    def _build_snapshot(
        self,
        forecast: ForecastResponse,
        air_quality: AirQualityResponse,
        location: LocationResolution
    ) -> WeatherSnapshot:
        """Merge provider responses into one snapshot."""
        current = forecast.current
        daily = forecast.daily
        readings = air_quality.current

        return WeatherSnapshot(
            city=location.city,
            country=location.country,
            temp=round_half_up(current.temperature_2m),
            feels_like=round_half_up(current.apparent_temperature),
            high=round_half_up(daily.temperature_2m_max[0]),
            low=round_half_up(daily.temperature_2m_min[0]),
            condition=translate_condition(current.weather_code),
            humidity=round_half_up(current.relative_humidity_2m),
            wind_speed=current.wind_speed_10m,
            pressure=round_half_up(current.surface_pressure),
            uv_index=daily.uv_index_max[0] or 0,
            rain_probability=daily.precipitation_probability_max[0] or 0,
            visibility=PLACEHOLDER_VISIBILITY,
            sunrise=PLACEHOLDER_SUNRISE,
            sunset=PLACEHOLDER_SUNSET,
            aqi=classify_air_quality(readings.us_aqi if readings else None, readings),
            hourly=self._build_hourly(forecast.hourly),
            daily=self._build_daily(daily),
        )

    def _build_hourly(self, hourly: ForecastHourly) -> List[HourlyPoint]:
        """Convert the first 24 hourly entries.

        Times are already local because the forecast is requested with
        timezone=auto.
        """
        entries = zip(hourly.time, hourly.temperature_2m, hourly.weather_code)
        points = []
        for timestamp, temperature, code in list(entries)[:HOURLY_LIMIT]:
            points.append(HourlyPoint(
                time=datetime.fromisoformat(timestamp).strftime("%H:%M"),
                temp=round_half_up(temperature),
                condition=translate_condition(code),
            ))
        return points

    def _build_daily(self, daily: ForecastDaily) -> List[DailyPoint]:
        """Convert every daily entry, the first one is always labelled 'Today'."""
        points = []
        for i, day in enumerate(daily.time):
            points.append(DailyPoint(
                day="Today" if i == 0 else WEEKDAY_NAMES[date.fromisoformat(day).weekday()],
                min=round_half_up(daily.temperature_2m_min[i]),
                max=round_half_up(daily.temperature_2m_max[i]),
                condition=translate_condition(daily.weather_code[i]),
                rain_probability=daily.precipitation_probability_max[i] or 0,
            ))
        return points

    def _schedule_cache_write(self, snapshot: WeatherSnapshot) -> None:
        """Write the snapshot to the cache in the background."""
        if self.cache is None:
            return

        task = asyncio.create_task(self.cache.write(snapshot))
        self._pending_writes.add(task)
        task.add_done_callback(self._on_cache_write_done)

    def _on_cache_write_done(self, task: asyncio.Task) -> None:
        self._pending_writes.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Snapshot cache write failed: {error}")

    async def aclose(self):
        """Wait for pending cache writes and close the weather client."""
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)
        if self.client:
            try:
                await self.client.aclose()
            except Exception as e:
                logger.error(f"Error closing weather client: {e}")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        try:
            await self.aclose()
        except Exception as e:
            logger.error(f"Error during aggregator cleanup in __aexit__: {e}")
