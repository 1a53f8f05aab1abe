from datetime import date, datetime, timedelta

import httpx
import pytest
from geopy.location import Location

from atmosphere.storage import InMemoryStore, SnapshotCache
from atmosphere.weather.air_quality import classify_air_quality
from atmosphere.weather.client import OpenMeteoClient
from atmosphere.weather.geocoding import LocationResolver
from atmosphere.weather.models import DailyPoint, HourlyPoint, WeatherSnapshot
from atmosphere.weather.service import ForecastAggregator

FORECAST_HOST = "api.open-meteo.com"
AIR_QUALITY_HOST = "air-quality-api.open-meteo.com"
FIRST_DAY = date(2026, 10, 17)  # a Saturday


@pytest.fixture
def anyio_backend():
    return "asyncio"


def forecast_payload(code=3, hours=48, days=7, temp=17.6):
    start = datetime(2026, 10, 17, 0, 0)
    day_list = [(FIRST_DAY + timedelta(days=i)).isoformat() for i in range(days)]
    return {
        "latitude": 48.86,
        "longitude": 2.34,
        "current": {
            "time": "2026-10-17T14:00",
            "temperature_2m": temp,
            "relative_humidity_2m": 71,
            "apparent_temperature": 16.4,
            "is_day": 1,
            "precipitation": 0.0,
            "weather_code": code,
            "wind_speed_10m": 12.3,
            "surface_pressure": 1012.6,
        },
        "hourly": {
            "time": [(start + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M") for i in range(hours)],
            "temperature_2m": [10.4 + (i % 10) * 0.5 for i in range(hours)],
            "weather_code": [61 if i % 2 else 0 for i in range(hours)],
        },
        "daily": {
            "time": day_list,
            "weather_code": [code] + [95] * (days - 1),
            "temperature_2m_max": [19.6] + [20.2] * (days - 1),
            "temperature_2m_min": [9.4] + [8.5] * (days - 1),
            "uv_index_max": [3.1] + [None] * (days - 1),
            "precipitation_probability_max": [40] + [None] * (days - 1),
        },
    }


def air_quality_payload(score=42, **overrides):
    current = {
        "time": "2026-10-17T14:00",
        "us_aqi": score,
        "pm2_5": 8.1,
        "pm10": 14.0,
        "nitrogen_dioxide": 21.5,
        "sulphur_dioxide": 1.2,
        "ozone": 60.3,
        "carbon_monoxide": 180.0,
    }
    current.update(overrides)
    return {"latitude": 48.86, "longitude": 2.34, "current": current}


def provider_transport(forecast=None, air_quality=None, forecast_status=200, air_quality_status=200):
    """MockTransport answering both Open-Meteo hosts."""
    forecast = forecast_payload() if forecast is None else forecast
    air_quality = air_quality_payload() if air_quality is None else air_quality

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == FORECAST_HOST:
            return httpx.Response(forecast_status, json=forecast)
        if request.url.host == AIR_QUALITY_HOST:
            return httpx.Response(air_quality_status, json=air_quality)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def paris_location():
    return Location(
        "Paris, Île-de-France, France métropolitaine, France",
        (48.8588897, 2.320041),
        {
            "display_name": "Paris, Île-de-France, France métropolitaine, France",
            "address": {"city": "Paris", "country": "France", "country_code": "fr"},
        },
    )


class FakeGeolocator:
    """Stands in for geopy's Nominatim."""

    def __init__(self, forward=None, reverse=None, forward_error=None, reverse_error=None):
        self.forward_result = forward
        self.reverse_result = reverse
        self.forward_error = forward_error
        self.reverse_error = reverse_error
        self.forward_queries = []
        self.reverse_queries = []

    def geocode(self, query, exactly_one=True, addressdetails=False):
        self.forward_queries.append(query)
        if self.forward_error:
            raise self.forward_error
        return self.forward_result

    def reverse(self, query, exactly_one=True, zoom=None):
        self.reverse_queries.append(query)
        if self.reverse_error:
            raise self.reverse_error
        return self.reverse_result


def make_aggregator(transport=None, geolocator=None, store=None):
    client = OpenMeteoClient(transport=transport or provider_transport())
    resolver = LocationResolver(geolocator=geolocator or FakeGeolocator(forward=paris_location(), reverse=paris_location()))
    cache = SnapshotCache(store) if store is not None else None
    return ForecastAggregator(client=client, resolver=resolver, cache=cache)


def make_snapshot(city="Paris", country="FR", score=42):
    return WeatherSnapshot(
        city=city,
        country=country,
        temp=18,
        feels_like=16,
        high=20,
        low=9,
        condition="Overcast",
        humidity=71,
        wind_speed=12.3,
        pressure=1013,
        uv_index=3.1,
        rain_probability=40,
        visibility=10,
        sunrise="06:00",
        sunset="20:00",
        aqi=classify_air_quality(score),
        hourly=[HourlyPoint(time="14:00", temp=18, condition="Overcast")],
        daily=[DailyPoint(day="Today", min=9, max=20, condition="Overcast", rain_probability=40)],
    )


@pytest.fixture
def store():
    return InMemoryStore()
