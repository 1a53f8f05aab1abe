"""Configuration settings for the Atmosphere weather service."""

import os
from typing import Final
from dotenv import load_dotenv

load_dotenv()

# Provider configuration
FORECAST_API_URL: Final[str] = "https://api.open-meteo.com/v1/forecast"
AIR_QUALITY_API_URL: Final[str] = "https://air-quality-api.open-meteo.com/v1/air-quality"
USER_AGENT: Final[str] = "AtmosphereWeatherApp/2.0"

FORECAST_CURRENT_FIELDS: Final[str] = (
    "temperature_2m,relative_humidity_2m,apparent_temperature,is_day,"
    "precipitation,weather_code,wind_speed_10m,surface_pressure"
)
FORECAST_HOURLY_FIELDS: Final[str] = "temperature_2m,weather_code"
FORECAST_DAILY_FIELDS: Final[str] = (
    "weather_code,temperature_2m_max,temperature_2m_min,"
    "uv_index_max,precipitation_probability_max"
)
AIR_QUALITY_CURRENT_FIELDS: Final[str] = (
    "us_aqi,pm2_5,pm10,nitrogen_dioxide,sulphur_dioxide,ozone,carbon_monoxide"
)

# Geocoding
REVERSE_GEOCODING_ZOOM: Final[int] = 12
DEFAULT_LOCATION_NAME: Final[str] = "My Location"
DEFAULT_CITY: str = os.getenv("DEFAULT_CITY", "San Francisco")

# Server configuration
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Key-value store configuration
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory").lower()
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
CACHE_PREFIX: str = os.getenv("CACHE_PREFIX", "atmosphere")

# AI insights
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
GEMINI_API_URL: str = os.getenv(
    "GEMINI_API_URL",
    "https://generativelanguage.googleapis.com/v1beta/models"
)
DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "en")
