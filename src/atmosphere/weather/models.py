"""Data models for the weather snapshot pipeline."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LocationResolution(BaseModel):
    """Resolved location produced by the geocoding provider."""
    city: str = Field(..., description="Display name of the place")
    country: str = Field("", description="Two-letter country code or empty")
    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lon: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")


class PollutantPanel(BaseModel):
    """Normalized pollutant concentrations."""
    model_config = ConfigDict(frozen=True)

    pm2_5: float = 0
    pm10: float = 0
    no2: float = 0
    so2: float = 0
    o3: float = 0
    co: float = 0


class AirQualityRecord(BaseModel):
    """Classified air quality reading."""
    model_config = ConfigDict(frozen=True)

    score: int = Field(..., description="US AQI score")
    label: str
    color: str = Field(..., description="Severity color as hex string")
    description: str
    pollutants: PollutantPanel


class HourlyPoint(BaseModel):
    """One hour of the forecast."""
    model_config = ConfigDict(frozen=True)

    time: str = Field(..., description="Local time in HH:MM format")
    temp: int
    condition: str


class DailyPoint(BaseModel):
    """One day of the forecast."""
    model_config = ConfigDict(frozen=True)

    day: str = Field(..., description="'Today' or a weekday name")
    min: int
    max: int
    condition: str
    rain_probability: int = Field(..., description="Max precipitation probability in percent")


class WeatherSnapshot(BaseModel):
    """Consolidated weather for one location."""
    model_config = ConfigDict(frozen=True)

    city: str
    country: str = Field("", pattern=r"^([A-Z]{2})?$")
    temp: int
    feels_like: int
    high: int
    low: int
    condition: str
    humidity: int
    wind_speed: float
    pressure: int
    uv_index: float
    rain_probability: int
    visibility: int
    sunrise: str
    sunset: str
    aqi: AirQualityRecord
    hourly: List[HourlyPoint] = Field(..., max_length=24)
    daily: List[DailyPoint]


class AIInsights(BaseModel):
    """Short narrative texts generated for a snapshot."""
    human_insight: str
    health_suggestion: str
    travel_warning: str


class FavoriteLocation(BaseModel):
    """Saved favorite place."""
    city: str
    country: str = ""


class ForecastCurrent(BaseModel):
    """Current-conditions block of the forecast response."""
    temperature_2m: float
    relative_humidity_2m: float
    apparent_temperature: float
    weather_code: int
    wind_speed_10m: float
    surface_pressure: float


def _check_parallel_arrays(block: BaseModel) -> None:
    """Raise if the parallel arrays of a forecast block differ in length."""
    lengths = {name: len(values) for name, values in block}
    if len(set(lengths.values())) > 1:
        raise ValueError(f"Parallel arrays differ in length: {lengths}")


class ForecastHourly(BaseModel):
    """Hourly block of the forecast response, parallel arrays."""
    time: List[str]
    temperature_2m: List[float]
    weather_code: List[int]

    @model_validator(mode="after")
    def check_lengths(self) -> "ForecastHourly":
        _check_parallel_arrays(self)
        return self


class ForecastDaily(BaseModel):
    """Daily block of the forecast response, parallel arrays."""
    time: List[str] = Field(..., min_length=1)
    weather_code: List[int]
    temperature_2m_max: List[float]
    temperature_2m_min: List[float]
    uv_index_max: List[Optional[float]]
    precipitation_probability_max: List[Optional[int]]

    @model_validator(mode="after")
    def check_lengths(self) -> "ForecastDaily":
        _check_parallel_arrays(self)
        return self


class ForecastResponse(BaseModel):
    """Raw response from the Open-Meteo forecast API."""
    current: ForecastCurrent
    hourly: ForecastHourly
    daily: ForecastDaily


class PollutantReadings(BaseModel):
    """Raw air-quality current block, every reading optional."""
    us_aqi: Optional[float] = None
    pm2_5: Optional[float] = None
    pm10: Optional[float] = None
    nitrogen_dioxide: Optional[float] = None
    sulphur_dioxide: Optional[float] = None
    ozone: Optional[float] = None
    carbon_monoxide: Optional[float] = None


class AirQualityResponse(BaseModel):
    """Raw response from the Open-Meteo air-quality API."""
    current: Optional[PollutantReadings] = None
