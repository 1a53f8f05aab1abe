"""Air quality classification."""

from typing import Final, NamedTuple, Optional, Tuple

from atmosphere.weather.models import AirQualityRecord, PollutantPanel, PollutantReadings
from atmosphere.weather.rounding import round_half_up


class AQIBand(NamedTuple):
    """Classification band; applies to scores strictly above `lower`."""
    lower: int
    label: str
    color: str
    description: str


# Ordered from most to least severe, the first band whose lower bound
# the score exceeds wins.
AQI_BANDS: Final[Tuple[AQIBand, ...]] = (
    AQIBand(
        300, "Hazardous", "#7f1d1d",
        "Health warning of emergency conditions: everyone is more likely to be affected."
    ),
    AQIBand(
        200, "Very Unhealthy", "#6b21a8",
        "Health alert: The risk of health effects is increased for everyone."
    ),
    AQIBand(
        150, "Unhealthy", "#ef4444",
        "Everyone may experience health effects; sensitive groups more so."
    ),
    AQIBand(
        100, "Sensitive Risk", "#f97316",
        "Members of sensitive groups may experience health effects."
    ),
    AQIBand(
        50, "Moderate", "#eab308",
        "Air quality is acceptable. However, there may be a risk for some people."
    ),
)

GOOD_BAND: Final[AQIBand] = AQIBand(
    0, "Good", "#10b981",
    "Air quality is satisfactory, and air pollution poses little or no risk."
)


def classify_score(score: float) -> AQIBand:
    """Return the band for an AQI score."""
    for band in AQI_BANDS:
        if score > band.lower:
            return band
    return GOOD_BAND


def normalize_pollutants(readings: Optional[PollutantReadings]) -> PollutantPanel:
    """Map provider pollutant names onto the panel, missing readings become 0."""
    if readings is None:
        return PollutantPanel()

    return PollutantPanel(
        pm2_5=readings.pm2_5 or 0,
        pm10=readings.pm10 or 0,
        no2=readings.nitrogen_dioxide or 0,
        so2=readings.sulphur_dioxide or 0,
        o3=readings.ozone or 0,
        co=readings.carbon_monoxide or 0,
    )


def classify_air_quality(
    score: Optional[float],
    readings: Optional[PollutantReadings] = None
) -> AirQualityRecord:
    """Build the air quality record for a score and its pollutant readings.

    Args:
        score: US AQI score, None is treated as 0
        readings: Raw pollutant readings from the provider

    Returns:
        AirQualityRecord with label, color, description and pollutant panel
    """
    value = round_half_up(score or 0)
    band = classify_score(value)
    return AirQualityRecord(
        score=value,
        label=band.label,
        color=band.color,
        description=band.description,
        pollutants=normalize_pollutants(readings),
    )
