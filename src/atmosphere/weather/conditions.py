"""Translation of WMO weather codes into semantic conditions."""

from typing import Dict, Final

DEFAULT_CONDITION: Final[str] = "Clear"

WMO_CONDITIONS: Final[Dict[int, str]] = {
    0: "Clear",
    1: "Partly Cloudy",
    2: "Cloudy",
    3: "Overcast",
    45: "Mist",
    48: "Mist",
    51: "Drizzle",
    61: "Rain",
    63: "Rain",
    65: "Heavy Rain",
    71: "Snow",
    73: "Snow",
    75: "Heavy Snow",
    80: "Showers",
    81: "Showers",
    82: "Heavy Showers",
    95: "Storm",
    96: "Storm",
    99: "Storm",
}


def translate_condition(code: int) -> str:
    """Map a WMO weather code to its condition label, "Clear" when unknown."""
    return WMO_CONDITIONS.get(code, DEFAULT_CONDITION)
