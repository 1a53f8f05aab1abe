"""Location resolution through the Nominatim geocoding service."""

import asyncio
import logging
from typing import Any, Optional

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable
from geopy.geocoders import Nominatim
from geopy.location import Location

from atmosphere.config import USER_AGENT, DEFAULT_LOCATION_NAME, REVERSE_GEOCODING_ZOOM
from atmosphere.weather.errors import DataSyncFailure, LocationNotFound
from atmosphere.weather.models import LocationResolution

logger = logging.getLogger(__name__)


def _short_name(display_name: str) -> str:
    """First comma-delimited segment of a Nominatim display name."""
    return display_name.split(",")[0].strip()


def _country_code(address: dict) -> str:
    code = (address.get("country_code") or "").upper()
    if len(code) == 2 and code.isalpha():
        return code
    return ""


class LocationResolver:
    """Forward and reverse geocoding.

    Forward lookups fail loudly, reverse lookups never raise and fall
    back to the caller's name.
    """

    def __init__(self, geolocator: Optional[Any] = None):
        """Initialize the resolver.

        Args:
            geolocator: geopy geocoder instance (creates Nominatim if None)
        """
        self.geolocator = geolocator or Nominatim(user_agent=USER_AGENT)
        logger.info(f"LocationResolver initialized with {type(self.geolocator).__name__}")

    async def forward(self, query: str) -> LocationResolution:
        """Resolve a place name to coordinates using the first ranked result.

        Args:
            query: Free-text place name

        Returns:
            LocationResolution for the best match

        Raises:
            LocationNotFound: If the provider has no candidates
            DataSyncFailure: If the provider cannot be reached or rejects the query
        """
        try:
            logger.info(f"Geocoding place: {query}")
            location: Optional[Location] = await asyncio.to_thread(
                self.geolocator.geocode, query, exactly_one=True, addressdetails=True
            )
        except (GeocoderUnavailable, GeocoderTimedOut, GeocoderServiceError) as e:
            logger.error(f"Geocoding service unavailable for '{query}': {e}")
            raise DataSyncFailure("Geocoding service temporarily unavailable") from e
        except Exception as e:
            logger.error(f"Unexpected geocoding error for '{query}': {e}")
            raise DataSyncFailure(f"Geocoding failed for '{query}'") from e

        if not location:
            raise LocationNotFound(f"Place '{query}' not found")

        address = (location.raw or {}).get("address") or {}
        resolution = LocationResolution(
            city=_short_name(location.address),
            country=_country_code(address),
            lat=location.latitude,
            lon=location.longitude,
        )
        logger.info(f"Geocoded '{query}' to ({resolution.lat}, {resolution.lon})")
        return resolution

    async def reverse(
        self,
        lat: float,
        lon: float,
        fallback_name: Optional[str] = None
    ) -> LocationResolution:
        """Resolve coordinates to a display name and country code.

        A caller-supplied name takes precedence over the reverse-geocoded
        one. Any failure yields the fallback name and an empty country.

        Args:
            lat: Latitude
            lon: Longitude
            fallback_name: Name the caller already knows for this place

        Returns:
            LocationResolution, never raises
        """
        fallback = LocationResolution(
            city=fallback_name or DEFAULT_LOCATION_NAME, country="", lat=lat, lon=lon
        )

        try:
            location: Optional[Location] = await asyncio.to_thread(
                self.geolocator.reverse, (lat, lon), exactly_one=True, zoom=REVERSE_GEOCODING_ZOOM
            )
        except Exception as e:
            logger.warning(f"Reverse geocoding failed for ({lat}, {lon}): {e}")
            return fallback

        if not location:
            logger.info(f"No reverse geocoding result for ({lat}, {lon})")
            return fallback

        try:
            address = (location.raw or {}).get("address") or {}
            city = fallback_name or address.get("city") or address.get("town") or _short_name(location.address)
            resolution = LocationResolution(
                city=city or fallback.city,
                country=_country_code(address),
                lat=lat,
                lon=lon,
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Malformed reverse geocoding result for ({lat}, {lon}): {e}")
            return fallback

        logger.info(f"Reverse geocoded ({lat}, {lon}) to '{resolution.city}' ({resolution.country})")
        return resolution
