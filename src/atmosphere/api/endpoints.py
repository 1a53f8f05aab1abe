"""API endpoints for the Atmosphere weather service."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from atmosphere.config import DEFAULT_CITY, DEFAULT_LANGUAGE
from atmosphere.storage import FavoritesRepository
from atmosphere.weather.errors import DataSyncFailure, LocationNotFound
from atmosphere.weather.models import AIInsights, FavoriteLocation, WeatherSnapshot
from atmosphere.weather.session import WeatherSession

logger = logging.getLogger(__name__)

# Single user-facing message for every provider failure
SYNC_ERROR_MESSAGE = "Unable to load weather data right now. Please try again."

router = APIRouter(prefix="/weather", tags=["weather"])


class FavoriteToggle(BaseModel):
    """Request body for toggling a favorite."""
    city: str
    country: str = ""


def get_session(request: Request) -> WeatherSession:
    """Dependency returning the application's weather session."""
    return request.app.state.session


def get_favorites(request: Request) -> FavoritesRepository:
    """Dependency returning the favorites repository."""
    return request.app.state.favorites


@router.get("/", response_model=WeatherSnapshot)
async def get_weather(
    lat: Optional[float] = Query(
        None,
        ge=-90,
        le=90,
        description="Latitude in decimal degrees (use with lon)"
    ),
    lon: Optional[float] = Query(
        None,
        ge=-180,
        le=180,
        description="Longitude in decimal degrees (use with lat)"
    ),
    city: Optional[str] = Query(
        None,
        min_length=1,
        description="Place name (alternative to lat/lon, not both)"
    ),
    session: WeatherSession = Depends(get_session)
) -> WeatherSnapshot:
    """Get the consolidated weather snapshot for a location.

    Args:
        lat: Latitude in decimal degrees (must provide with lon)
        lon: Longitude in decimal degrees (must provide with lat)
        city: Place name as alternative to lat/lon

    Returns:
        WeatherSnapshot for the location

    Raises:
        HTTPException: If parameters are invalid, the place is unknown
            or a provider fails
    """
    validate_weather_parameters(lat, lon, city)

    try:
        snapshot = await session.load(lat=lat, lon=lon, city=city)

    except LocationNotFound as e:
        logger.info(f"Location not found: {e}")
        raise HTTPException(status_code=404, detail=str(e))

    except DataSyncFailure as e:
        logger.error(f"Weather sync failed: {e}")
        raise HTTPException(status_code=502, detail=SYNC_ERROR_MESSAGE)

    logger.info(f"Returning snapshot for {snapshot.city} with {len(snapshot.daily)} days")
    return snapshot


def validate_weather_parameters(
    lat: Optional[float],
    lon: Optional[float],
    city: Optional[str]
) -> None:
    """
    Validate weather request parameters.

    Raises:
        HTTPException: If validation fails
    """
    has_coordinates = lat is not None or lon is not None

    if has_coordinates and city is not None:
        raise HTTPException(
            status_code=400,
            detail="Cannot provide both coordinates and city name. Use either lat/lon OR city."
        )

    if has_coordinates and (lat is None or lon is None):
        raise HTTPException(
            status_code=400,
            detail="Both latitude and longitude must be provided when using coordinates."
        )


@router.get("/current", response_model=WeatherSnapshot)
async def get_current(session: WeatherSession = Depends(get_session)) -> WeatherSnapshot:
    """Return the most recently retained snapshot."""
    if session.snapshot is None:
        raise HTTPException(status_code=404, detail="No weather loaded yet")
    return session.snapshot


@router.get("/insights", response_model=AIInsights)
async def get_insights(
    lang: str = Query(DEFAULT_LANGUAGE, min_length=2, max_length=5, description="Language code"),
    session: WeatherSession = Depends(get_session)
) -> AIInsights:
    """Return AI insights for the retained snapshot."""
    insights = await session.get_insights(lang)
    if insights is None:
        raise HTTPException(status_code=404, detail="No weather loaded yet")
    return insights


@router.get("/favorites", response_model=List[FavoriteLocation])
async def list_favorites(
    favorites: FavoritesRepository = Depends(get_favorites)
) -> List[FavoriteLocation]:
    """List favorite places."""
    return await favorites.get_all()


@router.post("/favorites/toggle", response_model=List[FavoriteLocation])
async def toggle_favorite(
    body: FavoriteToggle,
    favorites: FavoritesRepository = Depends(get_favorites)
) -> List[FavoriteLocation]:
    """Add a place to favorites, or remove it if already there."""
    return await favorites.toggle(body.city, body.country)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Health status response
    """
    return {"status": "healthy", "service": "atmosphere"}


@router.get("/info")
async def get_service_info() -> dict:
    """Get service information."""
    return {
        "service": "Atmosphere Weather Service",
        "version": "0.1.0",
        "default_city": DEFAULT_CITY,
        "features": [
            "Current conditions with 24-hour and daily forecast",
            "Air quality classification",
            "Place search and reverse geocoding",
            "AI weather insights",
        ],
        "data_sources": ["Open-Meteo", "Open-Meteo Air Quality", "OpenStreetMap Nominatim"]
    }
