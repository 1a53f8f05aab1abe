"""Main FastAPI application for the Atmosphere weather service."""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from atmosphere.api.endpoints import router as weather_router
from atmosphere.config import HOST, PORT, DEBUG, REDIS_URL, CACHE_PREFIX, STORE_BACKEND
from atmosphere.logging_config import configure_logging
from atmosphere.storage import (
    FavoritesRepository, InMemoryStore, KeyValueStore, RedisStore, SnapshotCache
)
from atmosphere.weather.client import OpenMeteoClient
from atmosphere.weather.geocoding import LocationResolver
from atmosphere.weather.insights import GeminiInsightClient
from atmosphere.weather.service import ForecastAggregator
from atmosphere.weather.session import WeatherSession

configure_logging()
logger = logging.getLogger(__name__)


def create_store(backend: str = STORE_BACKEND) -> KeyValueStore:
    """Create the key-value store for the configured backend."""
    if backend == "redis":
        logger.info(f"Connecting to Redis at {REDIS_URL}")
        return RedisStore(redis.from_url(REDIS_URL), prefix=CACHE_PREFIX)
    if backend != "memory":
        logger.warning(f"Unknown store backend '{backend}', using in-memory store")
    return InMemoryStore()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the weather session unless one was injected into create_app.
    """
    store = None
    insight_client = None
    owns_session = getattr(app.state, "session", None) is None

    try:
        if owns_session:
            store = create_store()
            insight_client = GeminiInsightClient()
            aggregator = ForecastAggregator(
                client=OpenMeteoClient(),
                resolver=LocationResolver(),
                cache=SnapshotCache(store)
            )
            app.state.session = WeatherSession(aggregator, insights=insight_client)
            app.state.favorites = FavoritesRepository(store)
            logger.info(f"Weather session initialized with {type(store).__name__}")

        logger.info("Starting Atmosphere Weather Service")
        yield
    except Exception as e:
        logger.error(f"Startup error: {e}")
        logger.error(traceback.format_exc())
        raise
    finally:
        logger.info("Shutting down Atmosphere Weather Service")
        if owns_session:
            try:
                if getattr(app.state, "session", None) is not None:
                    await app.state.session.aclose()
                if insight_client is not None:
                    await insight_client.aclose()
                if isinstance(store, RedisStore):
                    await store.close()
            except Exception as e:
                logger.error(f"Shutdown error: {e}")


def create_app(
    session: Optional[WeatherSession] = None,
    favorites: Optional[FavoritesRepository] = None
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        session: Prebuilt weather session, the lifespan builds one if None
        favorites: Favorites repository used together with `session`

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Atmosphere Weather Service",
        description="Consolidated weather, air quality and forecast snapshots from Open-Meteo",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    if session is not None:
        app.state.session = session
        app.state.favorites = favorites or FavoritesRepository(InMemoryStore())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(weather_router)

    @app.get("/", tags=["root"])
    async def api_info() -> dict:
        """API information endpoint.

        Returns:
            Basic service information
        """
        return {
            "message": "Atmosphere Weather Service",
            "docs": "/docs",
            "redoc": "/redoc",
            "weather": "/weather",
            "health": "/weather/health"
        }

    return app


# Create app instance for uvicorn
app = create_app()


def main() -> None:
    """Main entry point for the application."""
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        "atmosphere.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level="info" if not DEBUG else "debug"
    )


if __name__ == "__main__":
    main()
