"""Key-value persistence for cached snapshots and favorites."""

import copy
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

import redis.asyncio as redis

from atmosphere.config import CACHE_PREFIX
from atmosphere.weather.models import FavoriteLocation, WeatherSnapshot

logger = logging.getLogger(__name__)

FAVORITES_KEY = "favorites"


class KeyValueStore(Protocol):
    """Async key-value store holding JSON-compatible values."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def update(self, key: str, fn: Callable[[Optional[Any]], Any]) -> Any:
        """Replace the value with fn(current value) atomically and return the new value."""
        ...


class InMemoryStore:
    """Dict-backed store for local runs and tests."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def update(self, key: str, fn: Callable[[Optional[Any]], Any]) -> Any:
        # No await between read and write, so concurrent updates cannot interleave
        value = fn(copy.deepcopy(self._data.get(key)))
        self._data[key] = copy.deepcopy(value)
        return copy.deepcopy(value)


class RedisStore:
    """Store backed by Redis, values are kept as JSON strings."""

    def __init__(self, redis_client: redis.Redis, prefix: str = CACHE_PREFIX):
        """Initialize the store.

        Args:
            redis_client: Async Redis client
            prefix: Prefix added to every key
        """
        self.redis_client = redis_client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.redis_client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        await self.redis_client.set(self._key(key), json.dumps(value))

    async def update(self, key: str, fn: Callable[[Optional[Any]], Any]) -> Any:
        """Read-modify-write under WATCH/MULTI, retried when another writer gets in first.

        Args:
            key: Store key
            fn: Pure function from the current value (None if missing) to the new one

        Returns:
            The value that was written
        """
        redis_key = self._key(key)

        async def apply(pipe) -> Any:
            raw = await pipe.get(redis_key)
            value = fn(None if raw is None else json.loads(raw))
            pipe.multi()
            pipe.set(redis_key, json.dumps(value))
            return value

        return await self.redis_client.transaction(apply, redis_key, value_from_callable=True)

    async def close(self):
        """Close Redis connection."""
        await self.redis_client.aclose()


def snapshot_cache_key(city: str) -> str:
    return f"weather_{city.lower()}"


class SnapshotCache:
    """Write-only snapshot cache keyed by the lowercased city name."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def write(self, snapshot: WeatherSnapshot) -> None:
        """Store the snapshot together with the write time in epoch milliseconds."""
        key = snapshot_cache_key(snapshot.city)
        await self.store.set(key, {
            "data": snapshot.model_dump(mode="json"),
            "timestamp": int(time.time() * 1000),
        })
        logger.debug(f"Cached snapshot under '{key}'")


class FavoritesRepository:
    """Favorite places stored as a single list."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get_all(self) -> List[FavoriteLocation]:
        return _parse_favorites(await self.store.get(FAVORITES_KEY))

    async def toggle(self, city: str, country: str = "") -> List[FavoriteLocation]:
        """Remove the city if it is a favorite, add it otherwise.

        The change is applied through a single atomic store update, so
        concurrent toggles of different cities are all kept.

        Returns:
            The updated favorites list
        """
        def flip(raw: Optional[Any]) -> List[dict]:
            favorites = _parse_favorites(raw)
            if any(f.city == city for f in favorites):
                favorites = [f for f in favorites if f.city != city]
            else:
                favorites.append(FavoriteLocation(city=city, country=country))
            return [f.model_dump() for f in favorites]

        favorites = _parse_favorites(await self.store.update(FAVORITES_KEY, flip))
        if any(f.city == city for f in favorites):
            logger.info(f"Added '{city}' to favorites")
        else:
            logger.info(f"Removed '{city}' from favorites")
        return favorites


def _parse_favorites(raw: Optional[Any]) -> List[FavoriteLocation]:
    favorites = []
    for entry in raw or []:
        try:
            favorites.append(FavoriteLocation.model_validate(entry))
        except ValueError as e:
            logger.warning(f"Skipping malformed favorite {entry!r}: {e}")
    return favorites
