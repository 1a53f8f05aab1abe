"""Holder of the latest snapshot, guarded against stale responses."""

import itertools
import logging
from typing import Optional

from atmosphere.config import DEFAULT_LANGUAGE
from atmosphere.weather.insights import InsightProvider, SafeInsights
from atmosphere.weather.models import AIInsights, WeatherSnapshot
from atmosphere.weather.service import ForecastAggregator

logger = logging.getLogger(__name__)


class WeatherSession:
    """Keeps the snapshot of the most recently issued request.

    Every load takes a new generation token. A request that completes
    after a newer one was issued still answers its own caller, but a
    slow response never overwrites a newer retained snapshot.
    """

    def __init__(
        self,
        aggregator: ForecastAggregator,
        insights: Optional[InsightProvider] = None
    ):
        self.aggregator = aggregator
        self.insights = SafeInsights(insights)
        self.snapshot: Optional[WeatherSnapshot] = None
        self._generations = itertools.count(1)
        self._latest = 0

    @property
    def generation(self) -> int:
        """Token of the most recently issued request."""
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest

    async def load(
        self,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        city: Optional[str] = None
    ) -> WeatherSnapshot:
        """Fetch a snapshot and retain it if no newer request was issued meanwhile.

        The caller always gets its own snapshot back; the generation token
        only decides whether it replaces `self.snapshot`.

        Returns:
            The fetched snapshot

        Raises:
            LocationNotFound: If the place cannot be geocoded
            DataSyncFailure: If a primary provider fails
        """
        token = next(self._generations)
        self._latest = token
        logger.info(f"Loading weather (generation {token}): lat={lat}, lon={lon}, city={city}")

        snapshot = await self.aggregator.resolve(lat=lat, lon=lon, city=city)

        if self.is_current(token):
            self.snapshot = snapshot
        else:
            logger.info(f"Not retaining stale snapshot for {snapshot.city} (generation {token}, latest {self._latest})")
        return snapshot

    async def get_insights(self, language: str = DEFAULT_LANGUAGE) -> Optional[AIInsights]:
        """Insights for the retained snapshot, None when nothing was loaded yet."""
        if self.snapshot is None:
            return None
        return await self.insights.generate(self.snapshot, language)

    async def aclose(self):
        await self.aggregator.aclose()
