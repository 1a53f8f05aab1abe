import asyncio

import anyio
import httpx
import pytest

from atmosphere.storage import snapshot_cache_key
from atmosphere.weather.errors import DataSyncFailure, LocationNotFound

from conftest import (
    AIR_QUALITY_HOST, FakeGeolocator, air_quality_payload, forecast_payload,
    make_aggregator, paris_location, provider_transport
)


@pytest.mark.anyio
async def test_paris_scenario():
    geolocator = FakeGeolocator(forward=paris_location(), reverse=paris_location())
    aggregator = make_aggregator(
        transport=provider_transport(forecast_payload(code=3), air_quality_payload(score=42)),
        geolocator=geolocator
    )

    snapshot = await aggregator.fetch_snapshot_for_place("Paris")

    assert snapshot.condition == "Overcast"
    assert snapshot.aqi.label == "Good"
    assert snapshot.aqi.score == 42
    assert snapshot.city == "Paris"
    assert snapshot.country == "FR"
    assert geolocator.forward_queries == ["Paris"]


@pytest.mark.anyio
async def test_headline_fields():
    aggregator = make_aggregator()

    snapshot = await aggregator.fetch_snapshot(48.86, 2.34)

    assert snapshot.temp == 18
    assert snapshot.feels_like == 16
    assert snapshot.high == 20
    assert snapshot.low == 9
    assert snapshot.humidity == 71
    assert snapshot.wind_speed == 12.3
    assert snapshot.pressure == 1013
    assert snapshot.uv_index == 3.1
    assert snapshot.rain_probability == 40
    assert (snapshot.sunrise, snapshot.sunset, snapshot.visibility) == ("06:00", "20:00", 10)
    assert snapshot.aqi.pollutants.no2 == 21.5


@pytest.mark.anyio
async def test_hourly_is_capped_at_24():
    aggregator = make_aggregator(transport=provider_transport(forecast_payload(hours=72)))

    snapshot = await aggregator.fetch_snapshot(48.86, 2.34)

    assert len(snapshot.hourly) == 24
    assert snapshot.hourly[0].time == "00:00"
    assert snapshot.hourly[13].time == "13:00"
    assert snapshot.hourly[0].temp == 10
    assert snapshot.hourly[0].condition == "Clear"
    assert snapshot.hourly[1].condition == "Rain"


@pytest.mark.anyio
async def test_short_hourly_is_kept():
    aggregator = make_aggregator(transport=provider_transport(forecast_payload(hours=5)))

    snapshot = await aggregator.fetch_snapshot(48.86, 2.34)

    assert len(snapshot.hourly) == 5


@pytest.mark.anyio
async def test_daily_labels():
    aggregator = make_aggregator()

    snapshot = await aggregator.fetch_snapshot(48.86, 2.34)

    days = [d.day for d in snapshot.daily]
    # 2026-10-17 is a Saturday, but the first day is always "Today"
    assert days == ["Today", "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    assert snapshot.daily[0].rain_probability == 40
    assert snapshot.daily[1].rain_probability == 0
    assert snapshot.daily[1].condition == "Storm"
    assert (snapshot.daily[1].min, snapshot.daily[1].max) == (9, 20)


@pytest.mark.anyio
async def test_missing_pollutants_in_response():
    payload = {"current": {"us_aqi": 160}}
    aggregator = make_aggregator(transport=provider_transport(air_quality=payload))

    snapshot = await aggregator.fetch_snapshot(48.86, 2.34)

    assert snapshot.aqi.label == "Unhealthy"
    assert snapshot.aqi.pollutants.pm2_5 == 0
    assert snapshot.aqi.pollutants.co == 0


@pytest.mark.anyio
@pytest.mark.parametrize("forecast_status, air_quality_status", [(200, 500), (502, 200), (500, 500)])
async def test_failed_primary_request_is_data_sync_failure(forecast_status, air_quality_status, store):
    aggregator = make_aggregator(
        transport=provider_transport(forecast_status=forecast_status, air_quality_status=air_quality_status),
        store=store
    )

    with pytest.raises(DataSyncFailure):
        await aggregator.fetch_snapshot(48.86, 2.34)

    await aggregator.aclose()
    assert await store.get(snapshot_cache_key("Paris")) is None


@pytest.mark.anyio
async def test_transport_error_is_data_sync_failure():
    def handler(request):
        if request.url.host == AIR_QUALITY_HOST:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=forecast_payload())

    aggregator = make_aggregator(transport=httpx.MockTransport(handler))

    with pytest.raises(DataSyncFailure):
        await aggregator.fetch_snapshot(48.86, 2.34)


@pytest.mark.anyio
async def test_reverse_geocoding_failure_does_not_fail_snapshot():
    geolocator = FakeGeolocator(reverse_error=RuntimeError("nominatim down"))
    aggregator = make_aggregator(geolocator=geolocator)

    snapshot = await aggregator.fetch_snapshot(48.86, 2.34, name="Home")

    assert snapshot.city == "Home"
    assert snapshot.country == ""


@pytest.mark.anyio
async def test_unknown_place_raises_not_found():
    aggregator = make_aggregator(geolocator=FakeGeolocator(forward=None))

    with pytest.raises(LocationNotFound):
        await aggregator.resolve(city="Nowhereville")


@pytest.mark.anyio
async def test_resolve_without_location_uses_default_city():
    geolocator = FakeGeolocator(forward=paris_location(), reverse=paris_location())
    aggregator = make_aggregator(geolocator=geolocator)

    await aggregator.resolve()

    assert geolocator.forward_queries == ["San Francisco"]


@pytest.mark.anyio
async def test_primary_requests_run_concurrently():
    air_quality_started = asyncio.Event()

    async def handler(request):
        if request.url.host == AIR_QUALITY_HOST:
            air_quality_started.set()
            return httpx.Response(200, json=air_quality_payload())
        # Only completes if the air-quality request is already in flight
        await air_quality_started.wait()
        return httpx.Response(200, json=forecast_payload())

    aggregator = make_aggregator(transport=httpx.MockTransport(handler))

    with anyio.fail_after(5):
        snapshot = await aggregator.fetch_snapshot(48.86, 2.34)

    assert snapshot.condition == "Overcast"


@pytest.mark.anyio
async def test_snapshot_is_written_to_cache(store):
    aggregator = make_aggregator(store=store)

    snapshot = await aggregator.fetch_snapshot(48.86, 2.34)
    await aggregator.aclose()

    entry = await store.get("weather_paris")
    assert entry["data"]["city"] == snapshot.city
    assert entry["data"]["aqi"]["label"] == "Good"
    assert isinstance(entry["timestamp"], int)


@pytest.mark.anyio
async def test_cache_failure_is_not_reported():
    class BrokenStore:
        async def get(self, key):
            return None

        async def set(self, key, value):
            raise ConnectionError("redis down")

    aggregator = make_aggregator(store=BrokenStore())

    snapshot = await aggregator.fetch_snapshot(48.86, 2.34)
    await aggregator.aclose()

    assert snapshot.city == "Paris"


@pytest.mark.anyio
@pytest.mark.parametrize("block, field", [
    ("hourly", "temperature_2m"),
    ("hourly", "weather_code"),
    ("daily", "temperature_2m_min"),
    ("daily", "precipitation_probability_max"),
])
async def test_uneven_parallel_arrays_are_data_sync_failure(block, field):
    payload = forecast_payload(hours=24)
    payload[block][field] = payload[block][field][:3]
    aggregator = make_aggregator(transport=provider_transport(forecast=payload))

    with pytest.raises(DataSyncFailure):
        await aggregator.fetch_snapshot(48.86, 2.34)
