import unittest
from unittest.mock import patch

import redis

from luftcheck.config import Settings
from luftcheck.data_sources import CallableForecastDataSource
from luftcheck.domain import Location
from luftcheck.forecast_cache import InMemoryForecastCache
from luftcheck.forecast_service import ForecastService, build_forecast_cache

from forecast_fixtures import DRY, HUMID, make_series

BERLIN_CENTRE = Location(52.52, 13.41)
MUNICH = Location(48.137, 11.575)


class TestForecastService(unittest.TestCase):
    def setUp(self):
        self.calls = []

        def fake_fetch(latitude, longitude, **kwargs):
            self.calls.append((latitude, longitude, kwargs))
            return make_series([HUMID, DRY])

        def fake_geocode(query):
            return Location(48.137, 11.575, display_name=query)

        self.service = ForecastService(
            CallableForecastDataSource(fake_fetch, fake_geocode),
            InMemoryForecastCache(ttl_seconds=600),
            timezone="auto",
            forecast_days=2,
        )

    def test_fetches_once_per_location(self):
        first = self.service.get_series(BERLIN_CENTRE)
        second = self.service.get_series(BERLIN_CENTRE)

        self.assertIs(first, second)
        self.assertEqual(len(self.calls), 1)
        self.assertEqual(self.calls[0][2], {"timezone": "auto", "forecast_days": 2})

    def test_other_location_fetches_separately(self):
        self.service.get_series(BERLIN_CENTRE)
        self.service.get_series(MUNICH)
        self.assertEqual(len(self.calls), 2)

    def test_refresh_forces_fetch(self):
        first = self.service.get_series(BERLIN_CENTRE)
        refreshed = self.service.get_series(BERLIN_CENTRE, refresh=True)
        self.assertIsNot(first, refreshed)
        self.assertEqual(len(self.calls), 2)
        self.assertIs(self.service.get_series(BERLIN_CENTRE), refreshed)

    def test_change_location_discards_previous_series(self):
        self.service.get_series(BERLIN_CENTRE)
        self.assertIsNotNone(self.service.fetched_at(BERLIN_CENTRE))

        new = self.service.change_location(BERLIN_CENTRE, MUNICH)

        self.assertEqual(new, MUNICH)
        self.assertIsNone(self.service.fetched_at(BERLIN_CENTRE))
        self.service.get_series(BERLIN_CENTRE)
        self.assertEqual(len(self.calls), 2)

    def test_resolve_location_uses_geocoder(self):
        location = self.service.resolve_location("München")
        self.assertEqual(location.display_name, "München")

    def test_fetch_errors_propagate_without_caching(self):
        from luftcheck.errors import WeatherFetchError

        def failing_fetch(*_args, **_kwargs):
            raise WeatherFetchError("weather-fetch-failed")

        cache = InMemoryForecastCache()
        service = ForecastService(CallableForecastDataSource(failing_fetch, lambda q: None), cache)
        with self.assertRaises(WeatherFetchError):
            service.get_series(BERLIN_CENTRE)
        self.assertIsNone(cache.get(BERLIN_CENTRE))


class TestBuildForecastCache(unittest.TestCase):
    def test_in_memory_without_redis_url(self):
        cache = build_forecast_cache(Settings(forecast_redis_url=None, forecast_ttl_seconds=42))
        self.assertIsInstance(cache, InMemoryForecastCache)
        self.assertEqual(cache.ttl, 42)

    def test_falls_back_when_redis_unreachable(self):
        class DeadClient:
            def ping(self):
                raise redis.ConnectionError("refused")

        with patch("luftcheck.forecast_service.redis.Redis.from_url", return_value=DeadClient()):
            cache = build_forecast_cache(Settings(forecast_redis_url="redis://cache:6379/0"))
        self.assertIsInstance(cache, InMemoryForecastCache)

    def test_uses_redis_when_reachable(self):
        from luftcheck.forecast_cache import RedisForecastCache

        class LiveClient:
            def ping(self):
                return True

        with patch("luftcheck.forecast_service.redis.Redis.from_url", return_value=LiveClient()):
            cache = build_forecast_cache(Settings(forecast_redis_url="redis://cache:6379/0"))
        self.assertIsInstance(cache, RedisForecastCache)


if __name__ == "__main__":
    unittest.main()
