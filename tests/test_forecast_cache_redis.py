import json
import unittest

from luftcheck.domain import Location
from luftcheck.forecast_cache.redis import RedisForecastCache

from forecast_fixtures import DRY, HUMID, make_series

BERLIN_CENTRE = Location(52.52, 13.41)


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expires = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.expires[key] = ttl

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.store.pop(key, None)
        self.expires.pop(key, None)

    def scan_iter(self, pattern):
        prefix = pattern.rstrip("*")
        return [k for k in list(self.store.keys()) if k.startswith(prefix)]


class TestRedisForecastCache(unittest.TestCase):
    def test_round_trip_preserves_series(self):
        client = FakeRedis()
        cache = RedisForecastCache(client, ttl_seconds=900, prefix="forecast:")
        series = make_series([HUMID, DRY, HUMID])

        stored = cache.put(BERLIN_CENTRE, series)
        key = "forecast:52.5200,13.4100"
        self.assertIn(key, client.store)
        self.assertEqual(client.expires[key], 900)

        fetched = cache.get(BERLIN_CENTRE)
        self.assertEqual(fetched.series, series)
        self.assertEqual(fetched.series.timezone, "Europe/Berlin")
        self.assertEqual(fetched.fetched_at, stored.fetched_at)

    def test_stored_document_uses_local_times(self):
        client = FakeRedis()
        cache = RedisForecastCache(client)
        cache.put(BERLIN_CENTRE, make_series([HUMID]))

        doc = json.loads(client.store["forecast:52.5200,13.4100"].decode("utf-8"))
        self.assertEqual(doc["hourly"]["time"], ["2024-03-10T00:00"])
        self.assertEqual(doc["hourly"]["temperature_2m"], [15.0])

    def test_missing_key_is_miss(self):
        cache = RedisForecastCache(FakeRedis())
        self.assertIsNone(cache.get(BERLIN_CENTRE))

    def test_corrupt_payload_is_miss(self):
        client = FakeRedis()
        cache = RedisForecastCache(client)
        client.store["forecast:52.5200,13.4100"] = b"not-json"
        self.assertIsNone(cache.get(BERLIN_CENTRE))

    def test_payload_without_hourly_is_miss(self):
        client = FakeRedis()
        cache = RedisForecastCache(client)
        client.store["forecast:52.5200,13.4100"] = b'{"timezone": "UTC", "fetched_at": "2024-01-01T00:00:00"}'
        self.assertIsNone(cache.get(BERLIN_CENTRE))

    def test_invalidate_and_clear(self):
        client = FakeRedis()
        cache = RedisForecastCache(client, prefix="forecast:")
        client.store["other:keep"] = b"x"
        cache.put(BERLIN_CENTRE, make_series([HUMID]))
        cache.put(Location(48.137, 11.575), make_series([DRY]))

        cache.invalidate(BERLIN_CENTRE)
        self.assertIsNone(cache.get(BERLIN_CENTRE))

        cache.clear()
        self.assertEqual(list(client.store), ["other:keep"])


if __name__ == "__main__":
    unittest.main()
