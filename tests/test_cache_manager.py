"""
Unit tests for the read-through caches.
"""

import unittest
from unittest.mock import Mock
from zoneinfo import ZoneInfo
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from payroll.config import config
from utils.cache_manager import ReadThroughCache, TimezoneCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestReadThroughCache(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.loader = Mock(side_effect=["first", "second", "third"])
        self.cache = ReadThroughCache(self.loader, ttl=60, clock=self.clock)

    def test_value_reused_while_fresh(self):
        self.assertEqual(self.cache.get(), "first")
        self.clock.now += 59
        self.assertEqual(self.cache.get(), "first")
        self.assertEqual(self.loader.call_count, 1)

    def test_reload_after_ttl(self):
        self.cache.get()
        self.clock.now += 60
        self.assertEqual(self.cache.get(), "second")
        self.assertEqual(self.loader.call_count, 2)

    def test_invalidate(self):
        self.cache.get()
        self.cache.invalidate()
        self.assertEqual(self.cache.get(), "second")

    def test_loader_error_propagates(self):
        loader = Mock(side_effect=[RuntimeError("db down"), "ok"])
        cache = ReadThroughCache(loader, ttl=60, clock=self.clock)
        with self.assertRaises(RuntimeError):
            cache.get()
        self.assertEqual(cache.get(), "ok")

    def test_stats(self):
        self.cache.get()
        self.cache.get()
        stats = self.cache.get_stats()
        self.assertEqual((stats['hits'], stats['misses']), (1, 1))

    def test_negative_ttl(self):
        with self.assertRaises(ValueError):
            ReadThroughCache(lambda: None, ttl=-1)

    def test_caches_are_independent(self):
        other = ReadThroughCache(Mock(return_value="other"), ttl=60, clock=self.clock)
        self.assertEqual(self.cache.get(), "first")
        self.assertEqual(other.get(), "other")


class TestTimezoneCache(unittest.TestCase):

    def test_zone_name(self):
        cache = TimezoneCache(lambda: "Europe/London", clock=FakeClock())
        self.assertEqual(cache.get(), ZoneInfo("Europe/London"))

    def test_zone_object(self):
        zone = ZoneInfo("UTC")
        self.assertIs(TimezoneCache(lambda: zone).get(), zone)

    def test_unknown_or_missing_falls_back(self):
        self.assertEqual(TimezoneCache(lambda: "Not/AZone").get(), ZoneInfo(config.DEFAULT_TIMEZONE))
        self.assertEqual(TimezoneCache(lambda: None).get(), ZoneInfo(config.DEFAULT_TIMEZONE))

    def test_default_ttl(self):
        self.assertEqual(TimezoneCache(lambda: None).ttl, config.TIMEZONE_CACHE_TTL)


if __name__ == '__main__':
    unittest.main()
