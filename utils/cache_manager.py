"""
Cache management module for the payroll engine.
Provides read-through caches with a freshness bound. Callers own the cache
instance and pass it to whatever needs the value; nothing here is global.
"""

from __future__ import annotations
import logging
import threading
import time
from typing import Any, Callable, Dict, Generic, Optional, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from payroll.config import config

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReadThroughCache(Generic[T]):
    """
    Thread-safe single-value cache with TTL (Time To Live) support.

    get() returns the cached value while it is fresh and calls the loader
    otherwise. A loader failure propagates and leaves the cache empty.
    """

    def __init__(
        self,
        loader: Callable[[], T],
        ttl: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            loader: Zero-argument function producing the value
            ttl: Time to live in seconds
            clock: Monotonic time source (replaceable in tests)
        """
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        self.loader = loader
        self.ttl = ttl
        self.clock = clock
        self.lock = threading.RLock()
        self._value: Optional[T] = None
        self._loaded_at: Optional[float] = None
        self.hits = 0
        self.misses = 0

    def _is_fresh(self, now: float) -> bool:
        return self._loaded_at is not None and now - self._loaded_at < self.ttl

    def get(self) -> T:
        """Return the cached value, reloading it when missing or expired."""
        with self.lock:
            now = self.clock()
            if self._is_fresh(now):
                self.hits += 1
                return self._value

            self.misses += 1
            value = self.loader()
            self._value = value
            self._loaded_at = now
            logger.debug(f"Cache loaded, TTL: {self.ttl}s")
            return value

    def invalidate(self):
        """Drop the cached value; the next get() calls the loader."""
        with self.lock:
            self._value = None
            self._loaded_at = None
            logger.debug("Cache invalidated")

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self.lock:
            total_requests = self.hits + self.misses
            hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0
            return {
                'loaded': self._loaded_at is not None,
                'hits': self.hits,
                'misses': self.misses,
                'hit_rate': f"{hit_rate:.2f}%",
            }


class TimezoneCache(ReadThroughCache[ZoneInfo]):
    """
    Platform time zone, refreshed at most every `ttl` seconds.

    The loader returns either a ZoneInfo or a zone name. Unknown names fall
    back to config.DEFAULT_TIMEZONE.

    Usage:
        tz_cache = TimezoneCache(lambda: load_platform_timezone(conn))
        calculate_period_payroll(..., tz=tz_cache.get())
    """

    def __init__(
        self,
        loader: Callable[[], ZoneInfo | str | None],
        ttl: float = config.TIMEZONE_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._source = loader
        super().__init__(self._load_zone, ttl=ttl, clock=clock)

    def _load_zone(self) -> ZoneInfo:
        value = self._source()
        if isinstance(value, ZoneInfo):
            return value
        name = value or config.DEFAULT_TIMEZONE
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {name!r}, using {config.DEFAULT_TIMEZONE}")
            return ZoneInfo(config.DEFAULT_TIMEZONE)
