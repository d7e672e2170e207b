"""Holiday lookup cache stores.

The holiday oracle caches single-date lookups keyed by (company_id, date_str).
Two backends are provided: a process-local dictionary and Redis. Both expire
entries after a TTL and support invalidating every entry of one company.
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple
import redis

from src.models.dtos import HolidayCheck

logger = logging.getLogger(__name__)

KEY_PREFIX = "holiday_cache"


@dataclass(frozen=True)
class HolidayCacheEntry:
    """Cached outcome of one holiday lookup."""

    is_holiday: bool
    holiday_name: Optional[str]
    inserted_at: float

    def to_check(self) -> HolidayCheck:
        return HolidayCheck(is_holiday=self.is_holiday, holiday_name=self.holiday_name)


class HolidayCacheStore(ABC):
    """Key/value store for holiday lookups with per-company invalidation."""

    @abstractmethod
    def get(self, company_id: str, date_str: str) -> Optional[HolidayCheck]:
        """Return the cached lookup, or None on a miss."""

    @abstractmethod
    def put(self, company_id: str, date_str: str, check: HolidayCheck) -> None:
        """Store a lookup result."""

    @abstractmethod
    def invalidate_for_company(self, company_id: str) -> int:
        """Drop every entry of one company. Returns the number removed."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


class InMemoryHolidayCache(HolidayCacheStore):
    """Process-local cache.

    The lock guards the dictionary structure only; lookups against storage
    happen outside it, so two concurrent misses may both query and both write.
    """

    def __init__(self, ttl_seconds: int = 300, time_fn: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self._time_fn = time_fn or time.monotonic
        self._entries: Dict[Tuple[str, str], HolidayCacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, company_id: str, date_str: str) -> Optional[HolidayCheck]:
        key = (company_id, date_str)
        now = self._time_fn()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now - entry.inserted_at >= self.ttl_seconds:
                del self._entries[key]
                return None
        return entry.to_check()

    def put(self, company_id: str, date_str: str, check: HolidayCheck) -> None:
        entry = HolidayCacheEntry(
            is_holiday=check.is_holiday,
            holiday_name=check.holiday_name,
            inserted_at=self._time_fn(),
        )
        with self._lock:
            self._entries[(company_id, date_str)] = entry

    def invalidate_for_company(self, company_id: str) -> int:
        with self._lock:
            keys = [key for key in self._entries if key[0] == company_id]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.debug(f"Holiday cache invalidated for company {company_id} ({len(keys)} entries)")
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisHolidayCache(HolidayCacheStore):
    """Redis-backed cache shared across processes.

    If Redis is unreachable every call degrades to a miss (or a no-op write),
    so lookups fall through to the database instead of failing.
    """

    def __init__(self, redis_url: str, ttl_seconds: int = 300, client=None):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self._client = client
        self._enabled = True

        if client is None:
            # Try to connect, but don't fail if Redis is unavailable
            try:
                self._connect()
                logger.info(f"Holiday cache connected to Redis: {self._mask_url(self.redis_url)}")
            except Exception as e:
                logger.warning(f"Redis connection failed (holiday caching disabled): {e}")
                self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @staticmethod
    def _mask_url(url: str) -> str:
        """Mask password in Redis URL for logging."""
        if "@" in url and "://" in url:
            protocol, rest = url.split("://", 1)
            if "@" in rest:
                auth, host = rest.rsplit("@", 1)
                return f"{protocol}://***:***@{host}"
        return url

    def _connect(self):
        """Establish Redis connection."""
        if self._client is None:
            client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            client.ping()
            self._client = client

    @staticmethod
    def _key(company_id: str, date_str: str) -> str:
        return f"{KEY_PREFIX}:{company_id}:{date_str}"

    def get(self, company_id: str, date_str: str) -> Optional[HolidayCheck]:
        if not self._enabled:
            return None

        try:
            data = self._client.get(self._key(company_id, date_str))
            if data is None:
                return None
            payload = json.loads(data)
            return HolidayCheck(
                is_holiday=payload["is_holiday"], holiday_name=payload.get("holiday_name")
            )
        except Exception as e:
            logger.error(f"Error reading holiday cache: {e}")
            return None

    def put(self, company_id: str, date_str: str, check: HolidayCheck) -> None:
        if not self._enabled:
            return

        payload = {
            "is_holiday": check.is_holiday,
            "holiday_name": check.holiday_name,
            "inserted_at": time.time(),
        }
        try:
            self._client.setex(self._key(company_id, date_str), self.ttl_seconds, json.dumps(payload))
        except Exception as e:
            logger.error(f"Error writing holiday cache: {e}")

    def _delete_matching(self, pattern: str) -> int:
        deleted = 0
        batch = []
        for key in self._client.scan_iter(match=pattern, count=500):
            batch.append(key)
            if len(batch) >= 500:
                deleted += self._client.delete(*batch)
                batch = []
        if batch:
            deleted += self._client.delete(*batch)
        return deleted

    def invalidate_for_company(self, company_id: str) -> int:
        if not self._enabled:
            return 0

        try:
            deleted = self._delete_matching(f"{KEY_PREFIX}:{company_id}:*")
            logger.info(f"Holiday cache INVALIDATE: company {company_id} ({deleted} keys deleted)")
            return deleted
        except Exception as e:
            logger.error(f"Error invalidating holiday cache: {e}")
            return 0

    def clear(self) -> None:
        if not self._enabled:
            return

        try:
            self._delete_matching(f"{KEY_PREFIX}:*")
        except Exception as e:
            logger.error(f"Error clearing holiday cache: {e}")


# Singleton instance
_holiday_cache: Optional[HolidayCacheStore] = None


def create_holiday_cache(backend: str, ttl_seconds: int, redis_url: Optional[str] = None) -> HolidayCacheStore:
    """Build a cache store for the named backend ("memory" or "redis")."""
    if backend == "redis":
        return RedisHolidayCache(redis_url=redis_url, ttl_seconds=ttl_seconds)
    return InMemoryHolidayCache(ttl_seconds=ttl_seconds)


def get_holiday_cache() -> HolidayCacheStore:
    """Get or create the global holiday cache from settings.

    Returns:
        HolidayCacheStore instance
    """
    global _holiday_cache

    if _holiday_cache is None:
        from config.settings import settings

        config = settings.holiday_cache
        _holiday_cache = create_holiday_cache(config.backend, config.ttl_seconds, config.redis_url)

    return _holiday_cache


def reset_holiday_cache():
    """Drop the global cache instance (used by tests and worker shutdown)."""
    global _holiday_cache
    _holiday_cache = None
