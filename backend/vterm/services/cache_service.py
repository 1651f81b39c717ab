"""
Best-effort key/value cache for card lookups, card lists and Stripe charges.

Uses Redis when REDIS_URL is configured, otherwise an in-process dict with
TTLs (single-worker deployments and tests). Cache failures are logged and
reported as misses; they never fail the surrounding request.
"""
import json
import logging
import threading
import time
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)

LIST_OF_CARDS_KEY = "list-of-cards"


class MemoryBackend:
    """Thread-safe dict with per-key expiry."""

    def __init__(self):
        self._data: dict[str, tuple[float, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at < time.monotonic():
                del self._data[key]
                return None
            return value

    def setex(self, key: str, ttl: int, value: str) -> None:
        with self._lock:
            self._data[key] = (time.monotonic() + ttl, value)

    def delete(self, key: str) -> int:
        with self._lock:
            return 1 if self._data.pop(key, None) is not None else 0

    def flushdb(self) -> None:
        with self._lock:
            self._data.clear()


class Cache:
    """Cache wrapper with JSON serialization."""

    def __init__(self):
        self.client = None
        self.default_ttl = 3600

    def init_app(self, app) -> None:
        self.default_ttl = app.config.get("CACHE_DEFAULT_TTL", 3600)
        redis_url = app.config.get("REDIS_URL")
        if redis_url:
            self.client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            logger.info("Using Redis cache")
        else:
            self.client = MemoryBackend()
            logger.info("REDIS_URL not set, using in-process cache")

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or cache error."""
        if self.client is None or not key:
            return None
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            logger.error("Cache get error for %s: %s", key, e)
            return None
        if value is None:
            return None
        return json.loads(value)

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if self.client is None or not key:
            return False
        try:
            self.client.setex(key, ttl or self.default_ttl, json.dumps(value))
            return True
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.error("Cache set error for %s: %s", key, e)
            return False

    def delete(self, key: str) -> bool:
        """
        Remove a key. A key that was not cached is not an error.
        Returns False only when the cache itself failed.
        """
        if self.client is None or not key:
            return True
        try:
            self.client.delete(key)
            return True
        except redis.RedisError as e:
            logger.error("Cache delete error for %s: %s", key, e)
            return False

    def clear(self) -> None:
        if self.client is not None:
            self.client.flushdb()
