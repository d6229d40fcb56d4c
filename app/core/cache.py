"""
In-memory TTL cache for loaded poll aggregates.

Loading the poll list costs three queries plus an in-memory join, and the
dashboard reloads it after every action. The cache keeps the last result for
a few seconds; every write path invalidates it, so a member always sees their
own change on the next load.

Per-user ballot state is never served from here: get_user_votes reads the
vote rows directly.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """
    Time-To-Live cache with LRU eviction and hit/miss counters.

    Storage format: OrderedDict[cache_key: (data, timestamp)]

    Uses threading.RLock so get_or_fetch can re-enter the lock while
    holding it (FastAPI runs sync endpoints in a thread pool).
    """

    def __init__(self, max_size: int = 100):
        self._cache: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._lock = threading.RLock()
        self._max_size = max_size
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Get cached value if it exists, without touching the counters."""
        with self._lock:
            if key in self._cache:
                data, _ = self._cache[key]
                self._cache.move_to_end(key)
                return data
            return None

    def set(self, key: str, value: Any) -> None:
        """Store value with the current timestamp, evicting the oldest entries when full."""
        with self._lock:
            if key in self._cache:
                del self._cache[key]

            self._cache[key] = (value, time.time())

            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)

    def is_expired(self, key: str, ttl_seconds: float) -> bool:
        """Check if cached value is expired based on TTL."""
        with self._lock:
            if key not in self._cache:
                return True
            _, timestamp = self._cache[key]
            return time.time() - timestamp > ttl_seconds

    def invalidate(self, key: str) -> None:
        """Remove key from cache."""
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear entire cache and reset the counters."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def record_hit(self) -> None:
        with self._lock:
            self._hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self._misses += 1

    def get_stats(self) -> Dict[str, Any]:
        """Cache statistics for the health endpoint."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0

            return {
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate_percent": round(hit_rate, 2),
            }


def get_or_fetch(
    cache: TTLCache,
    cache_key: str,
    fetch_func: Callable[[], Any],
    ttl_seconds: float = 3.0
) -> Any:
    """
    Get data from cache or fetch fresh data if expired.

    Uses double-check locking: the fast path reads without the lock, a miss
    takes the lock and re-checks before calling fetch_func, so concurrent
    misses trigger a single fetch.

    A ttl_seconds of 0 or less disables caching and always fetches.
    """
    if ttl_seconds <= 0:
        return fetch_func()

    if not cache.is_expired(cache_key, ttl_seconds):
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            cache.record_hit()
            return cached_data

    with cache._lock:
        if not cache.is_expired(cache_key, ttl_seconds):
            cached_data = cache.get(cache_key)
            if cached_data is not None:
                cache.record_hit()
                return cached_data

        cache.record_miss()
        fresh_data = fetch_func()
        cache.set(cache_key, fresh_data)
        return fresh_data


# Process-wide cache shared by all request handlers
global_cache = TTLCache()
