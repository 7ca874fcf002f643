"""
In-process cache with named namespaces.

Each namespace is a cachetools TTLCache (bounded size, expire-after-write).
cachetools caches are not thread-safe, so every access to the underlying
mapping goes through a single lock. Values are computed outside the lock:
two concurrent misses for the same key may both compute, and the last
write wins.

Every eviction bumps the namespace generation. A value computed under an
older generation is returned to its caller but never stored, so a read that
raced with an eviction cannot leave a stale entry behind.
"""

import logging
import threading
from typing import Callable, Dict, Hashable, TypeVar

from cachetools import TTLCache

from messages_api.metrics import record_cache_eviction, record_cache_lookup

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Distinguishes "not cached" from a cached None
_MISSING = object()


class NamespacedCache:
    """Key/value cache grouped into namespaces that can be cleared together."""

    def __init__(self, max_size: int = 1000, ttl_seconds: float = 600):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._namespaces: Dict[str, TTLCache] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.RLock()

    def _namespace(self, name: str) -> TTLCache:
        # Caller must hold the lock
        cache = self._namespaces.get(name)
        if cache is None:
            cache = TTLCache(maxsize=self.max_size, ttl=self.ttl_seconds)
            self._namespaces[name] = cache
            self._generations.setdefault(name, 0)
        return cache

    def get_or_compute(self, namespace: str, key: Hashable, compute_fn: Callable[[], T]) -> T:
        """
        Return the cached value for key, computing and storing it on a miss.

        None is a cacheable value. Exceptions from compute_fn propagate and
        nothing is stored.
        """
        with self._lock:
            value = self._namespace(namespace).get(key, _MISSING)
            generation = self._generations[namespace]

        if value is not _MISSING:
            logger.debug(f"Cache hit: {namespace}[{key!r}]")
            record_cache_lookup(namespace, hit=True)
            return value

        logger.debug(f"Cache miss: {namespace}[{key!r}]")
        record_cache_lookup(namespace, hit=False)
        value = compute_fn()

        with self._lock:
            if self._generations[namespace] == generation:
                self._namespace(namespace)[key] = value
            else:
                logger.debug(f"Discarding {namespace}[{key!r}] computed before an eviction")
        return value

    def evict_all(self, namespace: str) -> None:
        """Remove every key in the namespace."""
        with self._lock:
            cache = self._namespace(namespace)
            evicted = len(cache)
            cache.clear()
            self._generations[namespace] += 1
        logger.debug(f"Evicted {evicted} entries from cache namespace '{namespace}'")
        record_cache_eviction(namespace)

    def clear(self) -> None:
        """Remove every key in every namespace."""
        with self._lock:
            names = list(self._namespaces)
        for name in names:
            self.evict_all(name)

    def size(self, namespace: str) -> int:
        with self._lock:
            return len(self._namespace(namespace))
