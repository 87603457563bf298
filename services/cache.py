"""Caches for category lookups and tree projections.

Two independently configured caches back the category service:

- ``categories``: id -> CategoryResponse, bounded, expires after last access.
- ``category_tree``: tree key -> CategoryTree, bounded, expires after write.

Both are flushed in full on every mutation (see CategoryCaches.invalidate_all).
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional

from cachetools import TTLCache

from config import Config
from logger import get_logger

logger = get_logger("services.cache")

CATEGORIES_CACHE = "categories"
CATEGORY_TREE_CACHE = "category_tree"

# Tree-cache key for the full forest; subtree keys are root id ints.
ALL_TREE_KEY = "all"

_MISSING = object()


@dataclass(frozen=True)
class CacheSpec:
    """Size bound and expiry policy of one cache.

    Exactly one of expire_after_access / expire_after_write must be set
    (in seconds).
    """

    maximum_size: int
    expire_after_access: Optional[float] = None
    expire_after_write: Optional[float] = None

    def __post_init__(self):
        if self.maximum_size <= 0:
            raise ValueError("maximum_size must be positive")
        if (self.expire_after_access is None) == (self.expire_after_write is None):
            raise ValueError(
                "Exactly one of expire_after_access or expire_after_write is required"
            )

    @property
    def ttl(self) -> float:
        if self.expire_after_access is not None:
            return self.expire_after_access
        return self.expire_after_write


@dataclass
class CacheStats:
    """Counters recorded by a CategoryCache."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def request_count(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.request_count == 0:
            return 0.0
        return self.hits / self.request_count


class _RecordingTTLCache(TTLCache):
    """TTLCache that reports size evictions and expirations to CacheStats."""

    def __init__(self, maxsize, ttl, timer, stats: CacheStats):
        super().__init__(maxsize, ttl, timer=timer)
        self._stats = stats

    def popitem(self):
        key, value = super().popitem()
        self._stats.evictions += 1
        return key, value

    def expire(self, time=None):
        expired = super().expire(time)
        self._stats.expirations += len(expired)
        return expired


class CategoryCache:
    """A named, thread-safe, size- and time-bounded cache.

    Args:
        name: Cache name, used in logs and statistics.
        spec: Size and expiry policy.
        timer: Monotonic clock in seconds (injectable for tests).
    """

    def __init__(
        self,
        name: str,
        spec: CacheSpec,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.spec = spec
        self._timer = timer
        self._lock = threading.RLock()
        self._stats = CacheStats()
        self._cache = self._new_store()
        # Bumped by clear(); a load started before a flush is not stored
        self._generation = 0
        self._closed = False

    def _new_store(self) -> _RecordingTTLCache:
        return _RecordingTTLCache(
            self.spec.maximum_size, self.spec.ttl, self._timer, self._stats
        )

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"Cache '{self.name}' is closed")

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value for key, or None on a miss."""
        with self._lock:
            self._check_open()
            value = self._cache.get(key, _MISSING)
            if value is _MISSING:
                self._stats.misses += 1
                return None

            self._stats.hits += 1
            if self.spec.expire_after_access is not None:
                # Re-inserting restarts the entry's TTL
                self._cache[key] = value
            return value

    def put(self, key: Hashable, value: Any, generation: Optional[int] = None) -> None:
        """Store value under key.

        If generation is given and the cache was cleared since it was read,
        the value is dropped.
        """
        with self._lock:
            self._check_open()
            if generation is not None and generation != self._generation:
                return
            self._cache[key] = value

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value, computing and storing it on a miss.

        The loader runs outside the cache lock; errors it raises propagate
        and nothing is cached. A value loaded while the cache was cleared is
        returned to the caller but not stored.
        """
        value = self.get(key)
        if value is not None:
            return value

        with self._lock:
            generation = self._generation

        logger.debug(f"Cache miss on {self.name}[{key!r}]")
        value = loader()
        self.put(key, value, generation)
        return value

    def clear(self) -> None:
        """Drop every entry. Not counted as evictions."""
        with self._lock:
            self._cache = self._new_store()
            self._generation += 1

    def close(self) -> None:
        with self._lock:
            self.clear()
            self._closed = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._cache

    def stats(self) -> Dict[str, Any]:
        """Snapshot of counters and current size."""
        with self._lock:
            self._cache.expire()
            return {
                "hit_count": self._stats.hits,
                "miss_count": self._stats.misses,
                "hit_rate": round(self._stats.hit_rate, 4),
                "request_count": self._stats.request_count,
                "eviction_count": self._stats.evictions,
                "expiration_count": self._stats.expirations,
                "size": len(self._cache),
                "maximum_size": self.spec.maximum_size,
            }


class CategoryCaches:
    """The pair of caches used by the category service.

    Args:
        categories: Spec of the id cache.
        category_tree: Spec of the tree cache.
        timer: Clock shared by both caches.
    """

    def __init__(
        self,
        categories: CacheSpec = None,
        category_tree: CacheSpec = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        categories = categories or CacheSpec(
            maximum_size=5000, expire_after_access=15 * 60
        )
        category_tree = category_tree or CacheSpec(
            maximum_size=100, expire_after_write=5 * 60
        )
        self.categories = CategoryCache(CATEGORIES_CACHE, categories, timer)
        self.category_tree = CategoryCache(CATEGORY_TREE_CACHE, category_tree, timer)
        logger.debug(
            f"Category caches configured: {CATEGORIES_CACHE}={categories}, "
            f"{CATEGORY_TREE_CACHE}={category_tree}"
        )

    @classmethod
    def from_config(
        cls, config: Config, timer: Callable[[], float] = time.monotonic
    ) -> "CategoryCaches":
        return cls(
            categories=CacheSpec(
                maximum_size=config.categories_cache_max_size,
                expire_after_access=config.categories_cache_expire_after_access,
            ),
            category_tree=CacheSpec(
                maximum_size=config.tree_cache_max_size,
                expire_after_write=config.tree_cache_expire_after_write,
            ),
            timer=timer,
        )

    def invalidate_all(self) -> None:
        """Flush both caches completely."""
        self.categories.clear()
        self.category_tree.clear()
        logger.debug("Flushed category caches")

    def close(self) -> None:
        self.categories.close()
        self.category_tree.close()

    def stats(self) -> Dict[str, Dict[str, Any]]:
        return {
            self.categories.name: self.categories.stats(),
            self.category_tree.name: self.category_tree.stats(),
        }
