"""
Group Members Cache

Request-scoped memo of translation group lookups: (kind, group_id) → {lang: id}.
Created per request/operation and injected into the resolver and the creation
services, which invalidate a group whenever they link a new member.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass

from cms_multilingual.utils.metrics import record_cache_hit, record_cache_miss

logger = logging.getLogger(__name__)

CACHE_TYPE = "translation_group"


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total * 100


class GroupMembersCache:
    """
    In-memory LRU of group → members maps.

    Never shared across requests; a fresh instance is built for each engine.
    """

    def __init__(self, max_size: int = 1000):
        self._cache: OrderedDict[tuple[str, str], dict[str, int]] = OrderedDict()
        self._max_size = max_size
        self._stats = CacheStats()

    @staticmethod
    def _key(kind, group_id: str) -> tuple[str, str]:
        return (getattr(kind, "value", kind), group_id)

    def get(self, kind, group_id: str) -> dict[str, int] | None:
        """Return a copy of the cached members map, or None on a miss."""
        key = self._key(kind, group_id)
        if key in self._cache:
            self._cache.move_to_end(key)
            self._stats.hits += 1
            record_cache_hit(CACHE_TYPE)
            return dict(self._cache[key])
        self._stats.misses += 1
        record_cache_miss(CACHE_TYPE)
        return None

    def put(self, kind, group_id: str, members: dict[str, int]) -> None:
        key = self._key(kind, group_id)
        if key in self._cache:
            self._cache.move_to_end(key)
        self._cache[key] = dict(members)

        while len(self._cache) > self._max_size:
            self._cache.popitem(last=False)

        self._stats.sets += 1

    def invalidate(self, kind, group_id: str | None) -> bool:
        """Drop one group. Returns True if it was cached."""
        if not group_id:
            return False
        key = self._key(kind, group_id)
        if key in self._cache:
            del self._cache[key]
            self._stats.invalidations += 1
            logger.debug("Group cache invalidated: %s/%s", key[0], group_id)
            return True
        return False

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> dict:
        return {
            "size": len(self._cache),
            "max_size": self._max_size,
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "invalidations": self._stats.invalidations,
            "hit_rate": f"{self._stats.hit_rate:.2f}%",
        }
