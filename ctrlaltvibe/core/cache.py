"""In-process key/value cache with per-entry expiry and tag-based invalidation.

Entries are evicted lazily: an expired entry is dropped the next time it is
read, there is no background sweep. Every entry may carry a set of tags; the
tag index maps each tag to the live keys carrying it so a whole group of
cached query results can be dropped with a single ``invalidate_tag`` call.

The cache is an optimization only. None of its operations raise, a miss is a
normal result, and callers must stay correct when every lookup misses.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Set, Union

from ctrlaltvibe.core.config import settings

logger = logging.getLogger(__name__)

TagsArg = Union[str, Iterable[str], None]


@dataclass
class CacheEntry:
    value: Any
    expiry: Optional[float]
    tags: FrozenSet[str] = field(default_factory=frozenset)

    def is_expired(self, now: float) -> bool:
        return self.expiry is not None and now >= self.expiry


class TaggedCache:
    def __init__(self, default_ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._store: Dict[str, CacheEntry] = {}
        self._tag_index: Dict[str, Set[str]] = {}
        self._default_ttl = self._coerce_ttl(default_ttl, settings.CACHE_DEFAULT_TTL_SECONDS)
        self._clock = clock
        # FastAPI runs sync dependencies in a thread pool, so the maps are guarded.
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _coerce_ttl(ttl: Any, fallback: float) -> float:
        if isinstance(ttl, bool) or not isinstance(ttl, (int, float)) or ttl <= 0:
            return fallback
        return float(ttl)

    @staticmethod
    def _coerce_tags(tags: TagsArg) -> FrozenSet[str]:
        if tags is None:
            return frozenset()
        if isinstance(tags, str):
            return frozenset([tags]) if tags else frozenset()
        try:
            return frozenset(str(tag) for tag in tags if tag)
        except TypeError:
            logger.warning(f"Ignoring malformed cache tags: {tags!r}")
            return frozenset()

    def set(self, key: str, value: Any, ttl: Optional[float] = None, tags: TagsArg = None,
            never_expire: bool = False) -> None:
        """Store ``value`` under ``key``, replacing any previous entry and its tags."""
        tag_set = self._coerce_tags(tags)
        if never_expire:
            expiry = None
        else:
            expiry = self._clock() + self._coerce_ttl(ttl, self._default_ttl)

        with self._lock:
            self._remove(key)
            self._store[key] = CacheEntry(value=value, expiry=expiry, tags=tag_set)
            for tag in tag_set:
                self._tag_index.setdefault(tag, set()).add(key)

        logger.debug(f"Cache SET {key} tags={sorted(tag_set)}")

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self.misses += 1
                return default
            if entry.is_expired(self._clock()):
                self._remove(key)
                self.misses += 1
                logger.debug(f"Cache EXPIRED {key}")
                return default
            self.hits += 1
            return entry.value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._remove(key)

    def invalidate_tag(self, tag: str) -> int:
        with self._lock:
            keys = self._tag_index.pop(tag, None)
            if not keys:
                return 0
            for key in list(keys):
                self._remove(key)

        logger.info(f"Invalidated {len(keys)} cache entries for tag {tag}")
        return len(keys)

    def invalidate_tags(self, *tags: str) -> int:
        return sum(self.invalidate_tag(tag) for tag in tags)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._tag_index.clear()
        logger.info("Cache cleared")

    def set_default_ttl(self, ttl: float) -> None:
        self._default_ttl = self._coerce_ttl(ttl, self._default_ttl)

    @property
    def size(self) -> int:
        return len(self._store)

    @property
    def tag_count(self) -> int:
        return len(self._tag_index)

    def tags_for(self, key: str) -> FrozenSet[str]:
        entry = self._store.get(key)
        return entry.tags if entry else frozenset()

    def keys_for_tag(self, tag: str) -> FrozenSet[str]:
        return frozenset(self._tag_index.get(tag, ()))

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self.hits + self.misses
            return {
                "size": len(self._store),
                "tags": {tag: len(keys) for tag, keys in self._tag_index.items()},
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": round(self.hits / total, 4) if total else 0.0,
                "default_ttl_seconds": self._default_ttl,
                "backend": "memory",
            }

    def _remove(self, key: str) -> bool:
        # Caller holds the lock. Drops the entry and every index reference to it.
        entry = self._store.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            keys = self._tag_index.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tag_index[tag]
        return True
