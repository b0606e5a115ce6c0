"""
Tag-aware read-through cache for encoded responses

Every entry is stored under a key and may be associated with any number
of tags. Invalidating a tag drops all entries associated with it. The
entries themselves live in a ``cachetools`` cache, which bounds the
number of entries and optionally lets them expire after some time.

Computing a missing value happens outside the internal lock. Concurrent
misses on the same key may therefore compute the value more than once;
the last computed value wins. A value whose tags have been invalidated
while it was computed is returned to its caller but never stored.
"""

import logging
import threading
from typing import Callable, Dict, Iterable, Optional, Set, Tuple

import cachetools


class TagAwareCache:
    """
    Read-through cache with bulk invalidation by tags

    :param max_entries: maximum number of cached entries (least recently used are evicted first)
    :param ttl: optional number of seconds until an entry expires
    :param logger: optional logger for cache hits, misses and invalidations
    """

    def __init__(self, max_entries: int = 4096, ttl: Optional[int] = None, logger: Optional[logging.Logger] = None):
        if ttl:
            self._entries: cachetools.Cache = cachetools.TTLCache(maxsize=max_entries, ttl=ttl)
        else:
            self._entries: cachetools.Cache = cachetools.LRUCache(maxsize=max_entries)
        self._tags: Dict[str, Set[str]] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger(__name__)
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._entries.get(key)

    def _generation(self, tags: Iterable[str]) -> Tuple[int, ...]:
        return (self._epoch, *(self._generations.get(tag, 0) for tag in tags))

    def _store(self, key: str, value: bytes, tags: Iterable[str]) -> None:
        self._entries[key] = value
        for tag in tags:
            keys = self._tags.setdefault(tag, set())
            keys.difference_update([k for k in keys if k not in self._entries])
            keys.add(key)

    def set(self, key: str, value: bytes, tags: Iterable[str] = ()) -> None:
        with self._lock:
            self._store(key, value, tags)

    def keys_of(self, tag: str) -> Set[str]:
        """
        Return the keys of all live entries associated with the tag
        """

        with self._lock:
            return {key for key in self._tags.get(tag, set()) if key in self._entries}

    def get_or_compute(self, key: str, tags: Iterable[str], compute: Callable[[], bytes]) -> bytes:
        """
        Return the cached value of the key or compute, store and tag it on a miss

        :param key: cache key of the entry
        :param tags: tags the newly computed entry will be associated with
        :param compute: callable producing the value on a cache miss
        :return: cached or freshly computed value
        """

        tags = tuple(tags)
        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                self.hits += 1
            generation = self._generation(tags)
        if value is not None:
            self._logger.debug(f"Cache hit for {key!r}")
            return value

        self._logger.debug(f"Cache miss for {key!r}")
        value = compute()
        with self._lock:
            self.misses += 1
            if self._generation(tags) == generation:
                self._store(key, value, tags)
                return value
        self._logger.debug(f"Discarded value of {key!r} computed during an invalidation")
        return value

    def invalidate_by_tag(self, tag: str) -> int:
        """
        Remove every entry associated with the tag

        :return: number of entries that were actually removed
        """

        removed = 0
        with self._lock:
            self._generations[tag] = self._generations.get(tag, 0) + 1
            for key in self._tags.pop(tag, set()):
                if self._entries.pop(key, None) is not None:
                    removed += 1
        self._logger.debug(f"Invalidated tag {tag!r} dropping {removed} cache entries")
        return removed

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        return sum(self.invalidate_by_tag(tag) for tag in tags)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tags.clear()
            self._epoch += 1
        self._logger.debug("Cleared the whole cache")
