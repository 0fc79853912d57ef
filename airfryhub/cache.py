"""
Fetch/mutation cache keyed by tuples such as ``("post", id)``.

Reads go through ``fetch``; mutations call ``invalidate`` with a key prefix
so the next read goes back to the platform. A load that overlaps an
invalidation is returned to its caller but never stored.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Hashable, TypeVar

from cachetools import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryCache:
    def __init__(self, maxsize: int = 256, ttl: float = 30.0):
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()
        self._generation = 0

    def fetch(self, key: tuple[Hashable, ...], loader: Callable[[], T]) -> T:
        with self._lock:
            if key in self._entries:
                logger.debug("Cache hit %s", key)
                return self._entries[key]
            generation = self._generation
        logger.debug("Cache miss %s", key)
        value = loader()
        with self._lock:
            if generation == self._generation:
                self._entries[key] = value
            else:
                logger.debug("Skipping store for %s, invalidated during load", key)
        return value

    def set(self, key: tuple[Hashable, ...], value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def invalidate(self, *prefix: Hashable) -> int:
        """Drop every key starting with ``prefix``; returns how many were dropped."""
        size = len(prefix)
        with self._lock:
            stale = [key for key in list(self._entries.keys()) if key[:size] == prefix]
            self._generation += 1
            for key in stale:
                self._entries.pop(key, None)
        if stale:
            logger.debug("Invalidated %d cache entries for %s", len(stale), prefix)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __contains__(self, key: tuple[Hashable, ...]) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
