"""
In-memory result cache with time-based expiry and an LRU capacity bound.
"""

from __future__ import annotations

__all__ = ["ResultCache", "make_cache_key"]

import logging
import re
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Generic, TypeVar

from novelti.schemas import SEARCH_MODES, SearchMode
from novelti.upstream.query import normalize_isbn

logger = logging.getLogger(__name__)

V = TypeVar("V")

_SPACE_RE = re.compile(r"\s+")


def make_cache_key(
    term: str, mode: SearchMode, offset: int = 0, detailed: bool | None = None
) -> str:
    """Build the cache key for a search.

    ID lookups live in their own ``id:`` namespace and ignore the offset.
    Other modes key on the mode, the normalized term and the offset; ISBN
    terms also lose their hyphens and spaces. A suffix marks lookups
    whose detail level differs from the mode default: ``:detailed`` for
    list searches, ``:brief`` for ID lookups.

    Args:
        term: Search term or volume ID.
        mode: Search mode.
        offset: Pagination offset.
        detailed: Whether the lookup includes descriptions; None means the
            mode default (detailed for ``by_id`` only).

    Returns:
        The cache key.
    """
    if mode not in SEARCH_MODES:
        raise ValueError(f"Unsupported search mode: {mode!r}")

    if mode == "by_id":
        key = f"id:{term.strip()}"
        return f"{key}:brief" if detailed is False else key

    if mode == "by_isbn":
        term = normalize_isbn(term)
    normalized = _SPACE_RE.sub(" ", term).strip().casefold()
    key = f"{mode}:{normalized}:{offset}"
    return f"{key}:detailed" if detailed else key


class _Entry(Generic[V]):
    __slots__ = ("value", "created_at")

    def __init__(self, value: V, created_at: float) -> None:
        self.value = value
        self.created_at = created_at


class ResultCache(Generic[V]):
    """Thread-safe key/value cache with TTL expiry and LRU eviction.

    Expiry is checked lazily: an entry older than ``ttl`` is evicted by the
    read that finds it. When ``max_entries`` is exceeded, the least recently
    used entry is dropped. All operations take an internal lock; callers
    never need their own.
    """

    def __init__(
        self,
        ttl: float = 600.0,
        max_entries: int | None = 1024,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create an empty cache.

        Args:
            ttl: Seconds an entry stays readable after insertion.
            max_entries: Capacity bound, or None for unbounded.
            clock: Monotonic time source; injectable for tests.
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, _Entry[V]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> tuple[V | None, bool]:
        """Look up a key.

        Args:
            key: Cache key.

        Returns:
            ``(value, True)`` on a live hit; ``(None, False)`` when the key
            was never set or its entry has expired (and was just evicted).
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False

            if self._clock() - entry.created_at >= self._ttl:
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key)
                return None, False

            self._entries.move_to_end(key)
            return entry.value, True

    def put(self, key: str, value: V) -> None:
        """Store a value, replacing any existing entry with a fresh timestamp.

        Args:
            key: Cache key.
            value: Value to store.
        """
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = _Entry(value, self._clock())

            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Cache full, evicted: %s", evicted)

    def invalidate(self, key: str) -> bool:
        """Drop one entry.

        Returns:
            True if an entry was present.
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_where(self, predicate: Callable[[str, V], bool]) -> int:
        """Drop every entry for which ``predicate(key, value)`` is true.

        Returns:
            The number of entries dropped.
        """
        with self._lock:
            doomed = [k for k, e in self._entries.items() if predicate(k, e.value)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[call-overload]
            return entry is not None and self._clock() - entry.created_at < self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"<ResultCache entries={len(self)} ttl={self._ttl}>"
