"""Short-lived memoization of tool results."""

from __future__ import annotations

import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from ..logger import get_logger

logger = get_logger(__name__)

CacheKey = Tuple[str, str]


class _Miss:
    """Sentinel type for cache misses, since ``None`` is a valid tool result."""

    _instance: Optional["_Miss"] = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    value: Any
    timestamp: float


def canonical_arguments(arguments: Optional[Dict[str, Any]]) -> str:
    """Serialize tool arguments so that equal mappings give equal strings.

    Keys are sorted at every nesting level and separators are compact, so
    ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}`` share one cache key.
    """
    return json.dumps(arguments or {}, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


class ResultCache:
    """
    TTL cache of raw provider results keyed by tool name and arguments.

    Entries are only checked for age when they are looked up. An expired entry
    is dropped at that point, and the next ``put`` writes a fresh one. The cache
    also holds at most ``max_entries`` entries: when it is full, expired entries
    are purged first and then the oldest entries are dropped.

    All operations are synchronous dict operations, so a single instance can be
    shared by every query running on one event loop without locking.
    """

    def __init__(
        self,
        ttl: float = 15.0,
        max_entries: Optional[int] = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl: Seconds an entry stays valid. Zero or less disables caching.
            max_entries: Upper bound on stored entries, or None for no bound.
            clock: Monotonic time source, injectable for tests.
        """
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    @staticmethod
    def make_key(tool_name: str, arguments: Optional[Dict[str, Any]]) -> CacheKey:
        return tool_name, canonical_arguments(arguments)

    def get(self, tool_name: str, arguments: Optional[Dict[str, Any]]) -> Any:
        """Return the cached value, or ``MISS`` when absent or expired."""
        if not self.enabled:
            return MISS

        key = self.make_key(tool_name, arguments)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return MISS

        if self._clock() - entry.timestamp >= self.ttl:
            logger.debug("Cache entry for '%s' expired.", tool_name)
            self._entries.pop(key, None)
            self.misses += 1
            return MISS

        self.hits += 1
        logger.debug("Cache hit for '%s' %s.", tool_name, key[1])
        return entry.value

    def put(self, tool_name: str, arguments: Optional[Dict[str, Any]], value: Any) -> None:
        """Store a raw provider result under the tool name and arguments."""
        if not self.enabled:
            return

        key = self.make_key(tool_name, arguments)
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, value=value, timestamp=self._clock())

        if self.max_entries is not None and len(self._entries) > self.max_entries:
            self.purge_expired()
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache full, evicted '%s'.", evicted[0])

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now - entry.timestamp >= self.ttl]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
