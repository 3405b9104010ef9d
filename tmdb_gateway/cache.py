"""In-memory response cache with TTL and a FIFO capacity cap."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Mapping
from urllib.parse import urlencode

from .types import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_TTL = 30 * 60.0
DEFAULT_MAX_ENTRIES = 1000


def make_cache_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """Build the canonical cache key for an endpoint and its query params.

    Params are sorted by name so that ordering never changes identity.
    """
    if not params:
        return endpoint
    items = sorted((str(k), str(v)) for k, v in params.items())
    return f"{endpoint}?{urlencode(items)}"


class ResponseCache:
    """TTL cache bounded by entry count.

    Eviction is by insertion order (oldest first), not by access. Reads
    never promote an entry. Expired entries are dropped lazily on lookup.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be greater than 0")
        if max_entries <= 0:
            raise ValueError("max_entries must be greater than 0")
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() - entry.stored_at < self._ttl:
            self._hits += 1
            logger.debug(f"Cache hit for {key}")
            return entry.payload
        del self._entries[key]
        self._expirations += 1
        self._misses += 1
        logger.debug(f"Cache entry expired for {key}")
        return None

    def set(self, key: str, payload: Any) -> None:
        if key in self._entries:
            # Overwrite moves the key to the newest position
            del self._entries[key]
        elif len(self._entries) >= self._max_entries:
            oldest, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Cache full, evicted {oldest}")
        self._entries[key] = CacheEntry(payload=payload, stored_at=self._clock())
        logger.debug(f"Cache set for {key} (size: {len(self._entries)})")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and self._clock() - entry.stored_at < self._ttl

    def get_stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "max_entries": self._max_entries,
            "ttl": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "expirations": self._expirations,
        }
