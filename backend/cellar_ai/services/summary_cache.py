"""In-memory LRU cache for tool-result summaries."""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    value: str
    tool_name: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at


class SummaryCache:
    """Bounded LRU cache keyed by ``tool_name:digest``.

    The application creates one instance and hands it to whoever needs it;
    there is no module-level instance.
    """

    def __init__(
        self,
        max_entries: int = 256,
        ttl_seconds: Optional[float] = 3600,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._clock()):
            logger.debug(f"[SUMMARY CACHE] Expired: {key}")
            del self._entries[key]
            self._misses += 1
            return None

        self._entries.move_to_end(key)
        self._hits += 1
        return entry.value

    def set(self, key: str, value: str, tool_name: Optional[str] = None) -> None:
        expires_at = None
        if self.ttl_seconds:
            expires_at = self._clock() + timedelta(seconds=self.ttl_seconds)

        self._entries[key] = CacheEntry(
            value=value,
            tool_name=tool_name or key.split(":", 1)[0],
            expires_at=expires_at,
        )
        self._entries.move_to_end(key)

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"[SUMMARY CACHE] Evicted: {evicted}")

    def invalidate(self, key: str) -> bool:
        """Drop one entry; returns whether it existed."""
        return self._entries.pop(key, None) is not None

    def invalidate_tool(self, tool_name: str) -> int:
        """Drop every entry produced for ``tool_name``; returns how many."""
        keys = [key for key, entry in self._entries.items() if entry.tool_name == tool_name]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.info(f"[SUMMARY CACHE] Invalidated {len(keys)} entries for {tool_name}")
        return len(keys)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"[SUMMARY CACHE] Cleared {count} entries")
        return count

    def stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self._entries),
            "maxEntries": self.max_entries,
            "ttlSeconds": self.ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
        }

    def __len__(self) -> int:
        return len(self._entries)
