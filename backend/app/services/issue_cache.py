"""Read-through cache for issue listings.

Entries expire after a fixed wall-clock TTL. There is no other eviction: the
whole cache is dropped whenever any issue write commits. Each clear bumps
``generation``; a listing read under an older generation is not stored.
"""

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from backend.app.config import settings

logger = logging.getLogger(__name__)


class IssueCache:
    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self.generation = 0

    @staticmethod
    def make_key(filters: dict[str, Any]) -> str:
        return json.dumps(filters, sort_keys=True, default=str)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, generation: int | None = None) -> None:
        if generation is not None and generation != self.generation:
            logger.debug("Dropping stale listing for %s", key)
            return
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        if self._entries:
            logger.debug("Clearing issue cache (%d entries)", len(self._entries))
        self._entries.clear()
        self.generation += 1

    def __len__(self) -> int:
        return len(self._entries)


issue_cache = IssueCache(ttl=settings.cache_ttl_seconds)
