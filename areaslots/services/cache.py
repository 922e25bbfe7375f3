"""
Per-owner read-through cache for store records.
"""

import logging
import time
from typing import Any, Callable, Dict, Tuple

logger = logging.getLogger(__name__)


class RecordCache:
    """
    Keeps the last fetched records of each owner for a bounded time.

    The cache is owned by the service that fetches records. Every write the
    service performs calls ``invalidate`` for the affected owner, so slots are
    never computed from bookings older than the last write.
    A ``ttl_seconds`` of zero disables caching.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._generations: Dict[str, int] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def get(self, owner_id: str) -> Any | None:
        """Return the cached value for an owner, or None when absent or expired."""
        entry = self._entries.get(owner_id)
        if entry is None:
            return None

        stored_at, value = entry
        if self._clock() - stored_at >= self._ttl_seconds:
            del self._entries[owner_id]
            logger.debug("Cache entry for owner %s expired", owner_id)
            return None

        return value

    def generation(self, owner_id: str) -> int:
        """Counter bumped by every invalidation of an owner."""
        return self._generations.get(owner_id, 0)

    def put(self, owner_id: str, value: Any, generation: int | None = None) -> None:
        """
        Store a value for an owner.

        When ``generation`` is given and the owner was invalidated since it was
        read, the value is stale and is dropped.
        """
        if self._ttl_seconds == 0:
            return
        if generation is not None and generation != self.generation(owner_id):
            logger.debug("Dropping stale records for owner %s", owner_id)
            return
        self._entries[owner_id] = (self._clock(), value)

    def invalidate(self, owner_id: str) -> None:
        """Drop the cached value of one owner."""
        self._generations[owner_id] = self.generation(owner_id) + 1
        if self._entries.pop(owner_id, None) is not None:
            logger.debug("Cache entry for owner %s invalidated", owner_id)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
