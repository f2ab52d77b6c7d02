"""Keyed query cache owned by the synchronization engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator

from private_chat.exceptions import PrivateChatError
from private_chat.sync.keys import QueryKey

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Mutable per-key state. Only the engine touches these."""

    key: QueryKey
    value: Any = None
    fetching: bool = False
    last_fetched_at: float | None = None
    last_attempt_at: float | None = None
    error: PrivateChatError | None = None
    invalidated: bool = False
    invalidation_seq: int = 0
    ref_count: int = 0
    released_at: float | None = None

    @property
    def referenced(self) -> bool:
        return self.ref_count > 0


@dataclass(frozen=True)
class QuerySnapshot:
    """Read-only view of a cache entry handed to consumers."""

    key: QueryKey
    value: Any = None
    fetching: bool = False
    last_fetched_at: float | None = None
    error: PrivateChatError | None = None
    invalidated: bool = False

    @property
    def is_fetched(self) -> bool:
        """True once at least one fetch succeeded."""
        return self.last_fetched_at is not None

    @property
    def is_loading(self) -> bool:
        """True while the first fetch is still outstanding."""
        return not self.is_fetched and self.error is None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "error"
        if self.is_fetched:
            return "success"
        return "pending"


class QueryCache:
    """Map of :class:`QueryKey` to :class:`CacheEntry`."""

    def __init__(self):
        self._entries: dict[QueryKey, CacheEntry] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(list(self._entries.values()))

    def entry(self, key: QueryKey) -> CacheEntry:
        """Return the entry for ``key``, creating an empty one if needed."""
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key)
            self._entries[key] = entry
        return entry

    def peek(self, key: QueryKey) -> CacheEntry | None:
        return self._entries.get(key)

    def snapshot(self, key: QueryKey) -> QuerySnapshot:
        entry = self._entries.get(key)
        if entry is None:
            return QuerySnapshot(key=key)
        return QuerySnapshot(
            key=key,
            value=entry.value,
            fetching=entry.fetching,
            last_fetched_at=entry.last_fetched_at,
            error=entry.error,
            invalidated=entry.invalidated,
        )

    def invalidate(self, key: QueryKey) -> bool:
        """Flag ``key`` for refetch. Returns False if nothing is cached under it."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        entry.invalidated = True
        entry.invalidation_seq += 1
        return True

    def remove(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        count = len(self._entries)
        self._entries = {}
        logger.debug(f"Cleared {count} cache entries")
