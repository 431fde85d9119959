"""Cache of article listings and search results, keyed per owner."""

import logging
from collections import OrderedDict
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from readinglist.config import get_settings

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_MAX_ENTRIES_PER_OWNER = 64
DEFAULT_MAX_OWNERS = 1000


@dataclass
class _OwnerEntries(Generic[V]):
    version: int
    entries: OrderedDict[Hashable, V] = field(default_factory=OrderedDict)


class ListingCache(Generic[V]):
    """
    Explicit cache keyed by ``(owner_id, status-or-query)``.

    Each owner has a version number that moves on every invalidation. Readers
    take the version before querying the store and hand it back to ``put``;
    a result computed against an older version is not cached, so a read that
    overlaps a mutation cannot resurrect stale data.

    Both levels are least-recently-used: an owner keeps at most
    ``max_entries_per_owner`` results and at most ``max_owners`` owners are
    tracked. Evicting an owner raises the version floor, so reads that were
    in flight for it cannot write back either.
    """

    def __init__(
        self,
        max_entries_per_owner: int = DEFAULT_MAX_ENTRIES_PER_OWNER,
        max_owners: int = DEFAULT_MAX_OWNERS,
    ):
        if max_entries_per_owner <= 0 or max_owners <= 0:
            raise ValueError("cache limits must be positive")
        self.max_entries_per_owner = max_entries_per_owner
        self.max_owners = max_owners
        self._owners: OrderedDict[str, _OwnerEntries[V]] = OrderedDict()
        self._tick = 0
        # Version of every owner not currently tracked
        self._floor = 0

    def version(self, owner_id: str) -> int:
        state = self._owners.get(owner_id)
        return state.version if state is not None else self._floor

    def get(self, owner_id: str, key: Hashable) -> V | None:
        state = self._owners.get(owner_id)
        if state is None or key not in state.entries:
            return None
        self._owners.move_to_end(owner_id)
        state.entries.move_to_end(key)
        return state.entries[key]

    def put(self, owner_id: str, key: Hashable, value: V, version: int | None = None) -> bool:
        """Store ``value``; returns False when ``version`` is out of date."""
        if version is not None and version != self.version(owner_id):
            logger.debug("Skipping stale cache write for %s %r", owner_id, key)
            return False

        state = self._touch(owner_id)
        state.entries[key] = value
        state.entries.move_to_end(key)
        while len(state.entries) > self.max_entries_per_owner:
            state.entries.popitem(last=False)
        return True

    def invalidate(self, owner_id: str) -> None:
        """Drop every cached listing and search result for ``owner_id``."""
        state = self._touch(owner_id)
        dropped = len(state.entries)
        state.entries.clear()
        state.version = self._next_tick()
        logger.debug("Invalidated %d cached listings for %s", dropped, owner_id)

    def clear(self) -> None:
        self._owners.clear()
        self._floor = self._next_tick()

    def _touch(self, owner_id: str) -> _OwnerEntries[V]:
        state = self._owners.get(owner_id)
        if state is None:
            state = _OwnerEntries(version=self._floor)
            self._owners[owner_id] = state
        self._owners.move_to_end(owner_id)
        while len(self._owners) > self.max_owners:
            evicted, _ = self._owners.popitem(last=False)
            self._floor = self._next_tick()
            logger.debug("Evicted cached listings for %s", evicted)
        return state

    def _next_tick(self) -> int:
        self._tick += 1
        return self._tick

    def __len__(self) -> int:
        return sum(len(state.entries) for state in self._owners.values())


settings = get_settings()

# Singleton instance
listing_cache: ListingCache = ListingCache(
    max_entries_per_owner=settings.listing_cache_max_entries,
    max_owners=settings.listing_cache_max_owners,
)
