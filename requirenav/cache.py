"""
Revision-checked LRU cache.

Entries are keyed by file identity and tagged with the document revision
they were computed from. Looking an entry up with a different revision
evicts it, so stale trees and dependency tables are never served.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger("requirenav")

T = TypeVar("T")

DEFAULT_CACHE_SIZE = 100


@dataclass
class CacheEntry(Generic[T]):
    value: T
    revision: Hashable


class VersionedCache(Generic[T]):
    """LRU mapping from file identity to a value computed for one revision."""

    def __init__(self, capacity: int = DEFAULT_CACHE_SIZE, name: str = "cache"):
        if capacity <= 0:
            raise ValueError("Cache capacity must be positive")
        self.name = name
        self._capacity = capacity
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def get(self, identity: str, revision: Hashable) -> Optional[T]:
        """Return the cached value for ``revision``, evicting a stale entry."""
        entry = self._entries.get(identity)
        if entry is None:
            return None
        if entry.revision != revision:
            logger.debug(
                "%s: evicting %s (revision %s, requested %s)",
                self.name,
                identity,
                entry.revision,
                revision,
            )
            del self._entries[identity]
            return None
        self._entries.move_to_end(identity)
        return entry.value

    def set(self, identity: str, revision: Hashable, value: T) -> None:
        self._entries[identity] = CacheEntry(value, revision)
        self._entries.move_to_end(identity)
        while len(self._entries) > self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("%s: capacity reached, dropped %s", self.name, evicted)

    def get_or_compute(
        self, identity: str, revision: Hashable, factory: Callable[[], T]
    ) -> T:
        value = self.get(identity, revision)
        if value is None:
            value = factory()
            self.set(identity, revision, value)
        return value

    def resize(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("Cache capacity must be positive")
        self._capacity = capacity
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
