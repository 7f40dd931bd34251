# src/gqltrace/core/ingest/identity.py
"""Shared identity index for operations and fields.

Every trace writer of one TraceStore shares one IdentityIndex. It maps
natural keys (operation signature, (type, field name) pair) to the ids
the store assigned, so repeat sightings skip the database entirely.

The index is a cache, not the source of truth. Two writers can both miss
on the same new key and race to insert it; the unique constraints in the
store decide the winner and the loser fetches the winner's id (see
OperationResolver and FieldResolver). The index only ever records ids the
store has confirmed, so it never disagrees with the store.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from threading import Lock
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class IdentityStats:
    """Counters for one key space."""

    size: int
    hits: int
    misses: int
    conflicts: int


class KeyIndex(Generic[K]):
    """Thread-safe natural key -> id map with hit/miss/conflict counters."""

    def __init__(self) -> None:
        self._ids: dict[K, int] = {}
        self._lock = Lock()
        self._hits = 0
        self._misses = 0
        self._conflicts = 0

    def get(self, key: K) -> int | None:
        """Return the cached id for key, counting the hit or miss."""
        with self._lock:
            found = self._ids.get(key)
            if found is None:
                self._misses += 1
            else:
                self._hits += 1
            return found

    def put(self, key: K, id_: int) -> int:
        """Record the store-assigned id for key and return the cached id.

        First writer wins. A later put with a different id means the store
        handed out two ids for one natural key; that is a broken unique
        constraint, not a race, so it raises.
        """
        with self._lock:
            existing = self._ids.setdefault(key, id_)
        if existing != id_:
            raise RuntimeError(f"Identity index already maps {key!r} to {existing}, store returned {id_}")
        return existing

    def record_conflict(self) -> None:
        """Count an insert that lost a uniqueness race to another writer."""
        with self._lock:
            self._conflicts += 1

    def clear(self) -> None:
        with self._lock:
            self._ids.clear()

    def stats(self) -> IdentityStats:
        with self._lock:
            return IdentityStats(size=len(self._ids), hits=self._hits, misses=self._misses, conflicts=self._conflicts)


class IdentityIndex:
    """Operation and field key spaces shared by all writers of one store."""

    def __init__(self) -> None:
        self.operations: KeyIndex[str] = KeyIndex()
        self.fields: KeyIndex[tuple[str, str]] = KeyIndex()

    def clear(self) -> None:
        """Drop all cached ids. The next lookups go to the store."""
        self.operations.clear()
        self.fields.clear()
