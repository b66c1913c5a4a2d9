"""Tiles Bounded Context - Tile Cache.

Fixed-capacity, least-recently-used store of loaded tiles keyed by each tile's
bottom-left GridRef. Pure in-memory logic, no I/O: a miss is a normal outcome
that tells the caller to load the tile and `allocate` it.

Recency is a logical clock shared by `read` and `allocate`, so "most recently
used" is well defined across both. Not safe for concurrent use; callers that
share a cache between threads must serialise access themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from domain.grid.value_objects import GridRef
from domain.tiles.value_objects import Tile

logger = logging.getLogger(__name__)

TileT = TypeVar("TileT", bound=Tile)


@dataclass
class CacheStats:
    """Running counters, for diagnostics only."""

    hits: int = 0
    misses: int = 0
    allocations: int = 0
    evictions: int = 0

    def __str__(self) -> str:
        return (
            f"Hits: {self.hits}, Miss: {self.misses}, "
            f"Allocations: {self.allocations}, Evictions: {self.evictions}"
        )


@dataclass
class _Slot:
    timestamp: int = 0
    ref: GridRef | None = None  # None = empty


@dataclass
class _Entry(Generic[TileT]):
    slot: int
    tile: TileT


class TileCache(Generic[TileT]):
    """LRU cache holding at most `capacity` tiles.

    Eviction picks an empty slot when one exists (lowest index first),
    otherwise the slot with the oldest timestamp. Timestamps come from one
    monotonically increasing counter, and ties break towards the lowest slot
    index so eviction order is deterministic.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Cache capacity must be at least 1, got {capacity}")
        self._slots = [_Slot() for _ in range(capacity)]
        self._entries: dict[GridRef, _Entry[TileT]] = {}
        self._timestamp = 0
        self.stats = CacheStats()

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, ref: object) -> bool:
        # Membership test only; does not count as a use
        return ref in self._entries

    def _touch(self, entry: _Entry[TileT]) -> None:
        self._timestamp += 1
        self._slots[entry.slot].timestamp = self._timestamp

    def read(self, ref: GridRef) -> TileT | None:
        """Return the tile keyed by `ref` and mark it most recently used."""
        entry = self._entries.get(ref)
        if entry is None:
            self.stats.misses += 1
            return None

        self._touch(entry)
        self.stats.hits += 1
        return entry.tile

    def _find_slot(self) -> int:
        oldest_idx = 0
        oldest_ts: int | None = None
        for idx, slot in enumerate(self._slots):
            if slot.ref is None:
                return idx
            if oldest_ts is None or slot.timestamp < oldest_ts:
                oldest_idx, oldest_ts = idx, slot.timestamp
        return oldest_idx

    def allocate(self, tile: TileT) -> None:
        """Insert `tile`, evicting the least recently used entry when full.

        Allocating a tile whose key is already cached keeps the existing entry
        and only refreshes its recency.
        """
        ref = tile.bottom_left
        existing = self._entries.get(ref)
        if existing is not None:
            self._touch(existing)
            return

        idx = self._find_slot()
        slot = self._slots[idx]
        if slot.ref is not None:
            logger.debug("Evicting tile %s from slot %d", slot.ref, idx)
            del self._entries[slot.ref]
            self.stats.evictions += 1

        self._entries[ref] = _Entry(slot=idx, tile=tile)
        slot.ref = ref
        self._touch(self._entries[ref])
        self.stats.allocations += 1

    def dump(self) -> str:
        """Multi-line description of every slot, for debugging."""
        lines = [f"Num slots: {self.capacity}", f"Timestamp: {self._timestamp}"]
        for idx, slot in enumerate(self._slots):
            lines.append(f"\t{idx}: ts={slot.timestamp} ref={slot.ref}")
        return "\n".join(lines)
