from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..core.cache_config import CacheLevelConfig
from ..core.geometry import CacheGeometry, decode_address


@dataclass(frozen=True)
class LookupResult:
    hit: bool
    set_index: int
    way: int
    evicted: Optional[int] = None  # block address pushed out by this insert


class CacheLevel:
    """A set-associative store of block addresses with insertion-order eviction.

    Each set is a fixed array of way slots. Every filled slot carries the stamp
    of the insert that filled it; the victim in a full set is the slot with the
    smallest stamp. Hits never touch the stamps, so this is FIFO, not LRU.
    """
    def __init__(self, config: CacheLevelConfig, address_width: int = 32):
        self.name = config.name
        self.geometry = CacheGeometry.from_config(config, address_width)
        self.access_latency_cycles = config.access_latency_cycles

        self.sets: List[List[Optional[int]]] = []
        self.stamps: List[List[int]] = []
        self._where: Dict[int, Tuple[int, int]] = {}
        self._next_stamp = 0
        self.evictions = 0
        self.reset()

    def reset(self):
        """Empties every set."""
        ways = self.geometry.ways
        self.sets = [[None] * ways for _ in range(self.geometry.num_sets)]
        self.stamps = [[0] * ways for _ in range(self.geometry.num_sets)]
        self._where = {}
        self._next_stamp = 0
        self.evictions = 0

    def block_address(self, address: int) -> int:
        return self.geometry.block_address(address)

    def set_index_of(self, block_address: int) -> int:
        return decode_address(block_address, self.geometry).set_index

    def contains(self, block_address: int) -> bool:
        """Peek: is the block resident? Never mutates."""
        return self.block_address(block_address) in self._where

    def lookup_or_insert(self, block_address: int) -> LookupResult:
        """Returns a hit if the block is resident, otherwise inserts it."""
        block_address = self.block_address(block_address)
        location = self._where.get(block_address)
        if location is not None:
            set_index, way = location
            return LookupResult(True, set_index, way)

        set_index = self.set_index_of(block_address)
        cache_set = self.sets[set_index]
        evicted = None
        try:
            way = cache_set.index(None)
        except ValueError:
            way = self._victim_way(set_index)
            evicted = cache_set[way]
            del self._where[evicted]
            self.evictions += 1

        cache_set[way] = block_address
        self.stamps[set_index][way] = self._next_stamp
        self._next_stamp += 1
        self._where[block_address] = (set_index, way)
        return LookupResult(False, set_index, way, evicted)

    def _victim_way(self, set_index: int) -> int:
        """Way holding the earliest-inserted block of a full set."""
        stamps = self.stamps[set_index]
        return min(range(len(stamps)), key=stamps.__getitem__)

    def set_contents(self, set_index: int) -> List[int]:
        """Resident blocks of one set, oldest insert first."""
        filled = [(self.stamps[set_index][w], block) for w, block in enumerate(self.sets[set_index]) if block is not None]
        return [block for _, block in sorted(filled)]

    def resident_blocks(self) -> List[int]:
        return sorted(self._where)

    def occupancy(self) -> int:
        return len(self._where)

    def __repr__(self) -> str:
        g = self.geometry
        return (f"CacheLevel({self.name}, {g.total_size_bytes} B, {g.num_sets} sets x {g.ways} ways, "
                f"{g.block_size_bytes} B blocks, {self.access_latency_cycles} cycles)")
