from __future__ import annotations
from itertools import islice
from typing import Iterable, List, Optional

from ..core.cache_config import HierarchyConfig
from ..core.geometry import AddressParts, decode_address
from ..isa.access import MEMORY, AccessKind, AccessResult, MemoryAccess
from ..utils.logging import get_logger
from .cache_level import CacheLevel
from .metrics import MetricsAggregator, MetricsSnapshot

log = get_logger(__name__)


class HierarchySimulator:
    """
    Runs accesses through the enabled cache levels, fastest first, and then
    main memory.

    Each access is resolved completely before the next one: the first level
    holding the block supplies it, every faster level is filled with the
    block, and a miss everywhere fills all levels from memory.
    """
    def __init__(self, config: HierarchyConfig):
        self.config = config
        self.memory_latency_cycles = config.memory_latency_cycles
        self.levels: List[CacheLevel] = [
            CacheLevel(level_config, config.address_width) for level_config in config.enabled_levels
        ]
        self.history: List[AccessResult] = []
        self.metrics = MetricsAggregator([level.name for level in self.levels])
        self._next_sequence_id = 0
        for level in self.levels:
            log.info("Configured %r", level)

    def reset(self):
        """Clears cache contents, history and metrics together."""
        for level in self.levels:
            level.reset()
        self.history = []
        self.metrics.reset()
        self._next_sequence_id = 0

    def access(self, memory_access: MemoryAccess) -> AccessResult:
        address = memory_access.address
        hit_index: Optional[int] = None
        for i, level in enumerate(self.levels):
            if level.contains(address):
                hit_index = i
                break

        # Fill every level faster than the supplier (all of them on a memory access).
        fill_levels = self.levels if hit_index is None else self.levels[:hit_index]
        evicted = []
        for level in fill_levels:
            outcome = level.lookup_or_insert(level.block_address(address))
            if outcome.evicted is not None:
                evicted.append((level.name, outcome.evicted))
                log.debug("%s evicted block 0x%x from set %d", level.name, outcome.evicted, outcome.set_index)

        if hit_index is None:
            result = AccessResult(memory_access, MEMORY, self.memory_latency_cycles, None, tuple(evicted))
        else:
            supplier = self.levels[hit_index]
            result = AccessResult(memory_access, supplier.name, supplier.access_latency_cycles, hit_index, tuple(evicted))

        log.debug("#%d %s 0x%x -> %s (%d cycles)", memory_access.sequence_id, memory_access.kind,
                  address, result.hit_level, result.latency_cycles)
        self.history.append(result)
        self.metrics.record(result)
        self._next_sequence_id = max(self._next_sequence_id, memory_access.sequence_id + 1)
        return result

    def run_access(self, address: int, kind: AccessKind = AccessKind.READ) -> AccessResult:
        """Simulates a single access to `address`."""
        return self.access(MemoryAccess(address, AccessKind(kind), self._next_sequence_id))

    def run_workload(self, accesses: Iterable[MemoryAccess], count: Optional[int] = None) -> List[AccessResult]:
        """Simulates up to `count` accesses pulled from `accesses` (all of them if None)."""
        if count is not None and count < 0:
            raise ValueError(f"count must not be negative, got {count}")
        return [self.access(a) for a in islice(accesses, count)]

    def snapshot_metrics(self) -> MetricsSnapshot:
        return self.metrics.snapshot()

    def decode_address(self, address: int, level: int | str = 0) -> AddressParts:
        """Address fields under one level's geometry (index or name)."""
        return decode_address(address, self.get_level(level).geometry)

    def get_level(self, level: int | str) -> CacheLevel:
        if isinstance(level, str):
            for candidate in self.levels:
                if candidate.name == level:
                    return candidate
            raise KeyError(f"No enabled cache level named {level!r}")
        return self.levels[level]
