from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.cache_config import CacheLevelConfig, HierarchyConfig
from ..core.geometry import AddressParts, CacheGeometry
from ..core.geometry import decode_address as _decode
from ..isa.access import AccessResult, MemoryAccess
from .hierarchy import HierarchySimulator


def configure(hierarchy: HierarchyConfig) -> HierarchySimulator:
    """
    Validates a hierarchy configuration and returns a fresh, empty simulator.

    Raises ConfigError (NotPowerOfTwoError, AddressWidthExceededError) if any
    enabled level cannot be laid out; no simulator is created in that case.
    """
    return HierarchySimulator(hierarchy)


def decode_address(address: int, level_config: CacheLevelConfig, address_width: int = 32) -> AddressParts:
    """Address fields for a single cache configuration, independent of any simulator."""
    return _decode(address, CacheGeometry.from_config(level_config, address_width))


def run(hierarchy: HierarchyConfig, workload: Iterable[MemoryAccess],
        count: Optional[int] = None) -> Tuple[List[AccessResult], Dict[str, Any]]:
    """
    Runs a workload on a freshly configured hierarchy.

    Returns the access history and a stats dictionary (metrics snapshot plus
    per-level occupancy and eviction counts).
    """
    sim = configure(hierarchy)
    history = sim.run_workload(workload, count)
    stats = sim.snapshot_metrics().to_dict()
    stats["levels"] = {
        level.name: {
            "num_sets": level.geometry.num_sets,
            "ways": level.geometry.ways,
            "block_size_bytes": level.geometry.block_size_bytes,
            "latency_cycles": level.access_latency_cycles,
            "resident_blocks": level.occupancy(),
            "evictions": level.evictions,
        }
        for level in sim.levels
    }
    stats["memory_latency_cycles"] = sim.memory_latency_cycles
    return history, stats
