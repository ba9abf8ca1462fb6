from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..isa.access import MEMORY, AccessResult


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the aggregated statistics."""
    total_accesses: int
    total_latency: int
    average_latency: float
    overall_hit_rate: float
    miss_rate: float
    memory_accesses: int
    hits: Dict[str, int] = field(default_factory=dict)
    misses: Dict[str, int] = field(default_factory=dict)
    hit_rates: Dict[str, float] = field(default_factory=dict)
    local_hit_rates: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_accesses": self.total_accesses,
            "total_latency": self.total_latency,
            "average_latency": self.average_latency,
            "overall_hit_rate": self.overall_hit_rate,
            "miss_rate": self.miss_rate,
            "memory_accesses": self.memory_accesses,
            "hits": dict(self.hits),
            "misses": dict(self.misses),
            "hit_rates": dict(self.hit_rates),
            "local_hit_rates": dict(self.local_hit_rates),
        }


class MetricsAggregator:
    """Running hit/miss counts and latency over an AccessResult stream."""
    def __init__(self, level_names: List[str]):
        self.level_names = list(level_names)
        self.reset()

    def reset(self):
        self.hits: Dict[str, int] = {name: 0 for name in self.level_names}
        self.misses: Dict[str, int] = {name: 0 for name in self.level_names}
        self.memory_accesses = 0
        self.total_accesses = 0
        self.total_latency = 0

    def record(self, result: AccessResult):
        # Every level above the supplying one was checked and missed.
        checked = self.level_names if result.is_memory else self.level_names[:result.level_index]
        for name in checked:
            self.misses[name] += 1
        if result.is_memory:
            self.memory_accesses += 1
        else:
            self.hits[result.hit_level] += 1
        self.total_accesses += 1
        self.total_latency += result.latency_cycles

    def hit_rate(self, level: str) -> float:
        """Share of all accesses that were served by `level`."""
        if self.total_accesses == 0:
            return 0.0
        if level == MEMORY:
            return self.memory_accesses / self.total_accesses
        return self.hits[level] / self.total_accesses

    def local_hit_rate(self, level: str) -> float:
        """Hits over the accesses that actually reached `level`."""
        reached = self.hits[level] + self.misses[level]
        if reached == 0:
            return 0.0
        return self.hits[level] / reached

    @property
    def overall_hit_rate(self) -> float:
        if self.total_accesses == 0:
            return 0.0
        return sum(self.hits.values()) / self.total_accesses

    @property
    def miss_rate(self) -> float:
        if self.total_accesses == 0:
            return 0.0
        return 1.0 - self.overall_hit_rate

    @property
    def average_latency(self) -> float:
        if self.total_accesses == 0:
            return 0.0
        return self.total_latency / self.total_accesses

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            total_accesses=self.total_accesses,
            total_latency=self.total_latency,
            average_latency=self.average_latency,
            overall_hit_rate=self.overall_hit_rate,
            miss_rate=self.miss_rate,
            memory_accesses=self.memory_accesses,
            hits=dict(self.hits),
            misses=dict(self.misses),
            hit_rates={name: self.hit_rate(name) for name in self.level_names},
            local_hit_rates={name: self.local_hit_rate(name) for name in self.level_names},
        )
