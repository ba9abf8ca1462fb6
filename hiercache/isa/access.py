from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

# hit_level reported when no cache level held the block
MEMORY = "memory"


class AccessKind(str, Enum):
    """Kind of a memory access."""

    READ = "read"
    WRITE = "write"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MemoryAccess:
    """A single memory reference issued by a workload."""
    address: int
    kind: AccessKind = AccessKind.READ
    sequence_id: int = 0

    def __post_init__(self):
        if not isinstance(self.address, int) or self.address < 0:
            raise ValueError(f"Address must be a non-negative integer, got {self.address!r}")
        if not isinstance(self.kind, AccessKind):
            object.__setattr__(self, "kind", AccessKind(self.kind))


@dataclass(frozen=True)
class AccessResult:
    """Outcome of one access: which tier supplied the block and what it cost."""
    access: MemoryAccess
    hit_level: str
    latency_cycles: int
    level_index: Optional[int] = None  # None when served by memory
    evicted: Tuple[Tuple[str, int], ...] = field(default_factory=tuple)

    @property
    def is_memory(self) -> bool:
        return self.level_index is None

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.access.sequence_id,
            "address": self.access.address,
            "type": str(self.access.kind),
            "hit_level": self.hit_level,
            "latency": self.latency_cycles,
            "evicted": [{"level": name, "block": block} for name, block in self.evicted],
        }
