from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..isa.access import MEMORY


class ConfigError(ValueError):
    """Raised when a cache hierarchy configuration cannot be simulated."""


class NotPowerOfTwoError(ConfigError):
    """A size, block size, associativity or set count is not a power of two."""
    def __init__(self, field_name: str, value):
        self.field = field_name
        self.value = value
        super().__init__(f"{field_name} must be a power of two, got {value}")


class AddressWidthExceededError(ConfigError):
    """Offset and index bits do not fit into the configured address width."""


def is_power_of_two(n) -> bool:
    return isinstance(n, int) and n > 0 and (n & (n - 1)) == 0


# Associativity value meaning "one set holding every block".
FULLY_ASSOCIATIVE = None


@dataclass(frozen=True)
class CacheLevelConfig:
    """Configuration for a single cache level."""
    name: str = "L1"
    size_kb: float = 32
    block_size_bytes: int = 64
    associativity: Optional[int] = 1  # None (or "full" in YAML) = fully associative
    access_latency_cycles: int = 1
    enabled: bool = True

    # Derived properties
    size_bytes: int = field(init=False)
    num_blocks: int = field(init=False)

    def __post_init__(self):
        if not self.name:
            raise ConfigError("Cache level name must not be empty.")
        if isinstance(self.associativity, str):
            if self.associativity.lower() != "full":
                raise ConfigError(f"[{self.name}] Unknown associativity: {self.associativity!r}")
            object.__setattr__(self, "associativity", FULLY_ASSOCIATIVE)

        if not self.size_kb > 0:
            raise ConfigError(f"[{self.name}] Cache size must be positive.")
        if not self.access_latency_cycles >= 0:
            raise ConfigError(f"[{self.name}] Access latency must not be negative.")

        size_bytes = self.size_kb * 1024
        if size_bytes != int(size_bytes):
            raise ConfigError(f"[{self.name}] Cache size must be a whole number of bytes.")
        object.__setattr__(self, "size_bytes", int(size_bytes))

        if not is_power_of_two(self.size_bytes):
            raise NotPowerOfTwoError("size", self.size_bytes)
        if not is_power_of_two(self.block_size_bytes):
            raise NotPowerOfTwoError("block_size", self.block_size_bytes)
        if self.associativity is not FULLY_ASSOCIATIVE and not is_power_of_two(self.associativity):
            raise NotPowerOfTwoError("associativity", self.associativity)
        if self.block_size_bytes > self.size_bytes:
            raise AddressWidthExceededError(
                f"[{self.name}] Block size ({self.block_size_bytes} B) is larger than the cache ({self.size_bytes} B)."
            )

        object.__setattr__(self, "num_blocks", self.size_bytes // self.block_size_bytes)


@dataclass
class HierarchyConfig:
    """Ordered cache levels (fastest first) plus the terminal memory tier."""
    levels: List[CacheLevelConfig] = field(default_factory=list)
    memory_latency_cycles: int = 300
    address_width: int = 32

    def __post_init__(self):
        if not self.memory_latency_cycles >= 0:
            raise ConfigError("Memory latency must not be negative.")
        if not self.address_width > 0:
            raise ConfigError("Address width must be positive.")
        names = [level.name for level in self.levels]
        if len(names) != len(set(names)):
            raise ConfigError(f"Cache level names must be unique, got {names}")
        if any(name.lower() == MEMORY for name in names):
            raise ConfigError(f"'{MEMORY}' is reserved for the terminal memory tier and cannot name a cache level.")

    @property
    def enabled_levels(self) -> List[CacheLevelConfig]:
        return [level for level in self.levels if level.enabled]

    @classmethod
    def default(cls) -> HierarchyConfig:
        """L1/L2/L3 hierarchy with the course's default latencies."""
        return cls(
            levels=[
                CacheLevelConfig(name="L1", size_kb=32, block_size_bytes=64, associativity=8, access_latency_cycles=1),
                CacheLevelConfig(name="L2", size_kb=256, block_size_bytes=64, associativity=8, access_latency_cycles=10),
                CacheLevelConfig(name="L3", size_kb=8192, block_size_bytes=64, associativity=16, access_latency_cycles=30),
            ],
            memory_latency_cycles=300,
        )


# Teaching presets: one 32-byte cache (8 words of 4 bytes) laid out five ways.
WORD_SIZE_BYTES = 4
PRESET_CACHE_SIZE_KB = 0.03125

ASSOCIATIVITY_PRESETS: Dict[str, CacheLevelConfig] = {
    "direct": CacheLevelConfig(name="Direct-Mapped (1-way, 1 word)", size_kb=PRESET_CACHE_SIZE_KB,
                               block_size_bytes=WORD_SIZE_BYTES, associativity=1),
    "direct-2word": CacheLevelConfig(name="Direct-Mapped (1-way, 2 words)", size_kb=PRESET_CACHE_SIZE_KB,
                                     block_size_bytes=2 * WORD_SIZE_BYTES, associativity=1),
    "2-way": CacheLevelConfig(name="2-Way Set Associative", size_kb=PRESET_CACHE_SIZE_KB,
                              block_size_bytes=WORD_SIZE_BYTES, associativity=2),
    "4-way": CacheLevelConfig(name="4-Way Set Associative", size_kb=PRESET_CACHE_SIZE_KB,
                              block_size_bytes=WORD_SIZE_BYTES, associativity=4),
    "full": CacheLevelConfig(name="Fully Associative", size_kb=PRESET_CACHE_SIZE_KB,
                             block_size_bytes=WORD_SIZE_BYTES, associativity=FULLY_ASSOCIATIVE),
}


def associativity_preset(key: str) -> CacheLevelConfig:
    try:
        return ASSOCIATIVITY_PRESETS[key]
    except KeyError:
        raise ConfigError(f"Unknown preset: {key}. Choose from {sorted(ASSOCIATIVITY_PRESETS)}") from None
