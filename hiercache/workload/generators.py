from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional, Sequence

import numpy as np

from ..isa.access import AccessKind, MemoryAccess

DEFAULT_BASE_ADDRESS = 0x1000
DEFAULT_WORD_SIZE = 4
DEFAULT_STRIDE = 256
DEFAULT_RANDOM_RANGE = 0x10000  # 64KB
DEFAULT_WRITE_PROBABILITY = 0.2
DEFAULT_HOT_ADDRESSES = (0x1000, 0x1100, 0x1200, 0x1300, 0x1400)


def _check_count(count: int):
    if count < 0:
        raise ValueError(f"count must not be negative, got {count}")


def _check_address(address: int, what: str):
    if address < 0:
        raise ValueError(f"{what} must not be negative, got {address}")


# Each public generator validates eagerly and returns a lazy inner generator, so
# bad parameters fail at construction rather than midway through a run.

def sequential(count: int, base: int = DEFAULT_BASE_ADDRESS, word_size: int = DEFAULT_WORD_SIZE) -> Iterator[MemoryAccess]:
    """Consecutive words: base, base + word_size, base + 2 * word_size, ..."""
    _check_count(count)
    _check_address(base, "base")
    if word_size <= 0:
        raise ValueError(f"word_size must be positive, got {word_size}")

    def generate():
        for i in range(count):
            yield MemoryAccess(base + i * word_size, AccessKind.READ, i)
    return generate()


def strided(count: int, stride: int = DEFAULT_STRIDE, base: int = DEFAULT_BASE_ADDRESS) -> Iterator[MemoryAccess]:
    """base, base + stride, base + 2 * stride, ..."""
    _check_count(count)
    _check_address(base, "base")
    if count > 0:
        _check_address(base + (count - 1) * stride, "last strided address")

    def generate():
        for i in range(count):
            yield MemoryAccess(base + i * stride, AccessKind.READ, i)
    return generate()


def random_access(count: int, range_bytes: int = DEFAULT_RANDOM_RANGE,
                  write_probability: float = DEFAULT_WRITE_PROBABILITY,
                  base: int = DEFAULT_BASE_ADDRESS, seed: Optional[int] = None) -> Iterator[MemoryAccess]:
    """Uniform addresses in [base, base + range_bytes); writes with `write_probability`.

    Only reproducible when `seed` is given.
    """
    _check_count(count)
    _check_address(base, "base")
    if range_bytes <= 0:
        raise ValueError(f"range_bytes must be positive, got {range_bytes}")
    if not 0.0 <= write_probability <= 1.0:
        raise ValueError(f"write_probability must be within [0, 1], got {write_probability}")

    def generate():
        rng = np.random.default_rng(seed)
        for i in range(count):
            address = base + int(rng.integers(0, range_bytes))
            kind = AccessKind.WRITE if rng.random() < write_probability else AccessKind.READ
            yield MemoryAccess(address, kind, i)
    return generate()


def hot_set(count: int, addresses: Sequence[int] = DEFAULT_HOT_ADDRESSES) -> Iterator[MemoryAccess]:
    """Cycles through a small fixed list of addresses (temporal locality)."""
    _check_count(count)
    addresses = list(addresses)
    if not addresses:
        raise ValueError("hot_set needs at least one address")
    for address in addresses:
        _check_address(address, "hot address")

    def generate():
        for i in range(count):
            yield MemoryAccess(addresses[i % len(addresses)], AccessKind.READ, i)
    return generate()


@dataclass(frozen=True)
class Workload:
    name: str
    description: str
    generate: Callable[..., Iterator[MemoryAccess]]


WORKLOADS: Dict[str, Workload] = {
    "sequential": Workload("Sequential Access", "Accesses consecutive memory addresses", sequential),
    "strided": Workload("Strided Access", "Accesses memory with a fixed stride", strided),
    "random": Workload("Random Access", "Random memory accesses within a range", random_access),
    "locality": Workload("Temporal Locality", "Repeatedly accesses the same small set of addresses", hot_set),
}


def make_workload(name: str, count: int, **params) -> Iterator[MemoryAccess]:
    """Builds a registered workload by key, forwarding generator parameters."""
    if name not in WORKLOADS:
        raise ValueError(f"Unknown workload: {name}. Choose from {sorted(WORKLOADS)}")
    return WORKLOADS[name].generate(count, **params)
