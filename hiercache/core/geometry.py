from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional, Tuple

from .cache_config import (
    AddressWidthExceededError,
    CacheLevelConfig,
    ConfigError,
    NotPowerOfTwoError,
    is_power_of_two,
)


@dataclass(frozen=True)
class CacheGeometry:
    """Bit layout of an address for one cache configuration.

    Recomputed from scratch whenever the configuration changes; a level never
    mutates its geometry.
    """
    block_size_bytes: int
    total_size_bytes: int
    ways: int
    num_sets: int
    offset_bits: int
    set_index_bits: int
    tag_bits: int
    address_width: int = 32

    @classmethod
    def from_config(cls, config: CacheLevelConfig, address_width: int = 32) -> CacheGeometry:
        # An associativity at or above the block count degenerates to a single set.
        if config.associativity is None or config.associativity >= config.num_blocks:
            ways = config.num_blocks
        else:
            ways = config.associativity

        num_sets = config.size_bytes // (ways * config.block_size_bytes)
        if not is_power_of_two(num_sets):
            raise NotPowerOfTwoError("num_sets", num_sets)

        offset_bits = config.block_size_bytes.bit_length() - 1
        set_index_bits = num_sets.bit_length() - 1
        if offset_bits + set_index_bits > address_width:
            raise AddressWidthExceededError(
                f"[{config.name}] {offset_bits} offset + {set_index_bits} index bits "
                f"exceed the {address_width}-bit address width."
            )

        return cls(
            block_size_bytes=config.block_size_bytes,
            total_size_bytes=config.size_bytes,
            ways=ways,
            num_sets=num_sets,
            offset_bits=offset_bits,
            set_index_bits=set_index_bits,
            tag_bits=address_width - set_index_bits - offset_bits,
            address_width=address_width,
        )

    @property
    def num_blocks(self) -> int:
        return self.num_sets * self.ways

    @property
    def is_fully_associative(self) -> bool:
        return self.num_sets == 1

    @property
    def is_direct_mapped(self) -> bool:
        return self.ways == 1

    @property
    def offset_mask(self) -> int:
        return self.block_size_bytes - 1

    def block_address(self, address: int) -> int:
        """Start address of the block containing `address`."""
        return address & ~self.offset_mask

    def reconstruct_address(self, tag: int, set_index: int, offset: int = 0) -> int:
        """Rebuilds an address from its fields."""
        return (tag << (self.set_index_bits + self.offset_bits)) | (set_index << self.offset_bits) | offset


def _word_bits(geometry: CacheGeometry, word_size: int) -> Tuple[int, int]:
    """(word offset bits, byte offset bits) splitting the block offset for `word_size`-byte words."""
    if not is_power_of_two(word_size):
        raise NotPowerOfTwoError("word_size", word_size)
    if word_size > geometry.block_size_bytes:
        raise ConfigError(f"Word size ({word_size} B) is larger than the block ({geometry.block_size_bytes} B).")
    byte_bits = word_size.bit_length() - 1
    return geometry.offset_bits - byte_bits, byte_bits


class AddressParts(NamedTuple):
    tag: int
    set_index: int
    offset: int

    @staticmethod
    def field_ranges(geometry: CacheGeometry, word_size: Optional[int] = None) -> Dict[str, Tuple[int, int]]:
        """(high bit, low bit) of each field; a zero-width field has high < low.

        With `word_size`, the block offset is reported as `word_offset` (which
        word of the block) and `byte_offset` (which byte of the word).
        """
        index_low = geometry.offset_bits
        tag_low = geometry.offset_bits + geometry.set_index_bits
        ranges = {
            "tag": (geometry.address_width - 1, tag_low),
            "set_index": (tag_low - 1, index_low),
        }
        if word_size is None:
            ranges["offset"] = (index_low - 1, 0)
        else:
            _, byte_bits = _word_bits(geometry, word_size)
            ranges["word_offset"] = (index_low - 1, byte_bits)
            ranges["byte_offset"] = (byte_bits - 1, 0)
        return ranges

    def split_offset(self, word_size: int) -> Tuple[int, int]:
        """(word index within the block, byte index within the word)."""
        return self.offset // word_size, self.offset % word_size

    def fields(self, geometry: CacheGeometry, word_size: Optional[int] = None) -> Dict[str, Tuple[int, int]]:
        """Field name -> (value, bit width), in the order of `field_ranges`."""
        result = {
            "tag": (self.tag, geometry.tag_bits),
            "set_index": (self.set_index, geometry.set_index_bits),
        }
        if word_size is None:
            result["offset"] = (self.offset, geometry.offset_bits)
        else:
            word_bits, byte_bits = _word_bits(geometry, word_size)
            word_offset, byte_offset = self.split_offset(word_size)
            result["word_offset"] = (word_offset, word_bits)
            result["byte_offset"] = (byte_offset, byte_bits)
        return result

    def to_binary(self, geometry: CacheGeometry, word_size: Optional[int] = None) -> Dict[str, str]:
        """Zero-padded bit strings of each field, as shown in the address view."""
        def bits(value: int, width: int) -> str:
            return format(value, "b").zfill(width) if width > 0 else ""

        return {name: bits(value, width) for name, (value, width) in self.fields(geometry, word_size).items()}


def decode_address(address: int, geometry: CacheGeometry) -> AddressParts:
    """Splits an address into tag, set index and block offset."""
    offset = address & geometry.offset_mask
    set_index = (address >> geometry.offset_bits) & (geometry.num_sets - 1)
    tag = (address >> (geometry.offset_bits + geometry.set_index_bits)) & ((1 << geometry.tag_bits) - 1)
    return AddressParts(tag, set_index, offset)
