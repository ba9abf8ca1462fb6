import dataclasses
import pytest
from hiercache.core.cache_config import (
    ASSOCIATIVITY_PRESETS,
    WORD_SIZE_BYTES,
    AddressWidthExceededError,
    CacheLevelConfig,
    ConfigError,
    HierarchyConfig,
    NotPowerOfTwoError,
    associativity_preset,
)
from hiercache.core.geometry import AddressParts, CacheGeometry, decode_address


def geometry(size_kb, block, assoc, width=32):
    return CacheGeometry.from_config(
        CacheLevelConfig(name="L1", size_kb=size_kb, block_size_bytes=block, associativity=assoc), width
    )


def test_direct_mapped_64kb():
    """64KB, 64B blocks, 1-way -> 1024 sets, 6/10/16 bits."""
    g = geometry(64, 64, 1)
    assert g.num_sets == 1024
    assert g.offset_bits == 6
    assert g.set_index_bits == 10
    assert g.tag_bits == 16
    assert g.is_direct_mapped


def test_fully_associative_64kb():
    """Associativity equal to the block count collapses to a single set."""
    g = geometry(64, 64, 1024)
    assert g.num_sets == 1
    assert g.ways == 1024
    assert g.set_index_bits == 0
    assert g.tag_bits == 26
    assert g.is_fully_associative


@pytest.mark.parametrize("assoc", [None, "full", 4096])
def test_fully_associative_sentinels(assoc):
    g = geometry(64, 64, assoc)
    assert g.num_sets == 1
    assert g.ways == 1024


@pytest.mark.parametrize("size_kb", [1, 4, 64, 1024])
@pytest.mark.parametrize("block", [4, 16, 64, 256])
@pytest.mark.parametrize("assoc", [1, 2, 8, None])
def test_partition_covers_address_width(size_kb, block, assoc):
    g = geometry(size_kb, block, assoc)
    assert g.offset_bits + g.set_index_bits + g.tag_bits == 32
    if g.is_fully_associative:
        assert g.set_index_bits == 0


def test_decode_fields():
    """1KB, 64B lines, 2-way -> 8 sets: 6 offset bits, 3 index bits."""
    g = geometry(1, 64, 2)
    address = 0b1111_101_101010
    tag, index, offset = decode_address(address, g)
    assert tag == 0b1111
    assert index == 5
    assert offset == 42


def test_decode_fully_associative_has_no_index():
    g = geometry(64, 64, None)
    parts = decode_address(0xDEADBEEF, g)
    assert parts.set_index == 0
    assert parts.offset == 0xDEADBEEF & 0x3F
    assert parts.tag == 0xDEADBEEF >> 6


@pytest.mark.parametrize("address", [0, 0x1000, 0x1234, 0xDEADBEEF, 0xFFFFFFFF])
@pytest.mark.parametrize("assoc", [1, 4, None])
def test_decode_reconstructs_address(address, assoc):
    g = geometry(32, 64, assoc)
    tag, index, offset = decode_address(address, g)
    rebuilt = g.reconstruct_address(tag, index)
    assert rebuilt == g.block_address(address)
    assert rebuilt | offset == address


def test_tag_truncated_to_address_width():
    g = geometry(1, 64, 1, width=16)
    parts = decode_address(0x1_2345, g)
    assert parts.tag < (1 << g.tag_bits)
    assert parts == decode_address(0x2345, g)


def test_binary_view():
    g = geometry(1, 64, 2)
    parts = decode_address(0b1111_101_101010, g)
    binary = parts.to_binary(g)
    assert binary["tag"] == "1111".zfill(23)
    assert binary["set_index"] == "101"
    assert binary["offset"] == "101010"
    assert AddressParts.field_ranges(g) == {"tag": (31, 9), "set_index": (8, 6), "offset": (5, 0)}


def test_binary_view_fully_associative_has_empty_index():
    g = geometry(1, 64, None)
    assert decode_address(0x40, g).to_binary(g)["set_index"] == ""


@pytest.mark.parametrize("kwargs, field", [
    (dict(size_kb=48), "size"),
    (dict(block_size_bytes=48), "block_size"),
    (dict(associativity=3), "associativity"),
])
def test_not_power_of_two(kwargs, field):
    with pytest.raises(NotPowerOfTwoError) as excinfo:
        CacheLevelConfig(**kwargs)
    assert excinfo.value.field == field
    assert isinstance(excinfo.value, ConfigError)


def test_block_larger_than_cache():
    with pytest.raises(AddressWidthExceededError):
        CacheLevelConfig(size_kb=0.0625, block_size_bytes=128)


def test_index_and_offset_exceed_address_width():
    config = CacheLevelConfig(size_kb=64, block_size_bytes=64, associativity=1)
    with pytest.raises(AddressWidthExceededError):
        CacheGeometry.from_config(config, address_width=8)


@pytest.mark.parametrize("kwargs", [
    dict(size_kb=0),
    dict(access_latency_cycles=-1),
    dict(name=""),
    dict(associativity="half"),
    dict(size_kb=0.0001),
])
def test_invalid_level_config(kwargs):
    with pytest.raises(ConfigError):
        CacheLevelConfig(**kwargs)


def test_word_and_byte_offset_view():
    # 8-byte blocks of two 4-byte words, 4 sets
    g = geometry(0.03125, 8, 1)
    parts = decode_address(0b1_11_1_10, g)
    assert parts.split_offset(4) == (1, 2)
    assert AddressParts.field_ranges(g, word_size=4) == {
        "tag": (31, 5), "set_index": (4, 3), "word_offset": (2, 2), "byte_offset": (1, 0),
    }
    assert parts.to_binary(g, word_size=4) == {
        "tag": "1".zfill(27), "set_index": "11", "word_offset": "1", "byte_offset": "10",
    }
    assert parts.fields(g)["offset"] == (6, 3)


def test_single_word_block_has_empty_word_offset():
    g = geometry(0.03125, 4, 1)
    binary = decode_address(0x1F, g).to_binary(g, word_size=4)
    assert binary["word_offset"] == ""
    assert binary["byte_offset"] == "11"


@pytest.mark.parametrize("word_size, error", [(3, NotPowerOfTwoError), (128, ConfigError)])
def test_invalid_word_size(word_size, error):
    g = geometry(1, 64, 1)
    with pytest.raises(error):
        AddressParts.field_ranges(g, word_size=word_size)


@pytest.mark.parametrize("key, sets, ways, block", [
    ("direct", 8, 1, 4),
    ("direct-2word", 4, 1, 8),
    ("2-way", 4, 2, 4),
    ("4-way", 2, 4, 4),
    ("full", 1, 8, 4),
])
def test_associativity_presets(key, sets, ways, block):
    g = CacheGeometry.from_config(associativity_preset(key))
    assert g.total_size_bytes == 8 * WORD_SIZE_BYTES
    assert (g.num_sets, g.ways, g.block_size_bytes) == (sets, ways, block)
    assert g.offset_bits + g.set_index_bits + g.tag_bits == 32


def test_preset_names_and_unknown_preset():
    assert ASSOCIATIVITY_PRESETS["2-way"].name == "2-Way Set Associative"
    with pytest.raises(ConfigError, match="Unknown preset"):
        associativity_preset("8-way")


def test_level_config_is_immutable():
    config = CacheLevelConfig(size_kb=1, associativity="full")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.enabled = False
    disabled = dataclasses.replace(config, enabled=False)
    assert not disabled.enabled
    assert disabled.associativity is None
    assert disabled.num_blocks == config.num_blocks == 16


@pytest.mark.parametrize("name", ["memory", "Memory"])
def test_memory_is_not_a_level_name(name):
    with pytest.raises(ConfigError, match="reserved"):
        HierarchyConfig(levels=[CacheLevelConfig(name=name)])
