import yaml
import argparse
import pytest
from pathlib import Path
from hiercache.config import SimConfig
from hiercache.core.cache_config import HierarchyConfig, NotPowerOfTwoError


def test_config_yaml_loading(tmp_path: Path):
    """Tests that config is loaded correctly from a YAML file."""
    yaml_content = {
        'workload': 'random',
        'count': 500,
        'l1_size_kb': 64,
        'memory_latency_cycles': 200,
    }
    yaml_file = tmp_path / "test.yaml"
    with open(yaml_file, 'w') as f:
        yaml.dump(yaml_content, f)

    # Simulate args parsed from CLI, where only config is provided
    args = argparse.Namespace(config=str(yaml_file), workload=None, count=None)

    config = SimConfig.from_args(args)

    assert config.workload == 'random'
    assert config.count == 500
    assert config.l1_size_kb == 64
    assert config.memory_latency_cycles == 200
    assert config.config_file == str(yaml_file)


def test_config_yaml_nested_levels(tmp_path: Path):
    """Per-level mappings are flattened into l<n>_* fields."""
    yaml_file = tmp_path / "levels.yaml"
    yaml_file.write_text(
        "l2:\n"
        "  enabled: false\n"
        "l3:\n"
        "  size_kb: 2048\n"
        "  associativity: full\n"
        "  latency_cycles: 40\n"
    )
    config = SimConfig()
    config.update_from_yaml(str(yaml_file))

    assert config.l2_enabled is False
    assert config.l3_size_kb == 2048
    assert config.l3_associativity == "full"
    assert config.l3_latency_cycles == 40

    hierarchy = config.to_hierarchy()
    assert [level.name for level in hierarchy.enabled_levels] == ["L1", "L3"]
    assert hierarchy.levels[2].associativity is None


def test_config_cli_override(tmp_path: Path):
    """Tests that CLI arguments override YAML settings."""
    yaml_content = {'workload': 'random', 'count': 500, 'seed': 1}
    yaml_file = tmp_path / "test.yaml"
    with open(yaml_file, 'w') as f:
        yaml.dump(yaml_content, f)

    args = argparse.Namespace(
        config=str(yaml_file),
        workload="strided",  # Override
        count=50,            # Override
        seed=None,
    )

    config = SimConfig.from_args(args)

    assert config.workload == 'strided'  # Overridden value
    assert config.count == 50            # Overridden value
    assert config.seed == 1              # Value from YAML


def test_config_missing_yaml_keeps_defaults(tmp_path: Path):
    args = argparse.Namespace(config=str(tmp_path / "missing.yaml"), count=None)
    config = SimConfig.from_args(args)
    assert config.count == SimConfig().count


def test_unknown_yaml_key_is_ignored(tmp_path: Path):
    yaml_file = tmp_path / "extra.yaml"
    yaml_file.write_text("l4_size_kb: 1\ncount: 7\n")
    config = SimConfig()
    config.update_from_yaml(str(yaml_file))
    assert config.count == 7
    assert not hasattr(config, "l4_size_kb")


def test_default_hierarchy():
    hierarchy = SimConfig().to_hierarchy()
    assert isinstance(hierarchy, HierarchyConfig)
    assert [(l.name, l.access_latency_cycles) for l in hierarchy.levels] == [("L1", 1), ("L2", 10), ("L3", 30)]
    assert hierarchy.memory_latency_cycles == 300
    assert hierarchy.levels == HierarchyConfig.default().levels


def test_invalid_level_surfaces_config_error():
    config = SimConfig(l2_block_size_bytes=96)
    with pytest.raises(NotPowerOfTwoError, match="block_size"):
        config.to_hierarchy()


def test_workload_params():
    config = SimConfig(workload="random", seed=9, random_range=0x800)
    assert config.workload_params() == {
        "base": 0x1000, "range_bytes": 0x800, "write_probability": 0.2, "seed": 9,
    }
    assert SimConfig(workload="locality", hot_addresses=[1, 2]).workload_params() == {"addresses": [1, 2]}
    assert SimConfig(workload="strided", stride=32).workload_params() == {"base": 0x1000, "stride": 32}
