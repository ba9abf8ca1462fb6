from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import yaml
from pathlib import Path

from .core.cache_config import CacheLevelConfig, HierarchyConfig
from .utils.logging import get_logger
from .workload.generators import (
    DEFAULT_BASE_ADDRESS,
    DEFAULT_HOT_ADDRESSES,
    DEFAULT_RANDOM_RANGE,
    DEFAULT_STRIDE,
    DEFAULT_WORD_SIZE,
    DEFAULT_WRITE_PROBABILITY,
)

log = get_logger(__name__)

LEVEL_NAMES = ("l1", "l2", "l3")


@dataclass
class SimConfig:
    """Cache hierarchy simulator configuration (defaults < YAML < CLI)."""
    # Workload
    workload: str = "sequential"
    count: int = 100
    seed: Optional[int] = None

    # Workload parameters (only those of the selected workload are used)
    base_address: int = DEFAULT_BASE_ADDRESS
    word_size: int = DEFAULT_WORD_SIZE
    stride: int = DEFAULT_STRIDE
    random_range: int = DEFAULT_RANDOM_RANGE
    write_probability: float = DEFAULT_WRITE_PROBABILITY
    hot_addresses: List[int] = field(default_factory=lambda: list(DEFAULT_HOT_ADDRESSES))

    # Config file
    config_file: str = ""

    # Reporting
    report_dir: str = "out/default_run"

    # Addressing
    address_width: int = 32

    # L1
    l1_enabled: bool = True
    l1_size_kb: float = 32
    l1_block_size_bytes: int = 64
    l1_associativity: Any = 8
    l1_latency_cycles: int = 1

    # L2
    l2_enabled: bool = True
    l2_size_kb: float = 256
    l2_block_size_bytes: int = 64
    l2_associativity: Any = 8
    l2_latency_cycles: int = 10

    # L3
    l3_enabled: bool = True
    l3_size_kb: float = 8192
    l3_block_size_bytes: int = 64
    l3_associativity: Any = 16
    l3_latency_cycles: int = 30

    # Main memory
    memory_latency_cycles: int = 300

    def to_hierarchy(self) -> HierarchyConfig:
        """Builds the validated HierarchyConfig for the simulator."""
        levels = []
        for prefix in LEVEL_NAMES:
            levels.append(CacheLevelConfig(
                name=prefix.upper(),
                size_kb=getattr(self, f"{prefix}_size_kb"),
                block_size_bytes=getattr(self, f"{prefix}_block_size_bytes"),
                associativity=getattr(self, f"{prefix}_associativity"),
                access_latency_cycles=getattr(self, f"{prefix}_latency_cycles"),
                enabled=getattr(self, f"{prefix}_enabled"),
            ))
        return HierarchyConfig(levels=levels, memory_latency_cycles=self.memory_latency_cycles,
                               address_width=self.address_width)

    def workload_params(self) -> Dict[str, Any]:
        """Keyword arguments for the selected workload generator."""
        if self.workload == "sequential":
            return {"base": self.base_address, "word_size": self.word_size}
        if self.workload == "strided":
            return {"base": self.base_address, "stride": self.stride}
        if self.workload == "random":
            return {"base": self.base_address, "range_bytes": self.random_range,
                    "write_probability": self.write_probability, "seed": self.seed}
        if self.workload == "locality":
            return {"addresses": self.hot_addresses}
        return {}

    def update_from_yaml(self, yaml_path: str):
        """Updates config fields from a YAML file.

        Accepts flat keys (`l1_size_kb: 64`) or per-level mappings
        (`l1: {size_kb: 64, associativity: full}`).
        """
        with open(yaml_path, 'r') as f:
            yaml_config: Dict[str, Any] = yaml.safe_load(f) or {}
        for key, value in yaml_config.items():
            if key in LEVEL_NAMES and isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    self._set(f"{key}_{sub_key}", sub_value)
            else:
                self._set(key, value)

    def _set(self, key: str, value: Any):
        if hasattr(self, key):
            setattr(self, key, value)
        else:
            log.warning("Ignoring unknown config key: %s", key)

    @classmethod
    def from_args(cls, args) -> SimConfig:
        """Factory method to create a SimConfig from parsed argparse arguments."""
        config = cls()

        # 1. Load from YAML config file if provided
        if hasattr(args, 'config') and args.config:
            config.config_file = args.config
            if Path(config.config_file).exists():
                config.update_from_yaml(config.config_file)
            else:
                log.warning("Config file %s not found.", config.config_file)

        # 2. Override with command-line arguments
        arg_dict = vars(args)
        for key, value in arg_dict.items():
            if key == 'config':
                continue
            if value is not None and hasattr(config, key):
                setattr(config, key, value)

        return config
