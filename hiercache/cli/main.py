from __future__ import annotations
import argparse
import sys
from ..config import SimConfig
from ..core.cache_config import (
    ASSOCIATIVITY_PRESETS,
    WORD_SIZE_BYTES,
    CacheLevelConfig,
    ConfigError,
    associativity_preset,
)
from ..core.geometry import AddressParts, CacheGeometry, decode_address
from ..runtime.simulator import run as run_sim
from ..utils.reporting import generate_report
from ..workload.generators import WORKLOADS, make_workload


def _int(value: str) -> int:
    """Accepts decimal, 0x-hex and 0b-binary integers."""
    return int(value, 0)


def _associativity(value: str):
    return "full" if value.lower() == "full" else int(value)


def cmd_run(args):
    """Handles the 'run' command."""
    config = SimConfig.from_args(args)

    print("--- Simulator Configuration ---")
    print(config)
    print("-----------------------------")

    hierarchy = config.to_hierarchy()
    workload = make_workload(config.workload, config.count, **config.workload_params())

    history, stats = run_sim(hierarchy, workload)

    generate_report(history, config, stats)

    print(f"[OK] Simulation finished. Reports are in {config.report_dir}")
    return 0


def cmd_decode(args):
    """Handles the 'decode' command."""
    if args.preset:
        level = associativity_preset(args.preset)
        word_size = args.word_size or WORD_SIZE_BYTES
    else:
        level = CacheLevelConfig(
            name="cache",
            size_kb=args.size_kb,
            block_size_bytes=args.block_size,
            associativity=args.associativity,
        )
        word_size = args.word_size
    geometry = CacheGeometry.from_config(level, args.address_width)
    parts = decode_address(args.address, geometry)
    fields = parts.fields(geometry, word_size)
    binary = parts.to_binary(geometry, word_size)
    ranges = AddressParts.field_ranges(geometry, word_size)

    print(f"Address 0x{args.address:x} ({geometry.address_width}-bit)")
    if args.preset:
        print(f"Preset: {level.name}")
    print(f"Cache: {geometry.total_size_bytes} B, {geometry.num_sets} sets x {geometry.ways} ways, "
          f"{geometry.block_size_bytes} B blocks")
    for name, (value, width) in fields.items():
        high, low = ranges[name]
        bit_range = f"{high}-{low}" if width else "-"
        print(f"  {name:<9} {width:>2} bits [{bit_range:>5}] = {value:<10} {binary[name]}")
    return 0


def build_parser():
    p = argparse.ArgumentParser(
        prog="hiercache",
        description="Multi-level cache hierarchy simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- Run Command ---
    pr = sub.add_parser("run", help="Run a workload through the cache hierarchy",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)

    # Config file
    pr.add_argument("-c", "--config", type=str, default=None,
                    help="Path to YAML config file to override defaults")

    # Core args (set default=None to allow override from YAML)
    pr.add_argument("workload", nargs='?', default=None, choices=sorted(WORKLOADS),
                    help="Workload to simulate (optional if specified in config)")
    pr.add_argument("-n", "--count", type=int, default=None,
                    help="Number of memory accesses")
    pr.add_argument("--seed", type=int, default=None,
                    help="Seed for the random workload")
    pr.add_argument("--report", type=str, default=None, dest="report_dir",
                    help="Directory to save simulation reports")

    workload_group = pr.add_argument_group('Workload Arguments')
    workload_group.add_argument("--base", type=_int, default=None, dest="base_address",
                                help="Base address of the workload")
    workload_group.add_argument("--word-size", type=int, default=None, dest="word_size",
                                help="Word size for the sequential workload")
    workload_group.add_argument("--stride", type=int, default=None,
                                help="Stride in bytes for the strided workload")
    workload_group.add_argument("--range", type=_int, default=None, dest="random_range",
                                help="Address range in bytes for the random workload")
    workload_group.add_argument("--write-prob", type=float, default=None, dest="write_probability",
                                help="Write probability for the random workload")
    workload_group.add_argument("--hot", type=_int, nargs="+", default=None, dest="hot_addresses",
                                help="Addresses cycled by the locality workload")

    hier_group = pr.add_argument_group('Hierarchy Arguments')
    hier_group.add_argument("--memory-latency", type=int, default=None, dest="memory_latency_cycles",
                            help="Main memory latency in cycles")
    hier_group.add_argument("--address-width", type=int, default=None, dest="address_width",
                            help="Address width in bits")
    for prefix in ("l1", "l2", "l3"):
        hier_group.add_argument(f"--{prefix}-size-kb", type=float, default=None, dest=f"{prefix}_size_kb",
                                help=f"{prefix.upper()} size in KB")
        hier_group.add_argument(f"--{prefix}-block-size", type=int, default=None, dest=f"{prefix}_block_size_bytes",
                                help=f"{prefix.upper()} block size in bytes")
        hier_group.add_argument(f"--{prefix}-assoc", type=_associativity, default=None, dest=f"{prefix}_associativity",
                                help=f"{prefix.upper()} ways per set, or 'full'")
        hier_group.add_argument(f"--{prefix}-latency", type=int, default=None, dest=f"{prefix}_latency_cycles",
                                help=f"{prefix.upper()} access latency in cycles")
        hier_group.add_argument(f"--no-{prefix}", action="store_const", const=False, default=None,
                                dest=f"{prefix}_enabled", help=f"Disable {prefix.upper()}")

    pr.set_defaults(func=cmd_run)

    # --- Decode Command ---
    pdc = sub.add_parser("decode", help="Split an address into tag, set index and offset",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    pdc.add_argument("address", type=_int, help="Address (decimal, 0x.. or 0b..)")
    pdc.add_argument("--size-kb", type=float, default=64, help="Cache size in KB")
    pdc.add_argument("--block-size", type=int, default=64, help="Block size in bytes")
    pdc.add_argument("--assoc", type=_associativity, default=1, dest="associativity",
                    help="Ways per set, or 'full'")
    pdc.add_argument("--address-width", type=int, default=32, help="Address width in bits")
    pdc.add_argument("--word-size", type=int, default=None,
                    help="Bytes per word; splits the offset into word and byte offsets")
    pdc.add_argument("--preset", choices=sorted(ASSOCIATIVITY_PRESETS), default=None,
                    help="Use a 32-byte teaching cache layout instead of --size-kb/--block-size/--assoc")
    pdc.set_defaults(func=cmd_decode)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
