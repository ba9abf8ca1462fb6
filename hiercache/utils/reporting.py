from __future__ import annotations
import json
from dataclasses import asdict
from pathlib import Path
from typing import List, Dict, Any
from ..config import SimConfig
from ..isa.access import MEMORY, AccessResult
from . import viz


def _calculate_percentiles(data: List[float]) -> Dict[str, float]:
    """Nearest-rank p50, p95 and p99 of the latencies, plus min, max and mean."""
    if not data:
        return {}
    data = sorted(data)
    n = len(data)
    return {
        "min": data[0],
        "max": data[-1],
        "p50": data[int(n * 0.5)],
        "p95": data[int(n * 0.95)],
        "p99": data[int(n * 0.99)],
        "avg": sum(data) / n
    }


def generate_report_json(history: List[AccessResult], config: SimConfig, stats: Dict[str, Any]) -> Dict[str, Any]:
    """Generates a JSON-compatible dictionary from the access history."""
    if not history:
        return {"total_accesses": 0, "hit_counts": {}, "timeline": [], "stats": stats}

    timeline = [result.to_json() for result in history]

    hit_counts: Dict[str, int] = {name: 0 for name in stats.get("levels", {})}
    for item in timeline:
        hit_counts[item["hit_level"]] = hit_counts.get(item["hit_level"], 0) + 1
    # memory always reported last
    hit_counts[MEMORY] = hit_counts.pop(MEMORY, 0)

    total_latency = sum(item["latency"] for item in timeline)
    report_data = {
        "total_accesses": len(timeline),
        "hit_counts": hit_counts,
        "hit_rates_pct": {level: f"{count / len(timeline):.2%}" for level, count in hit_counts.items()},
        "total_latency": total_latency,
        "latency_stats": _calculate_percentiles([item["latency"] for item in timeline]),
        "timeline": timeline,
        "config": asdict(config),
    }
    report_data.update(stats)
    return report_data


def generate_report(history: List[AccessResult], config: SimConfig, stats: Dict[str, Any]):
    """Generates all report artifacts."""
    report_data = generate_report_json(history, config, stats)
    output_dir = Path(config.report_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / "report.json", "w") as f:
        json.dump(report_data, f, indent=4)

    viz.export_access_chart(report_data['timeline'], str(output_dir / "report.html"))

    print(viz.export_summary_ascii(report_data['hit_counts'], report_data['total_accesses']))

    print(f"Reports generated in {output_dir.absolute()}")

    if report_data.get('latency_stats'):
        print("\nLatency Stats (cycles):")
        for key, value in report_data['latency_stats'].items():
            print(f"  {key:<5}: {value:.2f}")
    if report_data.get('levels'):
        print("\nLevels:")
        for name, level in report_data['levels'].items():
            print(f"  {name}: {level['num_sets']} sets x {level['ways']} ways, "
                  f"{level['resident_blocks']} resident, {level['evictions']} evictions")
    if 'overall_hit_rate' in report_data:
        print(f"\nOverall Hit Rate: {report_data['overall_hit_rate']:.2%}")
    if 'average_latency' in report_data:
        print(f"Average Latency: {report_data['average_latency']:.2f} cycles")
    print(f"Total Accesses: {report_data['total_accesses']}")
