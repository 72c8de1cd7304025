from __future__ import annotations
import json
from pathlib import Path
from typing import List, Dict, Any, Sequence
from ..config import SimConfig
from ..runtime.levels import AccessResult
from .logging import get_logger
from . import viz

logger = get_logger(__name__)


def _calculate_percentiles(data: List[float]) -> Dict[str, float]:
    """Calculates p50, p95, p99 without numpy."""
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


def aggregate_stats(history: Sequence[AccessResult], hierarchy: Sequence[str]) -> Dict[str, Dict[str, Any]]:
    """
    Attributes every access to the levels it passed through.

    Walking `hierarchy` top to bottom, each level above the one that serviced
    the access counts a miss and the servicing level counts a hit along with
    the access's total latency. A hit level that is not in `hierarchy` is
    logged and otherwise ignored.
    """
    stats_db = {name: {"hits": 0, "misses": 0, "total_latency": 0} for name in hierarchy}

    for res in history:
        if res.hit_level not in stats_db:
            logger.warning("Hit level %s not in hierarchy definition %s", res.hit_level, list(hierarchy))
            continue
        for level_name in hierarchy:
            if level_name == res.hit_level:
                stats_db[level_name]["hits"] += 1
                stats_db[level_name]["total_latency"] += res.total_cycles
                break
            stats_db[level_name]["misses"] += 1

    for s in stats_db.values():
        s["avg_latency"] = s["total_latency"] / s["hits"] if s["hits"] > 0 else 0.0
    return stats_db


def format_stats_table(aggregated: Dict[str, Dict[str, Any]], hierarchy: Sequence[str]) -> str:
    lines = ["=== Simulation Results (Aggregated) ===",
             f"{'Level':<15} {'Hits':>10} {'Misses':>10} {'Avg Latency (cyc)':>20}"]
    for level_name in hierarchy:
        s = aggregated.get(level_name, {"hits": 0, "misses": 0, "avg_latency": 0.0})
        lines.append(f"{level_name:<15} {s['hits']:>10} {s['misses']:>10} {s['avg_latency']:>20.0f}")
    return "\n".join(lines)


def format_access_log(history: Sequence[AccessResult], addresses: Sequence[int]) -> str:
    if len(history) != len(addresses):
        raise ValueError(f"History has {len(history)} results but {len(addresses)} addresses were given.")
    lines = ["=== Detailed History ==="]
    for i, (res, addr) in enumerate(zip(history, addresses)):
        lines.append(f"Access[{i:>4}] Addr=0x{addr:08x} Hit={res.hit_level:<15} Cyc={res.total_cycles:>6}")
    return "\n".join(lines)


def generate_report_json(results: Sequence[AccessResult], accesses: Sequence, config: SimConfig,
                         stats: Dict[str, Any]) -> Dict[str, Any]:
    """Generates a JSON-compatible dictionary from the simulation results."""
    hierarchy = stats.get("hierarchy", config.level_names)
    timeline = [
        {
            "index": i,
            "address": f"{address:#x}",
            "type": str(access_type),
            "hit_level": res.hit_level,
            "cycles": res.total_cycles,
        }
        for i, (res, (address, access_type)) in enumerate(zip(results, accesses))
    ]

    report_data = {
        "hierarchy": list(hierarchy),
        "total_cycles": sum(r.total_cycles for r in results),
        "aggregated": aggregate_stats(results, hierarchy),
        "latency_stats": _calculate_percentiles([r.total_cycles for r in results]),
        "timeline": timeline,
        "config": config.to_dict(),
    }
    report_data.update({k: v for k, v in stats.items() if k not in report_data})
    return report_data


def generate_report(results: Sequence[AccessResult], accesses: Sequence, config: SimConfig,
                    stats: Dict[str, Any]):
    """Generates all report artifacts."""
    report_data = generate_report_json(results, accesses, config, stats)
    output_dir = Path(config.report_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / "report.json", "w") as f:
        json.dump(report_data, f, indent=4)

    viz.export_latency_chart(report_data["timeline"], str(output_dir / "report.html"))

    hierarchy = report_data["hierarchy"]
    print(format_stats_table(report_data["aggregated"], hierarchy))
    print()
    print(viz.export_hit_histogram_ascii(report_data["aggregated"], hierarchy))

    if config.access_log:
        print()
        print(format_access_log(results, [address for address, _ in accesses]))

    levels = report_data.get("levels", {})
    if levels:
        print("\nPer-level Counters:")
        for name, counters in levels.items():
            print(f"  {name}: hits={counters['hits']} misses={counters['misses']} "
                  f"evictions={counters['evictions']} hit_rate={counters['hit_rate']:.2%}")
    if report_data.get("latency_stats"):
        print("\nAccess Latency Stats (cycles):")
        for key, value in report_data["latency_stats"].items():
            print(f"  {key:<5}: {value:.2f}")
    print(f"\nTotal Cycles: {report_data['total_cycles']}")
    print(f"\nReports generated in {output_dir.absolute()}")
