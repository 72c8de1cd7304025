import json
import logging
from pathlib import Path
import pytest
from memsim.config import SimConfig, LevelConfig
from memsim.runtime.levels import AccessResult, AccessType
from memsim.runtime.simulator import run
from memsim.trace.loader import Access
from memsim.utils import reporting
from memsim.utils.reporting import (
    aggregate_stats, format_stats_table, format_access_log, generate_report_json, generate_report,
)

HIERARCHY = ["L1", "L2", "MainMemory"]


@pytest.fixture
def sample_history():
    return [
        AccessResult("MainMemory", 111),
        AccessResult("L1", 1),
        AccessResult("L2", 11),
        AccessResult("MainMemory", 111),
    ]


@pytest.fixture
def sample_config():
    return SimConfig(
        levels=[LevelConfig(name="L1", num_sets=1, num_ways=1, block_size=4, hit_latency=1)],
        memory_latency=100,
    )


def test_aggregate_attributes_misses_to_levels_above_the_hit(sample_history):
    stats = aggregate_stats(sample_history, HIERARCHY)

    assert stats["L1"] == {"hits": 1, "misses": 3, "total_latency": 1, "avg_latency": 1.0}
    assert stats["L2"]["hits"] == 1
    assert stats["L2"]["misses"] == 2
    assert stats["L2"]["avg_latency"] == 11.0
    assert stats["MainMemory"]["hits"] == 2
    assert stats["MainMemory"]["misses"] == 0
    assert stats["MainMemory"]["avg_latency"] == 111.0


def test_aggregate_warns_on_unknown_level(caplog):
    with caplog.at_level(logging.WARNING):
        stats = aggregate_stats([AccessResult("L9", 5), AccessResult("L1", 1)], HIERARCHY)
    assert "L9 not in hierarchy" in caplog.text
    assert stats["L1"]["hits"] == 1
    assert stats["L1"]["misses"] == 0


def test_aggregate_empty_history():
    stats = aggregate_stats([], HIERARCHY)
    assert all(s["hits"] == 0 and s["avg_latency"] == 0.0 for s in stats.values())


def test_format_stats_table(sample_history):
    table = format_stats_table(aggregate_stats(sample_history, HIERARCHY), HIERARCHY)
    lines = table.splitlines()
    assert lines[0] == "=== Simulation Results (Aggregated) ==="
    assert "Avg Latency (cyc)" in lines[1]
    assert lines[2].split() == ["L1", "1", "3", "1"]
    assert lines[4].split() == ["MainMemory", "2", "0", "111"]


def test_format_access_log(sample_history):
    log = format_access_log(sample_history[:2], [0x10, 0xABCDEF])
    lines = log.splitlines()
    assert lines[0] == "=== Detailed History ==="
    assert lines[1].startswith("Access[   0] Addr=0x00000010 Hit=MainMemory")
    assert lines[1].endswith("Cyc=   111")
    assert "Addr=0x00abcdef Hit=L1" in lines[2]

    with pytest.raises(ValueError):
        format_access_log(sample_history, [0])


def test_percentiles_empty_data():
    """Tests the _calculate_percentiles helper with empty data."""
    assert reporting._calculate_percentiles([]) == {}


def test_generate_report_json(sample_config):
    accesses = [Access(0, AccessType.LOAD), Access(0, AccessType.LOAD), Access(4, AccessType.STORE)]
    results, stats = run(accesses, sample_config)
    report = generate_report_json(results, accesses, sample_config, stats)

    assert report["hierarchy"] == ["L1", "MainMemory"]
    assert report["total_cycles"] == 101 + 1 + 101
    assert report["aggregated"]["L1"]["hits"] == 1
    assert report["timeline"][2] == {
        "index": 2, "address": "0x4", "type": "S", "hit_level": "MainMemory", "cycles": 101,
    }
    assert report["latency_stats"]["max"] == 101
    assert report["levels"]["L1"]["misses"] == 2
    assert report["num_accesses"] == 3
    json.dumps(report)


def test_generate_report_full(sample_config, tmp_path: Path, capsys):
    """Tests the main generate_report function that writes all artifacts."""
    sample_config.report_dir = str(tmp_path)
    sample_config.access_log = True
    accesses = [Access(0, AccessType.LOAD), Access(0, AccessType.LOAD)]
    results, stats = run(accesses, sample_config)

    generate_report(results, accesses, sample_config, stats)

    report = json.loads((tmp_path / "report.json").read_text())
    assert report["total_cycles"] == 102

    html_file = tmp_path / "report.html"
    assert html_file.exists()
    assert "Memory Hierarchy Access Latency" in html_file.read_text(encoding='utf-8')

    captured = capsys.readouterr()
    assert "=== Simulation Results (Aggregated) ===" in captured.out
    assert "=== Detailed History ===" in captured.out
    assert "ASCII Histogram" in captured.out
    assert "Total Cycles: 102" in captured.out
