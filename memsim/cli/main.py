from __future__ import annotations
import argparse
import sys
from ..config import SimConfig
from ..runtime.simulator import run as run_sim
from ..trace.loader import load_trace, write_trace
from ..trace.generator import generate_trace, PATTERNS
from ..utils.logging import get_logger, set_log_level
from ..utils.reporting import generate_report

logger = get_logger(__name__)


def cmd_run(args):
    """Handles the 'run' command."""
    config = SimConfig.from_args(args)
    set_log_level(config.log_level)

    print("--- Hierarchy Configuration ---")
    print(config)
    print("-------------------------------")

    if not config.trace:
        raise ValueError("No trace given (pass it as an argument or set 'trace' in the config file).")

    # 1. Load the trace
    accesses = load_trace(config.trace)

    # 2. Run simulation
    results, stats = run_sim(accesses, config)

    # 3. Generate all reports
    generate_report(results, accesses, config, stats)

    print(f"[OK] Simulation finished. Reports are in {config.report_dir}")


def cmd_gen_trace(args):
    """Handles the 'gen-trace' command."""
    accesses = generate_trace(args.pattern, args.count, base_address=args.base, stride=args.stride,
                              footprint=args.footprint, store_ratio=args.store_ratio, seed=args.seed)
    write_trace(args.output, accesses)
    print(f"[OK] Wrote {len(accesses)} accesses to {args.output}")


def _int_auto(value: str) -> int:
    return int(value, 0)


def build_parser():
    p = argparse.ArgumentParser(
        prog="memsim",
        description="Multi-level cache hierarchy simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- Run Command ---
    pr = sub.add_parser("run", help="Simulate a trace through the configured hierarchy",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)

    # Config file
    pr.add_argument("-c", "--config", type=str, default=None,
                    help="Path to YAML config file to override defaults")

    # Core args (set default=None to allow override from YAML)
    pr.add_argument("trace", nargs='?', default=None,
                    help="Path to trace file (optional if specified in config)")
    pr.add_argument("--report", type=str, default=None, dest="report_dir",
                    help="Directory to save simulation reports")
    pr.add_argument("--memory-latency", type=int, default=None, dest="memory_latency",
                    help="Main memory latency in cycles")
    pr.add_argument("--access-log", action="store_const", const=True, default=None, dest="access_log",
                    help="Print the per-access history")
    pr.add_argument("--log-level", type=str, default=None, dest="log_level",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                    help="Logging verbosity")
    pr.set_defaults(func=cmd_run)

    # --- Trace Generation Command ---
    pg = sub.add_parser("gen-trace", help="Generate a synthetic trace file",
                        formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    pg.add_argument("pattern", choices=PATTERNS, help="Access pattern")
    pg.add_argument("-n", "--count", type=int, default=1000, help="Number of accesses")
    pg.add_argument("-o", "--output", default="out/trace.txt", help="Output path for the trace")
    pg.add_argument("--base", type=_int_auto, default=0, help="Base address (hex with 0x or decimal)")
    pg.add_argument("--stride", type=int, default=64, help="Stride in bytes for the strided pattern")
    pg.add_argument("--footprint", type=int, default=64 * 1024,
                    help="Address range in bytes for the random pattern")
    pg.add_argument("--store-ratio", type=float, default=0.0, dest="store_ratio",
                    help="Fraction of accesses that are stores")
    pg.add_argument("--seed", type=int, default=None, help="Random seed")
    pg.set_defaults(func=cmd_gen_trace)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (ValueError, OSError) as e:
        logger.error("%s", e)
        sys.exit(2)


if __name__ == "__main__":
    main()
