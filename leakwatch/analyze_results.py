#!/usr/bin/env python3
"""
Soak run results analysis tool.

Reads the per-iteration snapshots written by a soak run (snapshots.jsonl) and
generates a memory-over-iterations chart plus a summary table, so growth that
never levels off stands out at a glance.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from tabulate import tabulate

from leakwatch.models.plot_params import PlotParams
from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.util.cal_utils import DEFAULT_LEAK_THRESHOLD, analyze_trend

SNAPSHOT_COLUMNS = ["iteration", "timestamp", "rss_bytes", "vms_bytes",
                    "heap_current_bytes", "heap_peak_bytes", "gc_objects"]


def load_snapshots(file_path) -> pd.DataFrame:
    """
    Load snapshots from a JSON-lines file.

    Args:
        file_path (Path): Path to snapshots.jsonl

    Returns:
        DataFrame with one row per iteration, ordered by iteration
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")
    if path.stat().st_size == 0:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    try:
        df = pd.read_json(path, lines=True, convert_dates=False, keep_default_dates=False)
    except ValueError as e:
        raise ValueError(f"Invalid JSON lines in snapshot file {path}: {e}") from e

    missing = [c for c in ("iteration", "rss_bytes") if c not in df.columns]
    if missing:
        raise ValueError(f"Snapshot file {path} is missing columns: {missing}")
    return df.sort_values("iteration").reset_index(drop=True)


def to_snapshots(df: pd.DataFrame) -> List[MemorySnapshot]:
    return [
        MemorySnapshot(
            iteration=int(row["iteration"]),
            timestamp=float(row.get("timestamp", 0.0)),
            rss_bytes=int(row["rss_bytes"]),
            vms_bytes=int(row.get("vms_bytes", 0)),
            heap_current_bytes=int(row.get("heap_current_bytes", 0)),
            heap_peak_bytes=int(row.get("heap_peak_bytes", 0)),
            gc_objects=int(row.get("gc_objects", 0)),
        )
        for _, row in df.iterrows()
    ]


def plot_memory_trend(params: PlotParams):

    fig, ax = plt.subplots(figsize=params.figsize)

    for label, values in params.series.items():
        ax.plot(params.x, values, marker="o", markersize=3, linewidth=1, label=label)

    # Overlay fitted growth line
    if params.trend_label and len(params.x) >= 2:
        values = params.series[params.trend_label]
        slope, intercept = np.polyfit(np.asarray(params.x, dtype=float), np.asarray(values, dtype=float), 1)
        fitted = slope * np.asarray(params.x, dtype=float) + intercept
        ax.plot(params.x, fitted, linestyle="--", color="gray",
                label=f"{params.trend_label} trend ({slope:+.3f}/iteration)")

    ax.set_xlabel(params.xlabel)
    ax.set_ylabel(params.ylabel)
    ax.set_title(params.title)
    ax.grid(True, alpha=0.3)
    ax.legend()

    plt.tight_layout()

    # save or show
    if params.output_path:
        output_path = Path(params.output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(output_path, dpi=160)
        print(f"✓ Saved: {output_path.name}")
    else:
        plt.show()
    plt.close(fig)


def summary_table(df: pd.DataFrame, threshold: float = DEFAULT_LEAK_THRESHOLD) -> str:
    trend = analyze_trend(to_snapshots(df), threshold)
    mb = 1024 * 1024
    table_data = [
        ["Iterations", f"{trend.samples_count}"],
        ["RSS first", f"{trend.first_rss_bytes / mb:.2f} MB"],
        ["RSS last", f"{trend.last_rss_bytes / mb:.2f} MB"],
        ["RSS peak", f"{trend.peak_rss_bytes / mb:.2f} MB"],
        ["RSS p95", f"{trend.rss.p95 / mb:.2f} MB"],
        ["RSS growth", f"{trend.rss_growth_bytes / 1024:+.0f} KB"],
        ["Growth / iteration", f"{trend.rss_growth_per_iteration / 1024:+.2f} KB"],
        ["Heap growth", f"{trend.heap_growth_bytes / 1024:+.0f} KB"],
        ["Leak suspected", "yes" if trend.leak_suspected else "no"],
    ]
    return tabulate(table_data, headers=["Metric", "Value"], tablefmt="github", stralign="left", numalign="left")


def build_analyze_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Plot memory growth from a soak run")
    ap.add_argument("snapshots", type=Path, help="Path to snapshots.jsonl written by a soak run")
    ap.add_argument("--out", type=Path, default=None,
                    help="Chart output path (default: memory_trend.png next to the snapshots)")
    ap.add_argument("--threshold", type=float, default=DEFAULT_LEAK_THRESHOLD,
                    help="Leak threshold in bytes of RSS growth per iteration")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    """Main function: load snapshots, print the summary table and render the chart."""
    args = build_analyze_parser().parse_args(argv)

    print("Loading snapshot data...")
    try:
        df = load_snapshots(args.snapshots)
    except FileNotFoundError as e:
        print(f"❌ {e}")
        return 2
    except ValueError as e:
        print(f"❌ {e}")
        return 3

    print(f"Loaded {len(df)} snapshots\n")
    print(summary_table(df, args.threshold))
    print()

    if df.empty:
        print("No snapshots to plot")
        return 0

    mb = 1024 * 1024
    output_path = args.out or args.snapshots.parent / "memory_trend.png"
    plot_memory_trend(PlotParams(
        x=df["iteration"].tolist(),
        series={
            "RSS (MB)": (df["rss_bytes"] / mb).tolist(),
            "Python heap (MB)": (df.get("heap_current_bytes", pd.Series([0] * len(df))) / mb).tolist(),
        },
        xlabel="Iteration",
        ylabel="Memory (MB)",
        title=f"Memory over {len(df)} iterations",
        output_path=str(output_path),
        trend_label="RSS (MB)",
    ))
    return 0


if __name__ == "__main__":
    sys.exit(main())
