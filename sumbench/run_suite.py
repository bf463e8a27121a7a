from __future__ import annotations

import argparse
import json
import os
import platform
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import psutil
from tqdm import tqdm

# Allow running as a script without installing the package
if __package__ is None:  # pragma: no cover - CLI convenience
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sumbench.tasks import (
    DEFAULT_LIMIT,
    DEFAULT_MULTIPLIER,
    DEFAULT_THREAD_COUNTS,
    _check_free_threaded,
    build_tasks,
    expected_sum,
)


def _median(values: List[float]) -> float:
    """Calculate median of a list of values."""
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    n = len(sorted_vals)
    if n % 2 == 1:
        return sorted_vals[n // 2]
    else:
        return (sorted_vals[n // 2 - 1] + sorted_vals[n // 2]) / 2


def _measure_task(name: str, fn, iterations: int = 1) -> Dict[str, Any]:
    """Run a task ``iterations`` times and return the median wall time in ms."""
    proc = psutil.Process()
    durations: List[int] = []
    rss_deltas: List[float] = []
    status = "ok"
    notes = None
    result: Optional[int] = None

    for i in range(iterations):
        rss_before = proc.memory_info().rss
        start = time.perf_counter_ns()
        try:
            result = fn()
        except Exception as exc:
            status = "error"
            notes = f"{type(exc).__name__}: {exc}"
            break
        elapsed_ms = (time.perf_counter_ns() - start) // 1_000_000
        rss_after = proc.memory_info().rss
        durations.append(elapsed_ms)
        rss_deltas.append((rss_after - rss_before) / (1024 * 1024))

    return {
        "name": name,
        "status": status,
        "elapsed_ms": int(_median(durations)),
        "rss_delta_mb": _median(rss_deltas),
        "result": result,
        "notes": notes,
        "iterations": len(durations),
        "all_durations_ms": durations,
    }


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative integer: {value}")
    return number


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare formula, single-threaded and multi-threaded summation"
    )
    parser.add_argument(
        "--multiplier",
        type=int,
        default=DEFAULT_MULTIPLIER,
        help=f"Multiplier n in n*(1+...+N) (default: {DEFAULT_MULTIPLIER})",
    )
    parser.add_argument(
        "--limit",
        type=_non_negative_int,
        default=DEFAULT_LIMIT,
        help=f"Upper bound N of the series (default: {DEFAULT_LIMIT:_})",
    )
    parser.add_argument(
        "--threads",
        type=_positive_int,
        nargs="+",
        default=list(DEFAULT_THREAD_COUNTS),
        help="Thread counts for the parallel runs (default: 2 4 8 16 32)",
    )
    parser.add_argument(
        "--iterations",
        type=_positive_int,
        default=1,
        help="Runs per strategy; the reported time is the median (default: 1)",
    )
    parser.add_argument(
        "--output", default=None, help="Optional path to a JSON results file"
    )
    return parser.parse_args(argv)


def _emit(measured: Dict[str, Any], label: str) -> None:
    if measured["status"] != "ok":
        tqdm.write(f"{label} error: {measured['notes']}", file=sys.stderr)
        return
    tqdm.write(f"{label} result: {measured['result']}")
    tqdm.write(f"{label} time: {measured['elapsed_ms']}ms")


def run(
    n: int,
    limit: int,
    thread_counts: Sequence[int],
    iterations: int = 1,
) -> List[Dict[str, Any]]:
    """Run every task in order, print its two output lines, return the rows."""
    expected = expected_sum(n, limit)
    tasks = build_tasks(n, limit, thread_counts)

    results: List[Dict[str, Any]] = []
    for task in tqdm(tasks, desc="strategies", file=sys.stderr, leave=False):
        measured = _measure_task(task["name"], task["fn"], iterations=iterations)
        measured["label"] = task["label"]
        measured["category"] = task["category"]
        measured["threads"] = task["threads"]
        measured["matches_formula"] = (
            measured["status"] == "ok" and measured["result"] == expected
        )
        _emit(measured, task["label"])
        if measured["status"] == "ok" and not measured["matches_formula"]:
            tqdm.write(
                f"{task['label']} mismatch: expected {expected}, "
                f"got {measured['result']}",
                file=sys.stderr,
            )
        results.append(measured)

    return results


def build_metadata(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "multiplier": args.multiplier,
        "limit": args.limit,
        "thread_counts": list(args.threads),
        "iterations": args.iterations,
        "free_threaded": _check_free_threaded(),
        "python_version": sys.version,
        "platform": platform.platform(),
        "cpu_count": os.cpu_count(),
        "memory_gb": round(psutil.virtual_memory().total / (1024**3), 2),
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    results = run(args.multiplier, args.limit, args.threads, args.iterations)

    if args.output:
        payload = {"metadata": build_metadata(args), "results": results}
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        print(f"Wrote results to {output_path}", file=sys.stderr)

    if all(row["matches_formula"] for row in results):
        return 0
    return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
