from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import jinja2
import pandas as pd

BASELINE_TASK = "single_thread"


TEMPLATE = jinja2.Template(
    """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <title>Summation Strategy Benchmarks</title>
  <style>
    body { font-family: 'Segoe UI', Arial, sans-serif; margin: 32px; background: #f6f7fb; color: #1f2933; }
    h1 { margin-bottom: 4px; }
    h2 { margin-top: 32px; border-bottom: 2px solid #4f46e5; padding-bottom: 8px; }
    .meta { color: #4b5563; margin-bottom: 24px; }

    .run-section { margin: 32px 0; padding: 24px; background: white; border-radius: 12px; box-shadow: 0 2px 8px rgba(0,0,0,0.08); }
    .run-meta { font-size: 13px; color: #6b7280; }

    table { border-collapse: collapse; width: 100%; margin-top: 12px; }
    th, td { border: 1px solid #e5e7eb; padding: 10px 12px; text-align: left; }
    th { background: #f3f4f6; font-weight: 600; }
    tr:nth-child(even) { background: #f9fafb; }
    .ok { color: #15803d; font-weight: 600; }
    .error { color: #b91c1c; font-weight: 600; }
    .best { background: #d1fae5; }

    .speedup { font-weight: bold; padding: 2px 8px; border-radius: 4px; }
    .speedup-good { background: #d1fae5; color: #15803d; }
    .speedup-neutral { background: #f3f4f6; color: #6b7280; }
    .speedup-bad { background: #fee2e2; color: #b91c1c; }

    .ft-badge { display: inline-block; padding: 2px 6px; border-radius: 4px; font-size: 11px; font-weight: 600; }
    .ft-yes { background: #7c3aed; color: white; }
    .ft-no { background: #e5e7eb; color: #6b7280; }

    code { background: #eef2ff; padding: 2px 4px; border-radius: 4px; }
  </style>
</head>
<body>
  <h1>Summation Strategy Benchmarks</h1>
  <div class="meta">Formula vs single thread vs parallel threads &bull; Generated from {{ file_count }} runs</div>

  {% for run in runs %}
  <div class="run-section">
    <h2>{{ run.source }}</h2>
    <div class="run-meta">
      n = <code>{{ run.multiplier }}</code>, N = <code>{{ run.limit }}</code>,
      Python {{ run.python_version }}, {{ run.cpu_count }} CPUs
      <span class="ft-badge {% if run.free_threaded %}ft-yes{% else %}ft-no{% endif %}">
        {% if run.free_threaded %}free-threaded{% else %}GIL{% endif %}
      </span>
    </div>
    <table>
      <tr>
        <th>Strategy</th><th>Threads</th><th>Result</th><th>Time</th>
        <th>Speedup vs single thread</th><th>Efficiency</th><th>Status</th>
      </tr>
      {% for row in run.rows %}
      <tr{% if row.name == run.fastest %} class="best"{% endif %}>
        <td>{{ row.label }}</td>
        <td>{{ row.threads if row.threads else '-' }}</td>
        <td>{{ row.result if row.result is not none else '-' }}</td>
        <td>{{ row.elapsed_ms }}ms</td>
        <td>
          {% if row.speedup is not none %}
          <span class="speedup {% if row.speedup > 1.2 %}speedup-good{% elif row.speedup < 0.8 %}speedup-bad{% else %}speedup-neutral{% endif %}">{{ '%.2f' % row.speedup }}x</span>
          {% else %}-{% endif %}
        </td>
        <td>{{ '%.0f%%' % (row.efficiency * 100) if row.efficiency is not none else '-' }}</td>
        <td class="{{ 'ok' if row.status == 'ok' and row.matches_formula else 'error' }}">
          {{ row.status if row.matches_formula or row.status != 'ok' else 'mismatch' }}
          {% if row.notes %}<br /><small>{{ row.notes }}</small>{% endif %}
        </td>
      </tr>
      {% endfor %}
    </table>
  </div>
  {% endfor %}

  <details>
    <summary>Raw Results (click to expand)</summary>
    <table>
      <tr><th>Source</th><th>Name</th><th>Elapsed (ms)</th><th>RSS delta (MB)</th><th>Iterations</th><th>Status</th></tr>
      {% for row in all_rows %}
      <tr>
        <td>{{ row.source }}</td>
        <td>{{ row.name }}</td>
        <td>{{ row.elapsed_ms }}</td>
        <td>{{ '%.2f' % row.rss_delta_mb }}</td>
        <td>{{ row.iterations }}</td>
        <td class="{{ row.status }}">{{ row.status }}</td>
      </tr>
      {% endfor %}
    </table>
  </details>
</body>
</html>
"""
)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build HTML report from summation benchmark JSON files"
    )
    parser.add_argument(
        "--results", nargs="+", required=True, help="List of JSON result files"
    )
    parser.add_argument(
        "--output", default="results/report.html", help="Path to HTML report"
    )
    return parser.parse_args(argv)


def load_rows(paths: List[Path]) -> tuple[pd.DataFrame, List[Dict[str, Any]]]:
    """Load benchmark results into one frame plus per-run metadata."""
    records: List[Dict[str, Any]] = []
    runs: List[Dict[str, Any]] = []

    for path in paths:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)

        metadata = dict(payload.get("metadata", {}))
        metadata["source"] = str(path)
        runs.append(metadata)

        for row in payload.get("results", []):
            records.append(
                {
                    "source": str(path),
                    "name": row.get("name"),
                    "label": row.get("label", row.get("name")),
                    "category": row.get("category"),
                    "threads": row.get("threads", 0),
                    "result": row.get("result"),
                    "elapsed_ms": row.get("elapsed_ms", 0),
                    "rss_delta_mb": row.get("rss_delta_mb", 0.0),
                    "iterations": row.get("iterations", 0),
                    "status": row.get("status"),
                    "notes": row.get("notes"),
                    "matches_formula": row.get("matches_formula", False),
                }
            )

    df = pd.DataFrame(records, dtype=object)
    if not df.empty:
        # keep results as exact Python ints; only timings become numeric
        df = df.astype(
            {"elapsed_ms": "int64", "rss_delta_mb": "float64", "threads": "int64"}
        )
    return df, runs


def add_speedups(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add ``speedup`` and ``efficiency`` columns.

    Speedup is the single-threaded loop time divided by the task time within
    the same run. Efficiency is speedup per thread and only applies to the
    parallel tasks. Either is None when it cannot be computed (failed task,
    missing baseline, or a zero-millisecond measurement).
    """
    df = df.copy()
    baseline = (
        df[(df["name"] == BASELINE_TASK) & (df["status"] == "ok")]
        .set_index("source")["elapsed_ms"]
    )

    speedups: List[Optional[float]] = []
    efficiencies: List[Optional[float]] = []
    for _, row in df.iterrows():
        base = baseline.get(row["source"])
        speedup = None
        if (
            row["status"] == "ok"
            and row["category"] != "formula"
            and base is not None
            and row["elapsed_ms"] > 0
        ):
            speedup = float(base) / float(row["elapsed_ms"])
        efficiency = None
        if speedup is not None and row["category"] == "parallel":
            efficiency = speedup / row["threads"]
        speedups.append(speedup)
        efficiencies.append(efficiency)

    df["speedup"] = pd.Series(speedups, index=df.index, dtype=object)
    df["efficiency"] = pd.Series(efficiencies, index=df.index, dtype=object)
    return df


def fastest_loop(df: pd.DataFrame) -> Optional[str]:
    """Name of the quickest successful loop-based task, formula excluded."""
    loops = df[(df["status"] == "ok") & (df["category"] != "formula")]
    if loops.empty:
        return None
    return loops.loc[loops["elapsed_ms"].idxmin(), "name"]


def build_runs(df: pd.DataFrame, runs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    built: List[Dict[str, Any]] = []
    for metadata in runs:
        run_df = df[df["source"] == metadata["source"]]
        run = dict(metadata)
        run["rows"] = run_df.to_dict(orient="records")
        run["fastest"] = fastest_loop(run_df)
        run.setdefault("python_version", "?")
        run["python_version"] = str(run["python_version"]).split(" ")[0]
        built.append(run)
    return built


def render(paths: List[Path]) -> str:
    df, runs = load_rows(paths)
    if df.empty:
        df = pd.DataFrame(
            columns=["source", "name", "category", "status", "elapsed_ms", "threads"]
        )
    df = add_speedups(df)
    return TEMPLATE.render(
        file_count=len(paths),
        runs=build_runs(df, runs),
        all_rows=df.to_dict(orient="records"),
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    paths = [Path(p) for p in args.results]

    html = render(paths)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html, encoding="utf-8")
    print(f"Wrote report to {output_path}")


if __name__ == "__main__":
    main()
