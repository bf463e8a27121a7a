"""
Summation strategies and the task table the driver runs.

Every strategy computes ``n * (1 + 2 + ... + limit)``:

1. FORMULA: closed-form triangular number, O(1)
2. SEQUENTIAL: plain Python loop on the calling thread, O(limit)
3. PARALLEL: the same loop split across worker threads by fixed-stride
   interleaving, O(limit / threads) per worker
"""

from __future__ import annotations

import sys
from typing import Any, Dict, List, Sequence

from sumbench.threading_task import run_threaded_sum

DEFAULT_MULTIPLIER = 1
DEFAULT_LIMIT = 100_000_000
DEFAULT_THREAD_COUNTS = (2, 4, 8, 16, 32)


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")


def _check_free_threaded() -> bool:
    """Check if running on free-threaded (no-GIL) Python."""
    try:
        return not sys._is_gil_enabled()
    except AttributeError:
        return False


# =============================================================================
# STRATEGIES
# =============================================================================


def formula_sum(n: int, limit: int) -> int:
    _check_limit(limit)
    return (limit * (limit + 1) // 2) * n


def sequential_sum(n: int, limit: int) -> int:
    """Single-threaded loop over ``1..limit``."""
    _check_limit(limit)
    total = 0
    for i in range(1, limit + 1):
        total += n * i
    return total


class ParallelSum:
    """
    Multi-threaded loop with a fixed worker count.

    A fresh set of threads is started and joined on every call; nothing is
    pooled or carried over between calls.
    """

    def __init__(self, threads: int) -> None:
        if threads < 1:
            raise ValueError(f"threads must be positive, got {threads}")
        self.threads = threads

    def calculate(self, n: int, limit: int) -> int:
        return run_threaded_sum(self.threads, n, limit)

    __call__ = calculate

    def __repr__(self) -> str:
        return f"ParallelSum(threads={self.threads})"


def expected_sum(n: int, limit: int) -> int:
    return n * limit * (limit + 1) // 2


# =============================================================================
# TASK BUILDER
# =============================================================================


def parallel_label(threads: int) -> str:
    return f"Parallel with {threads} threads"


def build_tasks(
    n: int = DEFAULT_MULTIPLIER,
    limit: int = DEFAULT_LIMIT,
    thread_counts: Sequence[int] = DEFAULT_THREAD_COUNTS,
) -> List[Dict[str, Any]]:
    """
    Build the ordered benchmark table.

    Each entry carries a display ``label`` (used verbatim in the output
    lines), a machine ``name`` for the JSON results, the ``threads`` used and
    a zero-argument ``fn`` bound to ``n`` and ``limit``.
    """
    tasks: List[Dict[str, Any]] = [
        {
            "name": "formula",
            "label": "Formula",
            "category": "formula",
            "threads": 0,
            "fn": lambda: formula_sum(n, limit),
        },
        {
            "name": "single_thread",
            "label": "Single thread",
            "category": "sequential",
            "threads": 1,
            "fn": lambda: sequential_sum(n, limit),
        },
    ]

    for threads in thread_counts:
        strategy = ParallelSum(threads)
        tasks.append(
            {
                "name": f"parallel_{threads}t",
                "label": parallel_label(threads),
                "category": "parallel",
                "threads": threads,
                # bind strategy now; a bare closure would see the last one
                "fn": lambda strategy=strategy: strategy(n, limit),
            }
        )

    return tasks
