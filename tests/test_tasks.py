import pytest

from sumbench.tasks import (
    DEFAULT_LIMIT,
    DEFAULT_MULTIPLIER,
    DEFAULT_THREAD_COUNTS,
    ParallelSum,
    build_tasks,
    expected_sum,
    formula_sum,
    sequential_sum,
)

THREAD_COUNTS = (1, 2, 3, 4, 8, 16, 32)

CASES = [
    (1, 100, 5050),
    (3, 10, 165),
    (1, 1, 1),
    (1, 0, 0),
    (7, 12_345, 7 * 12_345 * 12_346 // 2),
    (-2, 999, -2 * 999 * 1000 // 2),
]


@pytest.mark.parametrize("n, limit, expected", CASES)
def test_formula(n, limit, expected):
    assert formula_sum(n, limit) == expected


@pytest.mark.parametrize("n, limit, expected", CASES)
def test_sequential(n, limit, expected):
    assert sequential_sum(n, limit) == expected


@pytest.mark.parametrize("threads", THREAD_COUNTS)
@pytest.mark.parametrize("n, limit, expected", CASES)
def test_parallel_matches_formula(threads, n, limit, expected):
    assert ParallelSum(threads).calculate(n, limit) == expected


def test_all_strategies_agree_on_uneven_split():
    n, limit = 5, 10_007
    want = expected_sum(n, limit)
    assert formula_sum(n, limit) == want
    assert sequential_sum(n, limit) == want
    for threads in THREAD_COUNTS:
        assert ParallelSum(threads)(n, limit) == want


def test_repeated_calls_are_identical():
    strategy = ParallelSum(4)
    first = strategy.calculate(2, 50_000)
    assert [strategy.calculate(2, 50_000) for _ in range(3)] == [first] * 3
    assert sequential_sum(2, 50_000) == sequential_sum(2, 50_000) == first


def test_more_threads_than_indices():
    assert ParallelSum(32).calculate(1, 5) == 15


def test_invalid_arguments():
    with pytest.raises(ValueError):
        ParallelSum(0)
    with pytest.raises(ValueError):
        formula_sum(1, -1)
    with pytest.raises(ValueError):
        sequential_sum(1, -1)
    with pytest.raises(ValueError):
        ParallelSum(2).calculate(1, -1)


def test_defaults():
    assert DEFAULT_MULTIPLIER == 1
    assert DEFAULT_LIMIT == 100_000_000
    assert DEFAULT_THREAD_COUNTS == (2, 4, 8, 16, 32)


def test_build_tasks_order_and_labels():
    tasks = build_tasks(1, 100)
    assert [t["label"] for t in tasks] == [
        "Formula",
        "Single thread",
        "Parallel with 2 threads",
        "Parallel with 4 threads",
        "Parallel with 8 threads",
        "Parallel with 16 threads",
        "Parallel with 32 threads",
    ]
    assert [t["threads"] for t in tasks] == [0, 1, 2, 4, 8, 16, 32]
    assert all(t["fn"]() == 5050 for t in tasks)


def test_build_tasks_binds_each_thread_count():
    tasks = build_tasks(2, 10, thread_counts=(3, 5))
    parallel = [t for t in tasks if t["category"] == "parallel"]
    assert [t["name"] for t in parallel] == ["parallel_3t", "parallel_5t"]
    assert [t["fn"]() for t in parallel] == [110, 110]
