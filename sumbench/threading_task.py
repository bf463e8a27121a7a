import sys
import threading

# Iterations a worker runs between checks of the stop flag.
CHECK_EVERY = 1 << 16


class SumInterrupted(RuntimeError):
    """Raised when the coordinator is interrupted while waiting for workers."""


class SumWorkerFailed(RuntimeError):
    """Raised when a worker thread fails; no partial sum is returned."""


def worker_indices(index, num_threads, limit):
    """Indices summed by worker ``index``: index+1, index+1+T, ... up to limit."""
    return range(index + 1, limit + 1, num_threads)


def partial_sum(n, start, limit, step, stop=None):
    """Sums ``n * i`` over ``range(start, limit + 1, step)``.

    Returns None if ``stop`` gets set before the range is exhausted.
    """
    total = 0
    block = step * CHECK_EVERY
    for block_start in range(start, limit + 1, block):
        if stop is not None and stop.is_set():
            return None
        block_end = min(block_start + block, limit + 1)
        for i in range(block_start, block_end, step):
            total += n * i
    return total


def _start_all(threads):
    for thread in threads:
        thread.start()


def _join_all(threads):
    for thread in threads:
        thread.join()


def run_threaded_sum(num_threads, n, limit):
    """
    Sums ``n * i`` for ``i`` in ``[1, limit]`` across ``num_threads`` threads
    using fixed-stride interleaving.

    Each worker writes its partial sum into its own slot of ``results`` and
    the calling thread adds the slots up after joining every worker. If any
    worker raises, the whole sum fails with ``SumWorkerFailed``.
    """
    if num_threads < 1:
        raise ValueError(f"num_threads must be positive, got {num_threads}")
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")

    results = [0] * num_threads
    errors = [None] * num_threads
    stop = threading.Event()

    def worker(index):
        indices = worker_indices(index, num_threads, limit)
        try:
            results[index] = partial_sum(
                n, indices.start, limit, indices.step, stop
            )
        except BaseException as exc:
            errors[index] = exc
            stop.set()

    threads = [
        threading.Thread(
            target=worker, args=(i,), name=f"sum-worker-{i}", daemon=True
        )
        for i in range(num_threads)
    ]

    try:
        _start_all(threads)
        _join_all(threads)
    except KeyboardInterrupt as exc:
        stop.set()
        for thread in threads:
            if thread.ident is not None:
                thread.join()
        print(
            f"interrupted while waiting for {num_threads} sum workers",
            file=sys.stderr,
        )
        raise SumInterrupted(
            f"parallel sum with {num_threads} threads was interrupted"
        ) from exc

    for index, error in enumerate(errors):
        if error is not None:
            raise SumWorkerFailed(
                f"sum worker {index} of {num_threads} failed: "
                f"{type(error).__name__}: {error}"
            ) from error

    return sum(results)
