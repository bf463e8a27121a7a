"""Formula vs single-threaded vs multi-threaded summation benchmarks."""
