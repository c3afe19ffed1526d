"""Timing utilities for per-tier latency."""

import threading
import time
from collections import deque
from collections.abc import Generator
from contextlib import contextmanager
from typing import Callable, Dict

try:
    from typing import Self  # type: ignore
except ImportError:  # Python <3.11
    from typing_extensions import Self  # type: ignore


class LatencyTracker:
    """Track latency statistics over multiple measurements."""

    def __init__(self, name: str, window: int = 1000) -> None:
        """
        Initialize latency tracker.

        Args:
            name: Name of the operation being tracked
            window: Number of most recent measurements kept for statistics
        """
        self.name = name
        self._measurements: deque[float] = deque(maxlen=max(1, window))
        self._lock = threading.Lock()

    def record(self, latency: float) -> None:
        """
        Record a latency measurement.

        Args:
            latency: Latency in seconds
        """
        with self._lock:
            self._measurements.append(latency)

    def get_stats(self) -> Dict[str, float]:
        """
        Get latency statistics.

        Returns:
            Dictionary with count, min, max, mean, median, p95 and p99 latency
        """
        with self._lock:
            sorted_measurements = sorted(self._measurements)
        if not sorted_measurements:
            return {
                "count": 0,
                "min": 0.0,
                "max": 0.0,
                "mean": 0.0,
                "median": 0.0,
                "p95": 0.0,
                "p99": 0.0,
            }

        n = len(sorted_measurements)
        return {
            "count": n,
            "min": sorted_measurements[0],
            "max": sorted_measurements[-1],
            "mean": sum(sorted_measurements) / n,
            "median": sorted_measurements[n // 2],
            "p95": sorted_measurements[int(0.95 * n)],
            "p99": sorted_measurements[int(0.99 * n)],
        }

    def reset(self) -> None:
        """Reset all measurements."""
        with self._lock:
            self._measurements.clear()

    @contextmanager
    def measure(self) -> Generator[Self, None, None]:
        """
        Context manager to measure and record latency.

        Yields:
            LatencyTracker instance
        """
        start_time = time.perf_counter()
        try:
            yield self
        finally:
            self.record(time.perf_counter() - start_time)


@contextmanager
def timer() -> Generator[Callable[[], float], None, None]:
    """A context manager to measure execution time."""
    start_time = time.perf_counter()
    # Yield a function that returns the elapsed time in milliseconds
    yield lambda: (time.perf_counter() - start_time) * 1000
