# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Search timing statistics for diagnosing tracking latency.

The monitor is a passive observer: it records how long each segment search
took and reports aggregates. Nothing it records feeds back into matching.
"""

import json
import logging
import time
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Searches slower than this are logged as warnings
DEFAULT_SLOW_SEARCH_MS: float = 20.0

# Number of recent durations kept for percentile analysis
DEFAULT_HISTORY_SIZE: int = 1000


@dataclass
class SearchStats:
    """Snapshot of search timing statistics (durations in seconds)."""
    total_searches: int = 0
    total_time: float = 0.0
    max_search_time: float = 0.0
    min_search_time: float = float('inf')
    recent_times: list[float] = field(default_factory=list)

    @property
    def average_time(self) -> float:
        """Average time per search."""
        return self.total_time / self.total_searches if self.total_searches > 0 else 0.0

    @property
    def median_time(self) -> float:
        """Median of the recent search times."""
        if not self.recent_times:
            return 0.0
        sorted_times = sorted(self.recent_times)
        n = len(sorted_times)
        if n % 2 == 0:
            return (sorted_times[n//2 - 1] + sorted_times[n//2]) / 2
        return sorted_times[n//2]

    @property
    def p95_time(self) -> float:
        """95th percentile of the recent search times."""
        if not self.recent_times:
            return 0.0
        sorted_times = sorted(self.recent_times)
        idx = int(len(sorted_times) * 0.95)
        return sorted_times[min(idx, len(sorted_times) - 1)]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (milliseconds)."""
        return {
            "total_searches": self.total_searches,
            "total_time_ms": self.total_time * 1000,
            "average_time_ms": self.average_time * 1000,
            "median_time_ms": self.median_time * 1000,
            "p95_time_ms": self.p95_time * 1000,
            "min_time_ms": (self.min_search_time * 1000
                            if self.total_searches else 0.0),
            "max_time_ms": self.max_search_time * 1000,
        }


class PerformanceMonitor:
    """
    Collects search durations for a tracker.

    Usage:
        monitor = PerformanceMonitor()

        with monitor.time_section():
            engine_search()

        print(monitor.stats().average_time)
    """

    def __init__(
        self,
        slow_search_ms: float = DEFAULT_SLOW_SEARCH_MS,
        history_size: int = DEFAULT_HISTORY_SIZE
    ) -> None:
        """
        Initialize the monitor.

        Args:
            slow_search_ms: Searches slower than this are logged as warnings
            history_size: How many recent durations to keep for percentiles
        """
        self.slow_search_ms = slow_search_ms
        self._total_searches = 0
        self._total_time = 0.0
        self._max_time = 0.0
        self._min_time = float('inf')
        self._recent: deque[float] = deque(maxlen=history_size)

    def record(self, duration: float) -> None:
        """
        Record one search duration.

        Args:
            duration: Duration in seconds
        """
        self._total_searches += 1
        self._total_time += duration
        self._max_time = max(self._max_time, duration)
        self._min_time = min(self._min_time, duration)
        self._recent.append(duration)

        if duration * 1000 > self.slow_search_ms:
            logger.warning(
                "Slow search detected: %.2fms (avg: %.2fms)",
                duration * 1000,
                self._total_time / self._total_searches * 1000
            )

    @contextmanager
    def time_section(self) -> Iterator[None]:
        """Time the enclosed block and record it, even if it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(time.perf_counter() - start)

    def stats(self) -> SearchStats:
        """Get a snapshot of the collected statistics."""
        return SearchStats(
            total_searches=self._total_searches,
            total_time=self._total_time,
            max_search_time=self._max_time,
            min_search_time=self._min_time,
            recent_times=list(self._recent),
        )

    def reset(self) -> None:
        """Clear all collected statistics."""
        self._total_searches = 0
        self._total_time = 0.0
        self._max_time = 0.0
        self._min_time = float('inf')
        self._recent.clear()
        logger.info("Search statistics reset")

    def print_report(self) -> None:
        """Print a formatted summary of the statistics."""
        stats = self.stats()

        if not stats.total_searches:
            print("No searches recorded.")
            return

        print("\n" + "=" * 60)
        print("SEARCH PERFORMANCE REPORT")
        print("=" * 60)
        for key, value in stats.to_dict().items():
            if key == "total_searches":
                print(f"{key:<20} {value:>12d}")
            else:
                print(f"{key:<20} {value:>12.3f}")
        print("=" * 60 + "\n")

    def save_report(self, output_path: Path | str) -> None:
        """
        Save the statistics to a JSON file.

        Args:
            output_path: Path to save the JSON report
        """
        report = {
            "timestamp": time.time(),
            "stats": self.stats().to_dict()
        }

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2)

        logger.info("Performance report saved to %s", output_path)
