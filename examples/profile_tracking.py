#!/usr/bin/env python3
# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Example script demonstrating how to profile the segment search.

Feeds a simulated reading session through a ScriptTracker and prints the
search timing collected by its PerformanceMonitor.
"""

import cProfile
import pstats
from pathlib import Path

from cuetrack import PerformanceMonitor, ScriptTracker, SegmentSearchEngine

SAMPLE_SCRIPT = """
# Sample Script

This is a sample script for performance testing.
The quick brown fox jumps over the lazy dog.
She sells sea shells by the sea shore.
Peter Piper picked a peck of pickled peppers.
How much wood would a woodchuck chuck if a woodchuck could chuck wood.
"""


def simulate_session(tracker: ScriptTracker, chunk_size: int = 5) -> None:
    """Read the script in fixed-size batches, with one stale repeat."""
    words = tracker.words
    for pos in range(0, len(words), chunk_size):
        tracker.process_batch(words[pos:pos + chunk_size])

        # Speaker repeats the previous batch; it must not move the cursor
        if pos == 10:
            tracker.process_batch(words[pos:pos + chunk_size])


def main():
    """Run a profiled tracking session."""
    monitor = PerformanceMonitor(slow_search_ms=5)
    tracker = ScriptTracker(SAMPLE_SCRIPT, engine=SegmentSearchEngine(monitor=monitor))

    print("=" * 80)
    print("TRACKING PERFORMANCE PROFILING")
    print("=" * 80)
    print(f"Script loaded: {len(tracker.words)} words")
    print()

    simulate_session(tracker)
    print(f"Final position: {tracker.current_position} / {len(tracker.words)}")

    monitor.print_report()

    output_dir = Path(__file__).parent.parent / "profiling_results"
    report_path = output_dir / "tracking_profile.json"
    monitor.save_report(report_path)
    print(f"Detailed report saved to: {report_path}")
    print()

    print("=" * 80)
    print("DETAILED cProfile ANALYSIS")
    print("=" * 80)

    tracker.reset()
    profiler = cProfile.Profile()
    profiler.enable()
    simulate_session(tracker)
    profiler.disable()

    cprofile_path = output_dir / "tracking_cprofile.prof"
    profiler.dump_stats(cprofile_path)
    pstats.Stats(profiler).sort_stats("cumulative").print_stats(15)

    print(f"cProfile stats saved to: {cprofile_path}")
    print(f"Analyze with: python -m pstats {cprofile_path}")


if __name__ == "__main__":
    main()
