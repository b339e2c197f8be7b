# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Replays a saved transcript through a tracker for debugging.

Each transcript line is treated as one finalized recognition result and
processed synchronously, without debounce, so a replay is deterministic and
shows exactly which batches moved the cursor.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Literal, TextIO

from .config import DEFAULT_PRECISION
from .script import split_transcript
from .tracker import ScriptSource, ScriptTracker

EventType = Literal["advance", "FORWARD_JUMP", "no_change"]

# Advances larger than this are flagged as jumps in the log
FORWARD_JUMP_WORDS: int = 5


@dataclass
class ReplayEvent:
    """The outcome of one transcript line."""
    transcript_line: int
    transcript_text: str
    position_before: int
    position_after: int
    event_type: EventType
    rejection: str | None = None


def load_transcript(path: Path) -> list[str]:
    """Load transcript file and extract transcript lines.

    Filters out metadata lines (starting with '===') and empty lines.
    """
    lines: list[str] = []
    with open(path, encoding='utf-8') as f:
        for line in f:
            stripped_line: str = line.strip()
            if stripped_line.startswith('===') or not stripped_line:
                continue
            lines.append(stripped_line)
    return lines


def _classify(before: int, after: int) -> EventType:
    if after > before + FORWARD_JUMP_WORDS:
        return "FORWARD_JUMP"
    if after > before:
        return "advance"
    return "no_change"


def replay_transcript(
    transcript_lines: list[str],
    script: ScriptSource,
    precision: int = DEFAULT_PRECISION,
    output: TextIO | None = None,
    verbose: bool = False
) -> list[ReplayEvent]:
    """Replay transcript lines through a fresh tracker.

    Args:
        transcript_lines: Lines of transcript text, one batch per line
        script: The script to track
        precision: Matching precision
        output: Optional file handle for a readable log
        verbose: If True, log every line. If False, only log jumps.

    Returns:
        List of all replay events
    """
    tracker = ScriptTracker(script, precision=precision)
    events: list[ReplayEvent] = []

    if output:
        output.write("=" * 80 + "\n")
        output.write("TRANSCRIPT REPLAY LOG\n")
        output.write(f"Generated: {datetime.now().isoformat()}\n")
        output.write(f"Script words: {len(tracker.words)}\n")
        output.write(f"Transcript lines: {len(transcript_lines)}\n")
        output.write(f"Precision: {tracker.precision}\n")
        output.write("=" * 80 + "\n\n")

    for line_num, line in enumerate(transcript_lines, start=1):
        before: int = tracker.current_position
        tracker.process_batch(split_transcript(line))
        after: int = tracker.current_position

        event = ReplayEvent(
            transcript_line=line_num,
            transcript_text=line,
            position_before=before,
            position_after=after,
            event_type=_classify(before, after),
            rejection=(tracker.last_rejection.value
                       if tracker.last_rejection else None)
        )
        events.append(event)

        if output and (verbose or event.event_type == "FORWARD_JUMP"):
            output.write(f"--- Line {line_num}: \"{line[:60]}\" ---\n")
            output.write(f"  pos: {before} -> {after} ({event.event_type})")
            if event.rejection:
                output.write(f" rejected: {event.rejection}")
            output.write("\n")

    if output:
        advances = [e for e in events if e.event_type == "advance"]
        jumps = [e for e in events if e.event_type == "FORWARD_JUMP"]
        stats = tracker.performance_stats

        output.write("\n" + "=" * 80 + "\n")
        output.write("SUMMARY:\n")
        output.write("-" * 40 + "\n")
        output.write(f"Total lines processed: {len(transcript_lines)}\n")
        output.write(
            f"Final position: {tracker.current_position} / {len(tracker.words)}\n")
        output.write(f"Advances: {len(advances)}\n")
        output.write(f"Forward jumps: {len(jumps)}\n")
        output.write(f"Average search: {stats.average_time * 1000:.3f}ms\n")

    return events
