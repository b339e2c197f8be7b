"""
Debug event log for diagnosing tracking decisions.

Writes one line per spoken batch, position change and rejected match to
logs/tracking_events.log, so a session can be inspected after the fact.

Logging is disabled by default. Call enable() to turn it on.
"""

from datetime import datetime
from pathlib import Path

# Log files location (in project root)
LOG_DIR: Path = Path(__file__).parent.parent.parent / "logs"
EVENT_LOG: Path = LOG_DIR / "tracking_events.log"

# Global flag to control whether debug logging is enabled
_ENABLED: bool = False  # pylint: disable=invalid-name


def enable() -> None:
    """Enable debug logging."""
    global _ENABLED  # pylint: disable=global-statement
    _ENABLED = True


def disable() -> None:
    """Disable debug logging."""
    global _ENABLED  # pylint: disable=global-statement
    _ENABLED = False


def is_enabled() -> bool:
    """Check if debug logging is enabled."""
    return _ENABLED


def _ensure_log_dir() -> None:
    """Create log directory if it doesn't exist."""
    LOG_DIR.mkdir(exist_ok=True)


def _timestamp() -> str:
    """Get current timestamp."""
    return datetime.now().strftime("%H:%M:%S.%f")[:-3]


def _write(line: str) -> None:
    _ensure_log_dir()
    with open(EVENT_LOG, 'a', encoding='utf-8') as f:
        f.write(f"[{_timestamp()}] {line}\n")


def clear_log() -> None:
    """Clear the event log for a fresh session."""
    if not _ENABLED:
        return
    _ensure_log_dir()
    with open(EVENT_LOG, 'w', encoding='utf-8') as f:
        f.write(
            f"=== New session started at {datetime.now().isoformat()} ===\n\n")


def log_batch(words: tuple[str, ...], origin: int) -> None:
    """
    Log a spoken batch as it is dequeued.

    Args:
        words: The batch words
        origin: Cursor position the search starts from
    """
    if not _ENABLED:
        return
    _write(f"batch          origin={origin:4d} words={list(words)}")


def log_position_update(old_pos: int, new_pos: int, matched_words: list[str]) -> None:
    """
    Log an accepted match.

    Args:
        old_pos: Position before the match
        new_pos: Position after the match
        matched_words: The script words covered by the match
    """
    if not _ENABLED:
        return
    _write(f"POSITION CHANGE: {old_pos} -> {new_pos}")
    _write(f"               words: {matched_words}")


def log_rejection(start_index: int, length: int, reason: str) -> None:
    """Log a candidate that did not move the cursor."""
    if not _ENABLED:
        return
    _write(f"{'rejected':15}start={start_index:4d} length={length} reason={reason}")
