"""
Script tracking module that matches spoken word batches to script text.

A ScriptTracker is one tracking session: a fixed script, a cursor that only
moves forward, and the precision used for matching. It processes batches
synchronously; see async_tracker for the queued, non-blocking front end.
"""

import logging
from collections.abc import Iterable, Sequence

from . import debug_log
from .acceptance import CursorState, MatchAcceptancePolicy, MatchUpdate, Rejection
from .config import DEFAULT_PRECISION, clamp_precision
from .profiling import SearchStats
from .script import Script, clean_batch
from .search import NO_MATCH, MatchCandidate, SegmentSearchEngine

logger = logging.getLogger(__name__)

ScriptSource = Script | str | Sequence[str]


def as_script(script: ScriptSource) -> Script:
    """Coerce script text (Markdown) or a word sequence into a Script."""
    if isinstance(script, Script):
        return script
    if isinstance(script, str):
        return Script.from_markdown(script)
    return Script(script)


class ScriptTracker:
    """
    Tracks the reading position in a script from spoken word batches.

    Each batch is searched forward from the current position; the best
    candidate moves the cursor only if the acceptance policy agrees.
    """

    def __init__(
        self,
        script: ScriptSource,
        precision: int = DEFAULT_PRECISION,
        engine: SegmentSearchEngine | None = None,
        policy: MatchAcceptancePolicy | None = None
    ) -> None:
        """
        Initialize the script tracker.

        Args:
            script: A Script, Markdown script text, or a sequence of words
            precision: Matching precision (clamped to 50-95)
            engine: Segment search engine (default: standard two-phase search)
            policy: Acceptance policy (default: MatchAcceptancePolicy)
        """
        self.engine: SegmentSearchEngine = engine or SegmentSearchEngine()
        self.policy: MatchAcceptancePolicy = policy or MatchAcceptancePolicy()
        self._precision: int = clamp_precision(precision)
        self._script: Script = as_script(script)
        self.cursor: CursorState = CursorState()

        # Diagnostics from the most recent batch
        self.last_candidate: MatchCandidate = NO_MATCH
        self.last_rejection: Rejection | None = None

    @property
    def script(self) -> Script:
        """The script being tracked."""
        return self._script

    @property
    def words(self) -> tuple[str, ...]:
        """The script words."""
        return self._script.words

    @property
    def precision(self) -> int:
        """Matching precision (50-95)."""
        return self._precision

    @precision.setter
    def precision(self, value: int) -> None:
        self._precision = clamp_precision(value)
        logger.info("Fuzzy match precision set to %d%%", self._precision)

    @property
    def current_position(self) -> int:
        """Index of the next word to be read."""
        return self.cursor.current_position

    @property
    def progress(self) -> float:
        """Get overall progress through the script (0.0 to 1.0)."""
        if not self._script:
            return 0.0
        return min(1.0, self.cursor.current_position / len(self._script))

    @property
    def is_complete(self) -> bool:
        """Whether the cursor has reached the end of the script."""
        return self.cursor.current_position >= len(self._script)

    @property
    def performance_stats(self) -> SearchStats:
        """Search timing statistics."""
        return self.engine.monitor.stats()

    def process_batch(self, words: Iterable[str]) -> MatchUpdate | None:
        """
        Match one batch of spoken words and advance the cursor if accepted.

        Args:
            words: Words of one finalized recognition result

        Returns:
            The accepted update, or None if the cursor did not move
        """
        batch = clean_batch(words)
        if not batch:
            return None
        if not self._script:
            logger.debug("No script words to match against")
            return None

        origin: int = self.cursor.current_position
        debug_log.log_batch(batch, origin)

        candidate = self.engine.find_best_match(
            batch, self._script, origin, self._precision)
        self.last_candidate = candidate
        self.last_rejection = self.policy.evaluate(
            candidate, self.cursor, self._precision)

        if self.last_rejection is not None:
            if candidate.found:
                debug_log.log_rejection(
                    candidate.start_index, candidate.length, self.last_rejection.value)
            return None

        update = self.policy.accept(candidate, self.cursor, self._precision)
        if update is not None:
            debug_log.log_position_update(
                origin, update.new_position,
                list(self._script[candidate.start_index:candidate.end_index]))
        return update

    def reset(self) -> None:
        """Reset tracking to the beginning of the script."""
        self.cursor.reset()
        self.last_candidate = NO_MATCH
        self.last_rejection = None
        logger.info("Tracker reset")

    def jump_to(self, word_index: int) -> None:
        """
        Start tracking again from a specific word.

        The jump begins a new session at that index, so it may move the
        cursor backwards.
        """
        word_index = max(0, min(word_index, len(self._script)))
        self.reset()
        self.cursor.reset(word_index)
        logger.info("Tracker jumped to %d", word_index)

    def load_script(self, script: ScriptSource) -> None:
        """Replace the script and start a new session."""
        self._script = as_script(script)
        self.reset()
        logger.info("Script loaded: %d words", len(self._script))
