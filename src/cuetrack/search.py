# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Segment search: find where in the script a batch of spoken words belongs.

The search looks only forward from the origin and runs in two phases, a
cheap narrow pass followed by a wider one. Within a phase, longer spoken
segments are tried first and earn a length bonus, which keeps common single
words ("the", "a") from dragging the cursor around.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .config import DEFAULT_PRECISION
from .profiling import PerformanceMonitor
from .similarity import similarity

logger = logging.getLogger(__name__)

# Scoring constants
SINGLE_WORD_THRESHOLD_BOOST: float = 0.15
DISTANCE_PENALTY_PER_WORD: float = 0.05
MULTI_WORD_BONUS: float = 0.1
LONG_SEGMENT_BONUS: float = 0.05  # applied at 6 and again at 10 words

# A perfect match at least this long ends a phase early
PERFECT_STOP_LENGTH: int = 8
# Fast-phase score above which the thorough phase is skipped
FAST_PHASE_SKIP_SCORE: float = 0.8


@dataclass(frozen=True)
class SearchPhase:
    """One pass of the search with its own reach and segment length limit."""
    name: str
    max_distance: int  # Script words examined from the origin
    max_segment_length: int  # Longest spoken prefix tried


SEARCH_PHASES: tuple[SearchPhase, ...] = (
    SearchPhase("fast", max_distance=10, max_segment_length=6),
    SearchPhase("thorough", max_distance=25, max_segment_length=12),
)


@dataclass(frozen=True)
class MatchCandidate:
    """A proposed correspondence between a spoken prefix and a script segment."""
    start_index: int  # First script word of the segment, -1 if none
    length: int  # Number of words in the segment
    raw_similarity: float  # Similarity before bonuses/penalties (0-1)
    adjusted_score: float  # Score used to rank candidates
    distance_from_origin: int  # Words between origin and start_index

    @property
    def found(self) -> bool:
        """Whether this candidate refers to an actual script segment."""
        return self.start_index != -1

    @property
    def end_index(self) -> int:
        """Script index just past the matched segment."""
        return self.start_index + self.length


NO_MATCH = MatchCandidate(
    start_index=-1,
    length=0,
    raw_similarity=0.0,
    adjusted_score=0.0,
    distance_from_origin=0,
)


def length_bonus(length: int) -> float:
    """Bonus for matching a multi-word segment."""
    bonus = MULTI_WORD_BONUS if length > 1 else 0.0
    if length >= 6:
        bonus += LONG_SEGMENT_BONUS
    if length >= 10:
        bonus += LONG_SEGMENT_BONUS
    return bonus


def minimum_similarity(length: int, precision: int) -> float:
    """Similarity a segment of this length must reach to be scored at all."""
    base_threshold = precision / 100
    if length == 1:
        return base_threshold + SINGLE_WORD_THRESHOLD_BOOST
    return base_threshold


class SegmentSearchEngine:
    """
    Finds the best-scoring script segment for a spoken batch.

    The engine holds no cursor state; results depend only on the arguments,
    so the same batch at the same origin always yields the same candidate.
    """

    def __init__(
        self,
        phases: Sequence[SearchPhase] = SEARCH_PHASES,
        monitor: PerformanceMonitor | None = None
    ) -> None:
        """
        Initialize the search engine.

        Args:
            phases: Search phases in the order they are tried
            monitor: Receives the duration of every search
        """
        self.phases: tuple[SearchPhase, ...] = tuple(phases)
        self.monitor: PerformanceMonitor = monitor or PerformanceMonitor()

    def find_best_match(
        self,
        spoken_words: Sequence[str],
        script_words: Sequence[str],
        origin_index: int,
        precision: int = DEFAULT_PRECISION
    ) -> MatchCandidate:
        """
        Find the best script segment for the spoken words.

        Args:
            spoken_words: Words of the batch, in spoken order
            script_words: The full script
            origin_index: Script index to search forward from
            precision: Matching precision (50-95)

        Returns:
            The best candidate, or NO_MATCH if nothing cleared the threshold
        """
        with self.monitor.time_section():
            best = self._search(spoken_words, script_words, origin_index, precision)

        if best.found:
            logger.debug(
                "Best match: index=%d length=%d score=%.3f similarity=%.3f",
                best.start_index, best.length, best.adjusted_score, best.raw_similarity
            )
        else:
            logger.debug("No qualifying candidate for %r from index %d",
                         " ".join(spoken_words), origin_index)
        return best

    def _search(
        self,
        spoken_words: Sequence[str],
        script_words: Sequence[str],
        origin_index: int,
        precision: int
    ) -> MatchCandidate:
        best: MatchCandidate = NO_MATCH
        script_len: int = len(script_words)

        for phase in self.phases:
            look_ahead: int = min(phase.max_distance, script_len - origin_index)
            search_end: int = origin_index + look_ahead

            for j in range(min(len(spoken_words), phase.max_segment_length), 0, -1):
                spoken_segment: str = " ".join(spoken_words[:j]).lower()
                threshold: float = minimum_similarity(j, precision)
                bonus: float = length_bonus(j)

                for i in range(origin_index, search_end):
                    if i + j > script_len:
                        continue

                    script_segment: str = " ".join(script_words[i:i + j]).lower()
                    raw: float = similarity(spoken_segment, script_segment)
                    if raw < threshold:
                        continue

                    distance: int = abs(i - origin_index)
                    score: float = raw - distance * DISTANCE_PENALTY_PER_WORD + bonus

                    # Strict comparison: earlier (longer) candidates win ties
                    if score > best.adjusted_score:
                        best = MatchCandidate(
                            start_index=i,
                            length=j,
                            raw_similarity=raw,
                            adjusted_score=score,
                            distance_from_origin=distance,
                        )

                if best.raw_similarity >= 1.0 and best.length >= PERFECT_STOP_LENGTH:
                    logger.debug("Perfect %d-word match, ending %s phase",
                                 best.length, phase.name)
                    break

            if (phase.name == "fast"
                    and best.adjusted_score > FAST_PHASE_SKIP_SCORE
                    and best.length >= PERFECT_STOP_LENGTH):
                logger.debug("Fast phase match is conclusive, skipping remaining phases")
                break

        return best
