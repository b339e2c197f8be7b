# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Decides whether a search candidate is trustworthy enough to move the cursor.

The cursor only ever moves forward: a candidate that would land before the
last accepted position is rejected even when it scores well.
"""

import enum
import logging
from dataclasses import dataclass

from .search import MatchCandidate

logger = logging.getLogger(__name__)

# Extra similarity required before a lone word may move the cursor
SINGLE_WORD_SIMILARITY_BOOST: float = 0.2

# Maximum accepted distance from the origin, by match quality
SINGLE_WORD_MAX_DISTANCE: int = 3
EXCELLENT_MATCH_MAX_DISTANCE: int = 25  # similarity >= 0.9
GOOD_MATCH_MAX_DISTANCE: int = 20  # similarity >= 0.8
DEFAULT_MAX_DISTANCE: int = 15


@dataclass
class CursorState:
    """Reading position in the script (word indices)."""
    current_position: int = 0
    last_valid_position: int = 0

    def reset(self, position: int = 0) -> None:
        """Move both positions to the given index."""
        self.current_position = position
        self.last_valid_position = position


@dataclass(frozen=True)
class MatchUpdate:
    """Emitted to listeners for every accepted match."""
    new_position: int
    matched_indices: tuple[int, ...]
    raw_match: MatchCandidate


class Rejection(enum.Enum):
    """Why a candidate did not move the cursor."""
    NO_CANDIDATE = "no_candidate"
    LOW_SIMILARITY = "low_similarity"
    TOO_FAR = "too_far"
    BACKWARD = "backward"


def max_distance_for(candidate: MatchCandidate) -> int:
    """Largest distance from the origin allowed for this candidate."""
    if candidate.length == 1:
        return SINGLE_WORD_MAX_DISTANCE
    if candidate.raw_similarity >= 0.9:
        return EXCELLENT_MATCH_MAX_DISTANCE
    if candidate.raw_similarity >= 0.8:
        return GOOD_MATCH_MAX_DISTANCE
    return DEFAULT_MAX_DISTANCE


def min_similarity_for(candidate: MatchCandidate, precision: int) -> float:
    """Similarity this candidate must have to be accepted."""
    base = precision / 100
    if candidate.length == 1:
        return base + SINGLE_WORD_SIMILARITY_BOOST
    return base


class MatchAcceptancePolicy:
    """Commits candidates to a CursorState, enforcing forward-only movement."""

    def evaluate(
        self,
        candidate: MatchCandidate,
        cursor: CursorState,
        precision: int
    ) -> Rejection | None:
        """
        Check a candidate without touching the cursor.

        Returns:
            The reason for rejection, or None if the candidate is acceptable
        """
        if not candidate.found:
            return Rejection.NO_CANDIDATE
        if candidate.raw_similarity < min_similarity_for(candidate, precision):
            return Rejection.LOW_SIMILARITY
        if candidate.distance_from_origin > max_distance_for(candidate):
            return Rejection.TOO_FAR
        if candidate.end_index < cursor.last_valid_position:
            return Rejection.BACKWARD
        return None

    def accept(
        self,
        candidate: MatchCandidate,
        cursor: CursorState,
        precision: int
    ) -> MatchUpdate | None:
        """
        Apply a candidate to the cursor if it passes every check.

        Args:
            candidate: Result of a segment search
            cursor: Cursor to update in place
            precision: Matching precision (50-95)

        Returns:
            The update to emit, or None if the candidate was rejected
        """
        rejection = self.evaluate(candidate, cursor, precision)
        if rejection is not None:
            if candidate.found:
                logger.debug(
                    "Rejected match at %d (length %d, similarity %.3f, distance %d): %s",
                    candidate.start_index, candidate.length,
                    candidate.raw_similarity, candidate.distance_from_origin,
                    rejection.value
                )
            return None

        new_position: int = candidate.end_index
        old_position: int = cursor.current_position
        cursor.last_valid_position = max(cursor.last_valid_position, new_position)
        cursor.current_position = new_position

        logger.debug("Position updated: %d -> %d", old_position, new_position)

        return MatchUpdate(
            new_position=new_position,
            matched_indices=tuple(range(candidate.start_index, candidate.end_index)),
            raw_match=candidate,
        )
