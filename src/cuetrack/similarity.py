# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
String similarity used to score spoken segments against script segments.

Similarity is normalised edit distance: identical strings score 1.0 and
strings of wildly different length are rejected before any distance work.
"""

from rapidfuzz.distance import Levenshtein

# Strings whose lengths differ by more than this factor score 0
MAX_LENGTH_RATIO: int = 3


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance (unit-cost insert, delete and substitute)."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """
    Normalised similarity between two (already lowercased) phrases.

    Args:
        a: First phrase
        b: Second phrase

    Returns:
        Score in [0, 1]; 1.0 for identical strings, 0.0 when the longer
        string is more than three times the length of the shorter one.
    """
    if a == b:
        return 1.0

    max_len: int = max(len(a), len(b))
    min_len: int = min(len(a), len(b))
    if max_len > MAX_LENGTH_RATIO * min_len:
        return 0.0

    return (max_len - Levenshtein.distance(a, b)) / max_len
