# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Tests for the two-phase segment search.
"""

import pytest

from cuetrack import search as search_module
from cuetrack.profiling import PerformanceMonitor
from cuetrack.search import (
    NO_MATCH,
    SEARCH_PHASES,
    MatchCandidate,
    SearchPhase,
    SegmentSearchEngine,
    length_bonus,
    minimum_similarity,
)

FOX_SCRIPT: list[str] = ["the", "quick", "brown", "fox", "jumps"]


@pytest.fixture
def engine() -> SegmentSearchEngine:
    """A search engine with default phases."""
    return SegmentSearchEngine()


class TestScoringHelpers:
    """Tests for threshold and bonus helpers."""

    def test_phases(self) -> None:
        """The default phases are fast then thorough."""
        assert [p.name for p in SEARCH_PHASES] == ["fast", "thorough"]
        assert SEARCH_PHASES[0] == SearchPhase("fast", 10, 6)
        assert SEARCH_PHASES[1] == SearchPhase("thorough", 25, 12)

    @pytest.mark.parametrize("length,expected", [
        (1, 0.0), (2, 0.1), (5, 0.1), (6, 0.15), (9, 0.15), (10, 0.2), (12, 0.2),
    ])
    def test_length_bonus(self, length: int, expected: float) -> None:
        """Longer segments earn larger bonuses."""
        assert length_bonus(length) == pytest.approx(expected)

    def test_single_word_threshold_is_stricter(self) -> None:
        """Single words need 0.15 more similarity than phrases."""
        assert minimum_similarity(2, 70) == pytest.approx(0.70)
        assert minimum_similarity(1, 70) == pytest.approx(0.85)


class TestFindBestMatch:
    """Tests for SegmentSearchEngine.find_best_match."""

    def test_phrase_at_start(self, engine: SegmentSearchEngine) -> None:
        """A phrase spoken from the start matches the whole phrase."""
        match: MatchCandidate = engine.find_best_match(
            ["the", "quick", "brown"], FOX_SCRIPT, 0, precision=65)

        assert match.start_index == 0
        assert match.length == 3
        assert match.end_index == 3
        assert match.raw_similarity == 1.0
        assert match.adjusted_score == pytest.approx(1.1)
        assert match.distance_from_origin == 0

    def test_single_word_at_origin(self, engine: SegmentSearchEngine) -> None:
        """A single exact word at the origin is found."""
        match = engine.find_best_match(["fox"], FOX_SCRIPT, 3, precision=65)

        assert match.start_index == 3
        assert match.length == 1
        assert match.raw_similarity == 1.0

    def test_unrelated_word_finds_nothing(self, engine: SegmentSearchEngine) -> None:
        """Noise below the threshold produces the sentinel."""
        match = engine.find_best_match(["zzz"], FOX_SCRIPT, 3, precision=65)

        assert match == NO_MATCH
        assert not match.found

    def test_case_insensitive(self, engine: SegmentSearchEngine) -> None:
        """Spoken and script words are compared lowercased."""
        match = engine.find_best_match(["THE", "Quick"], ["The", "QUICK", "fox"], 0)

        assert match.start_index == 0
        assert match.raw_similarity == 1.0

    def test_never_searches_behind_origin(self, engine: SegmentSearchEngine) -> None:
        """Only indices at or after the origin are considered."""
        script = ["hello", "world", "again", "hello"]
        match = engine.find_best_match(["hello"], script, 1)

        assert match.start_index == 3
        assert match.distance_from_origin == 2

    def test_prefers_nearer_occurrence(self, engine: SegmentSearchEngine) -> None:
        """The distance penalty favours the closest repeat."""
        script = ["go", "stop", "go", "stop"]
        match = engine.find_best_match(["go", "stop"], script, 0)

        assert match.start_index == 0

    def test_fuzzy_phrase_with_misheard_word(self, engine: SegmentSearchEngine) -> None:
        """A phrase with one misheard word still matches."""
        script = "four score and seven years ago our fathers".split()
        match = engine.find_best_match(["for", "score", "and", "seven"], script, 0)

        assert match.start_index == 0
        assert match.length == 4
        assert 0.9 < match.raw_similarity < 1.0

    def test_ties_keep_the_longer_segment(self, engine: SegmentSearchEngine) -> None:
        """Equal scores keep the first found, which is the longer segment."""
        # "one two three" and "one two" both score 1.1 at index 0
        match = engine.find_best_match(["one", "two", "three"], ["one", "two", "three"], 0)

        assert match.length == 3
        assert match.adjusted_score == pytest.approx(1.1)

    def test_longer_segment_beats_single_word(self, engine: SegmentSearchEngine) -> None:
        """The length bonus outweighs a perfect single word."""
        match = engine.find_best_match(["the", "quick"], ["the", "quick", "the"], 0)

        assert match.length == 2

    def test_thorough_phase_reaches_further(self, engine: SegmentSearchEngine) -> None:
        """Matches beyond the fast window are found by the thorough phase."""
        script = [f"filler{i}" for i in range(12)] + ["alpha", "beta"]
        match = engine.find_best_match(["alpha", "beta"], script, 0)

        assert match.start_index == 12
        assert match.distance_from_origin == 12
        assert match.adjusted_score == pytest.approx(1.0 - 0.6 + 0.1)

    def test_non_positive_scores_are_never_best(self, engine: SegmentSearchEngine) -> None:
        """A distant single word whose penalty cancels its similarity is ignored."""
        script = [f"filler{i}" for i in range(20)] + ["target"]
        match = engine.find_best_match(["target"], script, 0)

        assert match == NO_MATCH

    def test_long_segments_are_capped_per_phase(self, engine: SegmentSearchEngine) -> None:
        """No more than twelve spoken words are compared."""
        words = [f"w{i}" for i in range(15)]
        match = engine.find_best_match(words, words, 0)

        assert match.start_index == 0
        assert match.length == 12
        assert match.adjusted_score == pytest.approx(1.2)

    def test_precision_controls_threshold(self, engine: SegmentSearchEngine) -> None:
        """A loose match passes at low precision but not at high precision."""
        script = ["teleprompter", "script"]
        # "teleprompted scrip" vs "teleprompter script": 2 edits over 19 chars
        lenient = engine.find_best_match(["teleprompted", "scrip"], script, 0, precision=50)
        strict = engine.find_best_match(["tele", "scrap"], script, 0, precision=95)

        assert lenient.start_index == 0
        assert lenient.length == 2
        assert strict == NO_MATCH

    def test_origin_at_end_of_script(self, engine: SegmentSearchEngine) -> None:
        """Nothing can be found once the origin is past the last word."""
        assert engine.find_best_match(["fox"], FOX_SCRIPT, 5) == NO_MATCH

    def test_empty_inputs(self, engine: SegmentSearchEngine) -> None:
        """Empty batches and empty scripts produce the sentinel."""
        assert engine.find_best_match([], FOX_SCRIPT, 0) == NO_MATCH
        assert engine.find_best_match(["fox"], [], 0) == NO_MATCH

    def test_idempotent(self, engine: SegmentSearchEngine) -> None:
        """The same batch at the same origin gives the same candidate."""
        first = engine.find_best_match(["quick", "brwn"], FOX_SCRIPT, 1)
        second = engine.find_best_match(["quick", "brwn"], FOX_SCRIPT, 1)

        assert first == second


class TestEarlyTermination:
    """Tests for early stopping within and across phases."""

    @pytest.fixture
    def similarity_calls(self, monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, str]]:
        """Record every similarity comparison the search makes."""
        calls: list[tuple[str, str]] = []
        real_similarity = search_module.similarity

        def recording_similarity(a: str, b: str) -> float:
            calls.append((a, b))
            return real_similarity(a, b)

        monkeypatch.setattr(search_module, "similarity", recording_similarity)
        return calls

    def test_perfect_long_match_stops_phase(
        self,
        engine: SegmentSearchEngine,
        similarity_calls: list[tuple[str, str]]
    ) -> None:
        """After a perfect 10-word match no shorter segments are tried."""
        words = [f"w{i}" for i in range(10)]
        match = engine.find_best_match(words, words, 0)

        assert match.length == 10
        assert match.raw_similarity == 1.0
        # Thorough phase stopped after the 10-word row
        tried_lengths = {len(a.split()) for a, _ in similarity_calls}
        assert 9 not in tried_lengths
        assert 7 not in tried_lengths

    def test_conclusive_fast_phase_skips_thorough(
        self,
        similarity_calls: list[tuple[str, str]]
    ) -> None:
        """A long, high-scoring fast match means the thorough phase never runs."""
        engine = SegmentSearchEngine(phases=[
            SearchPhase("fast", max_distance=10, max_segment_length=8),
            SearchPhase("thorough", max_distance=25, max_segment_length=12),
        ])
        words = [f"w{i}" for i in range(8)]
        match = engine.find_best_match(words, words, 0)

        assert match.length == 8
        # Only the single 8-word comparison at index 0 was made
        assert len(similarity_calls) == 1


class TestSearchTiming:
    """Tests for performance monitoring of searches."""

    def test_every_search_is_recorded(self) -> None:
        """Successful and failed searches are both timed."""
        monitor = PerformanceMonitor()
        engine = SegmentSearchEngine(monitor=monitor)

        engine.find_best_match(["the"], FOX_SCRIPT, 0)
        engine.find_best_match(["zzz"], FOX_SCRIPT, 0)
        engine.find_best_match([], FOX_SCRIPT, 0)

        stats = monitor.stats()
        assert stats.total_searches == 3
        assert stats.total_time >= 0.0


class TestThresholdBoundary:
    """Tests for candidates whose similarity lands exactly on the gate."""

    def test_similarity_equal_to_threshold_is_scored(self, engine: SegmentSearchEngine) -> None:
        """A phrase scoring exactly precision / 100 passes the gate."""
        # 25 characters, 8 edits: similarity 17 / 25 == 0.68
        script = ["aaaaaaaabbbb", "aaaaaaaabbbb", "end"]
        match = engine.find_best_match(["aaaaaaaaaaaa", "aaaaaaaaaaaa"], script, 0, precision=68)

        assert match.start_index == 0
        assert match.length == 2
        assert match.raw_similarity == 17 / 25
