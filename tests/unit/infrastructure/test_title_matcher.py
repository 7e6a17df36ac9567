"""Tests for fuzzy title matching."""

from __future__ import annotations

from streamfuse.infrastructure.streams.title_matcher import (
    normalize_title,
    title_score,
    year_matches,
)


class TestNormalizeTitle:
    def test_lowercases_and_strips_punctuation(self) -> None:
        assert normalize_title("Spider-Man: No Way Home!") == "spider man no way home"

    def test_transliterates_accents(self) -> None:
        assert normalize_title("Amélie") == "amelie"

    def test_collapses_whitespace(self) -> None:
        assert normalize_title("  The   Matrix ") == "the matrix"


class TestTitleScore:
    def test_exact_release_title(self) -> None:
        assert title_score("The Matrix", "The.Matrix.1999.1080p.BluRay") >= 95

    def test_accented_reference(self) -> None:
        assert title_score("Amélie", "Amelie.2001.1080p.BluRay") >= 95

    def test_unrelated_title_scores_low(self) -> None:
        assert title_score("Finding Nemo", "The.Matrix.1999.1080p.BluRay") < 60

    def test_empty_reference_scores_zero(self) -> None:
        assert title_score("", "The.Matrix.1999.1080p") == 0.0


class TestYearMatches:
    def test_within_tolerance(self) -> None:
        assert year_matches(1999, 2000, 1)

    def test_outside_tolerance(self) -> None:
        assert not year_matches(1999, 2003, 1)

    def test_unknown_year_never_disqualifies(self) -> None:
        assert year_matches(None, 2003, 0)
        assert year_matches(1999, None, 0)
