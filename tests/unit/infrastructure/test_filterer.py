"""Tests for candidate admission filtering."""

from __future__ import annotations

import pytest

from streamfuse.domain.entities.streams import (
    GIB,
    MIB,
    ContentQuery,
    FilterPolicy,
    RawCandidate,
)
from streamfuse.infrastructure.streams.deduplicator import dedupe
from streamfuse.infrastructure.streams.filterer import (
    effective_size,
    filter_candidates,
    rejection_reason,
)
from streamfuse.infrastructure.streams.release_parser import parse_release

HASH_A = "a" * 40
HASH_B = "b" * 40
HASH_C = "c" * 40


def _raw(name: str, **kwargs) -> RawCandidate:
    kwargs.setdefault("provider_id", "tpb")
    kwargs.setdefault("info_hash", HASH_A)
    return RawCandidate(name=name, **kwargs)


def _names(candidates: list) -> list[str]:
    return [c.name for c in candidates]


class TestResolutionRule:
    def test_low_markers_rejected_unless_high_present(self, policy: FilterPolicy) -> None:
        names = [
            "480p",
            "720p",
            "1080p",
            "4K",
            "2160p",
            "SD",
            "HD",
            "HD 1080p",
            "DVDRip",
            "Unknown Res",
        ]
        kept = filter_candidates([_raw(n) for n in names], None, "movie", policy)
        assert set(_names(kept)) == {"1080p", "4K", "2160p", "HD 1080p", "Unknown Res"}

    def test_rejection_reason_names_rule(self, policy: FilterPolicy) -> None:
        assert rejection_reason(_raw("Movie.720p"), None, "movie", policy) == "resolution"


class TestSizeRules:
    def test_movie_minimum(self, size_policy: FilterPolicy) -> None:
        small = _raw("Movie.A.1080p", size_bytes=100 * MIB)
        big = _raw("Movie.B.1080p", size_bytes=300 * MIB)
        kept = filter_candidates([small, big], None, "movie", size_policy)
        assert _names(kept) == ["Movie.B.1080p"]

    def test_episode_minimum(self, size_policy: FilterPolicy) -> None:
        small = _raw("Show.S01E02.1080p.A", size_bytes=10 * MIB)
        big = _raw("Show.S01E02.1080p.B", size_bytes=60 * MIB)
        kept = filter_candidates([small, big], None, "series", size_policy)
        assert _names(kept) == ["Show.S01E02.1080p.B"]

    @pytest.mark.parametrize("content_type", ["movie", "series"])
    def test_unknown_size_always_kept(
        self, size_policy: FilterPolicy, content_type: str
    ) -> None:
        name = "Show.S01E02.1080p" if content_type == "series" else "Movie.1080p"
        kept = filter_candidates(
            [_raw(name, size_bytes=None)], None, content_type, size_policy  # type: ignore[arg-type]
        )
        assert len(kept) == 1

    def test_maximum(self, policy: FilterPolicy) -> None:
        huge = _raw("Movie.2160p.Remux", size_bytes=11 * GIB)
        assert rejection_reason(huge, None, "movie", policy) == "max_size"

    def test_zero_maximum_disables_cap(self) -> None:
        policy = FilterPolicy(max_size_bytes=0, title_match_threshold=0)
        huge = _raw("Movie.2160p.Remux", size_bytes=80 * GIB)
        assert rejection_reason(huge, None, "movie", policy) is None

    def test_season_pack_uses_per_episode_estimate(self, size_policy: FilterPolicy) -> None:
        thin = _raw("Show.S01E01-E10.1080p", size_bytes=400 * MIB)
        fat = _raw("Show.S01E01-E10.1080p.x265", size_bytes=1 * GIB)
        kept = filter_candidates([thin, fat], None, "series", size_policy)
        assert _names(kept) == ["Show.S01E01-E10.1080p.x265"]

    def test_effective_size(self) -> None:
        pack = parse_release("Show.S01E01-E10.1080p")
        assert effective_size(1000, pack) == 100
        assert effective_size(1000, parse_release("Movie.1080p")) == 1000
        assert effective_size(None, pack) is None


class TestContentTypeRule:
    def test_movie_query_rejects_episode_markers(self, policy: FilterPolicy) -> None:
        for name in ("Show.S01E02.1080p", "Show.S01.1080p", "Show Season 1 1080p"):
            assert rejection_reason(_raw(name), None, "movie", policy) == "content_type"

    def test_series_query_rejects_movie_marker(self, policy: FilterPolicy) -> None:
        raw = _raw("El Camino A Breaking Bad Movie 2019 1080p")
        assert rejection_reason(raw, None, "series", policy) == "content_type"

    def test_series_movie_word_with_episode_marker_kept(self, policy: FilterPolicy) -> None:
        raw = _raw("Movie Night S01E01 1080p")
        assert rejection_reason(raw, None, "series", policy) is None


class TestEpisodeRule:
    def test_wrong_episode_rejected(
        self, policy: FilterPolicy, episode_query: ContentQuery
    ) -> None:
        raw = _raw("Breaking.Bad.S02E04.1080p")
        assert rejection_reason(raw, episode_query, "series", policy) == "episode"

    def test_wrong_season_rejected(
        self, policy: FilterPolicy, episode_query: ContentQuery
    ) -> None:
        raw = _raw("Breaking.Bad.S01E03.1080p")
        assert rejection_reason(raw, episode_query, "series", policy) == "episode"

    def test_matching_episode_and_season_pack_kept(
        self, policy: FilterPolicy, episode_query: ContentQuery
    ) -> None:
        raws = [_raw("Breaking.Bad.S02E03.1080p"), _raw("Breaking.Bad.S02.1080p")]
        assert len(filter_candidates(raws, episode_query, "series", policy)) == 2


class TestExcludeAndTitleRules:
    def test_exclude_pattern(self) -> None:
        policy = FilterPolicy(exclude_patterns=("cam",), title_match_threshold=0)
        raw = _raw("Movie.2020.CAM.1080p")
        assert rejection_reason(raw, None, "movie", policy) == "exclude_pattern"

    def test_title_mismatch_rejected(self, movie_query: ContentQuery) -> None:
        policy = FilterPolicy(title_match_threshold=80)
        raw = _raw("Finding.Nemo.2003.1080p")
        assert rejection_reason(raw, movie_query, "movie", policy) == "title"

    def test_movie_year_outside_tolerance_rejected(self, movie_query: ContentQuery) -> None:
        policy = FilterPolicy(title_match_threshold=80, year_tolerance=1)
        raw = _raw("The.Matrix.2005.1080p")
        assert rejection_reason(raw, movie_query, "movie", policy) == "title"

    def test_matching_title_kept(self, movie_query: ContentQuery) -> None:
        policy = FilterPolicy(title_match_threshold=80)
        raw = _raw("The.Matrix.1999.1080p.BluRay")
        assert rejection_reason(raw, movie_query, "movie", policy) is None

    @pytest.mark.parametrize(
        ("name", "title", "year"),
        [
            ("Blade.Runner.2049.2017.1080p.BluRay.x264-GRP", "Blade Runner 2049", 2017),
            ("Blade.Runner.2049.1080p.BluRay.x264-GRP", "Blade Runner 2049", 2017),
            ("2001.A.Space.Odyssey.1968.1080p.BluRay", "2001: A Space Odyssey", 1968),
        ],
    )
    def test_number_in_title_does_not_fail_year_check(
        self, name: str, title: str, year: int
    ) -> None:
        query = ContentQuery(type="movie", title=title, year=year)
        assert rejection_reason(_raw(name), query, "movie", FilterPolicy()) is None

    def test_dts_hd_audio_without_resolution_kept(self) -> None:
        raw = _raw("Movie.2010.BluRay.DTS-HD.MA.5.1-GRP")
        assert rejection_reason(raw, None, "movie", FilterPolicy()) is None

    def test_empty_name_rejected(self, policy: FilterPolicy) -> None:
        assert rejection_reason(_raw("  "), None, "movie", policy) == "empty_name"


class TestFilterProperties:
    def test_order_preserved(self, policy: FilterPolicy) -> None:
        names = ["C.1080p", "720p", "A.1080p", "B.4K"]
        kept = filter_candidates([_raw(n) for n in names], None, "movie", policy)
        assert _names(kept) == ["C.1080p", "A.1080p", "B.4K"]

    def test_empty_input(self, policy: FilterPolicy) -> None:
        assert filter_candidates([], None, "movie", policy) == []

    def test_filter_then_dedupe_is_idempotent(
        self, policy: FilterPolicy, movie_query: ContentQuery
    ) -> None:
        raws = [
            _raw("The.Matrix.1999.1080p", info_hash=HASH_A, seeders=5),
            _raw("The.Matrix.1999.1080p.REPACK", info_hash=HASH_A.upper(), seeders=9),
            _raw("The.Matrix.1999.720p", info_hash=HASH_B),
            _raw("The.Matrix.1999.2160p", info_hash=HASH_C),
        ]
        once = dedupe(filter_candidates(raws, movie_query, "movie", policy), movie_query)
        twice = dedupe(filter_candidates(once, movie_query, "movie", policy), movie_query)
        assert once == twice
        assert _names(once) == ["The.Matrix.1999.1080p.REPACK", "The.Matrix.1999.2160p"]
