"""Shared test fixtures for the streamfuse test suite."""

from __future__ import annotations

from typing import Any

import pytest

from streamfuse.domain.entities.streams import (
    MIB,
    ContentQuery,
    FilterPolicy,
    RawCandidate,
    StreamCandidate,
)

_HASH = "a" * 40


def _make_raw(name: str = "Some.Movie.2020.1080p.WEB-DL", **kwargs: Any) -> RawCandidate:
    """RawCandidate carrying a torrent hash unless overridden."""
    defaults: dict[str, Any] = {
        "provider_id": "tpb",
        "url": None,
        "info_hash": _HASH,
    }
    defaults.update(kwargs)
    return RawCandidate(name=name, **defaults)


def _make_stream(name: str = "Some.Movie.2020.1080p.WEB-DL", **kwargs: Any) -> StreamCandidate:
    defaults: dict[str, Any] = {
        "provider_id": "tpb",
        "type": "movie",
        "info_hash": _HASH,
    }
    defaults.update(kwargs)
    return StreamCandidate(name=name, **defaults)


# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_query() -> ContentQuery:
    return ContentQuery(type="movie", title="The Matrix", year=1999, imdb_id="tt0133093")


@pytest.fixture()
def episode_query() -> ContentQuery:
    return ContentQuery(
        type="series",
        title="Breaking Bad",
        year=2008,
        imdb_id="tt0903747",
        season=2,
        episode=3,
    )


@pytest.fixture()
def policy() -> FilterPolicy:
    """Default sizes, fuzzy title matching off."""
    return FilterPolicy(title_match_threshold=0)


@pytest.fixture()
def size_policy() -> FilterPolicy:
    return FilterPolicy(
        min_size_movie_bytes=200 * MIB,
        min_size_episode_bytes=50 * MIB,
        title_match_threshold=0,
    )


@pytest.fixture()
def make_raw():
    """Factory fixture: make_raw(name, **fields) -> RawCandidate."""
    return _make_raw


@pytest.fixture()
def make_stream():
    """Factory fixture: make_stream(name, **fields) -> StreamCandidate."""
    return _make_stream
