"""Domain entities for stream aggregation.

Pure value objects: no framework dependencies, no I/O. Everything here is
scoped to a single query and never persisted by the core.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Literal

from streamfuse.domain.exceptions import ConfigError, InvalidQueryError

ContentType = Literal["movie", "series"]

CONTENT_TYPES: frozenset[str] = frozenset({"movie", "series"})

MIB = 1024 * 1024
GIB = 1024 * MIB

_PLAIN_WORD_RE = re.compile(r"^[A-Za-z0-9]+$")


class QualityTag(str, Enum):
    """Closed classification of a release name's declared resolution."""

    EXPLICIT_LOW = "explicit-low"
    EXPLICIT_HIGH = "explicit-high"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ContentQuery:
    """What the caller wants to watch."""

    type: ContentType
    title: str
    year: int | None = None
    imdb_id: str | None = None
    tmdb_id: str | None = None
    season: int | None = None
    episode: int | None = None
    collection_id: str | None = None

    @property
    def is_episode(self) -> bool:
        return self.season is not None and self.episode is not None

    @property
    def series_id(self) -> str | None:
        """Stable identifier of the show this query belongs to."""
        if self.imdb_id:
            return self.imdb_id
        if self.tmdb_id:
            return f"tmdb:{self.tmdb_id}"
        return None

    def validate(self) -> None:
        """Raise InvalidQueryError when required fields are missing or inconsistent."""
        if self.type not in CONTENT_TYPES:
            raise InvalidQueryError(f"unknown content type: {self.type!r}")
        if not self.title or not self.title.strip():
            raise InvalidQueryError("title is required")
        if (self.season is None) != (self.episode is None):
            raise InvalidQueryError("season and episode must be given together")
        if self.is_episode:
            if self.season < 0 or self.episode < 0:  # type: ignore[operator]
                raise InvalidQueryError("season and episode must be >= 0")
            if self.type == "movie" and self.collection_id is None:
                raise InvalidQueryError("movie queries cannot carry season/episode")


@dataclass(frozen=True)
class RawCandidate:
    """Unnormalized provider output, immutable once emitted."""

    name: str
    provider_id: str
    size_bytes: int | None = None
    seeders: int | None = None
    info_hash: str | None = None
    magnet_uri: str | None = None
    url: str | None = None
    needs_extraction: bool = False  # url points at an embed page
    cached: bool = False


@dataclass(frozen=True)
class StreamCandidate:
    """Normalized candidate as returned to the caller."""

    name: str
    provider_id: str
    type: ContentType
    display_name: str = ""
    description: str = ""
    size_bytes: int | None = None
    seeders: int | None = None
    info_hash: str | None = None
    magnet_uri: str | None = None
    direct_url: str | None = None
    season: int | None = None
    episode: int | None = None
    collection_id: str | None = None
    series_id: str | None = None
    binge_group: str | None = None
    quality_tag: QualityTag = QualityTag.UNKNOWN
    resolution: str | None = None
    languages: tuple[str, ...] = ()
    cached: bool = False
    needs_extraction: bool = False
    expires_at: int | None = None

    def __post_init__(self) -> None:
        if not (self.info_hash or self.magnet_uri or self.direct_url):
            raise ValueError(
                f"candidate {self.name!r} has no playback reference"
            )
        if self.size_bytes is not None and self.size_bytes < 0:
            raise ValueError(f"negative size for {self.name!r}")

    @property
    def is_direct(self) -> bool:
        """True for HTTP streams that play without a torrent client."""
        return bool(self.direct_url) and not self.needs_extraction


@dataclass(frozen=True)
class FilterPolicy:
    """Admission thresholds, immutable for the lifetime of a request.

    Exclude patterns that are a single alphanumeric word match on word
    boundaries; anything else is compiled as a regular expression. All
    matching is case-insensitive.
    """

    min_size_movie_bytes: int = 200 * MIB
    min_size_episode_bytes: int = 50 * MIB
    max_size_bytes: int = 10 * GIB
    exclude_patterns: tuple[str, ...] = ()
    title_match_threshold: int = 80
    year_tolerance: int = 1

    def __post_init__(self) -> None:
        for name in ("min_size_movie_bytes", "min_size_episode_bytes", "max_size_bytes"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0")
        if self.max_size_bytes and (
            self.min_size_movie_bytes > self.max_size_bytes
            or self.min_size_episode_bytes > self.max_size_bytes
        ):
            raise ConfigError("minimum size exceeds max_size_bytes")
        if not 0 <= self.title_match_threshold <= 100:
            raise ConfigError("title_match_threshold must be within 0..100")
        if self.year_tolerance < 0:
            raise ConfigError("year_tolerance must be >= 0")
        # Compile eagerly so a bad pattern fails at construction.
        _ = self.exclude_regexes

    @cached_property
    def exclude_regexes(self) -> tuple[re.Pattern[str], ...]:
        compiled: list[re.Pattern[str]] = []
        for pattern in self.exclude_patterns:
            source = (
                rf"\b{pattern}\b" if _PLAIN_WORD_RE.match(pattern) else pattern
            )
            try:
                compiled.append(re.compile(source, re.IGNORECASE))
            except re.error as exc:
                raise ConfigError(f"invalid exclude pattern {pattern!r}: {exc}") from exc
        return tuple(compiled)


@dataclass(frozen=True)
class ReleaseInfo:
    """Structured tokens parsed once from a release name."""

    title: str = ""
    year: int | None = None
    resolution: str | None = None
    low_markers: frozenset[str] = frozenset()
    high_markers: frozenset[str] = frozenset()
    languages: tuple[str, ...] = ()
    season: int | None = None
    episode: int | None = None
    is_episode: bool = False
    is_season_pack: bool = False
    is_movie_marker: bool = False
    episode_count: int | None = None
    codec: str | None = None
    source: str | None = None
    audio: tuple[str, ...] = ()
    visual: tuple[str, ...] = ()

    @property
    def quality_tag(self) -> QualityTag:
        if self.high_markers:
            return QualityTag.EXPLICIT_HIGH
        if self.low_markers:
            return QualityTag.EXPLICIT_LOW
        return QualityTag.UNKNOWN


@dataclass(frozen=True)
class ExtractedStream:
    """Direct, possibly time-limited media URL produced by an extractor."""

    direct_url: str
    expires_at: int | None = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CollectionItem:
    """One item of a collection, addressed as season/episode."""

    collection_id: str
    season: int
    episode: int
    real_id: str
    title: str
    year: int | None = None


@dataclass(frozen=True)
class TitleInfo:
    """Display title and release year of a media id."""

    title: str
    year: int | None = None


@dataclass(frozen=True)
class StreamRequest:
    """A client's stream request before title resolution.

    media_id is ``tt...``, ``tmdb:...`` or ``ctmdb.{id}``.
    """

    content_type: ContentType
    media_id: str
    season: int | None = None
    episode: int | None = None

    @property
    def is_collection(self) -> bool:
        return self.media_id.startswith("ctmdb.")
