"""Admission filtering over the merged candidate list.

Pure transformation: no I/O. Every rule evaluates the ReleaseInfo parsed
once per name; a candidate survives only if no rule rejects it. Input order
is preserved.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from typing import Protocol, TypeVar

import structlog

from streamfuse.domain.entities.streams import (
    ContentQuery,
    ContentType,
    FilterPolicy,
    QualityTag,
    ReleaseInfo,
)
from streamfuse.infrastructure.streams.release_parser import parse_release
from streamfuse.infrastructure.streams.title_matcher import (
    normalize_title,
    title_score,
    year_matches,
)

log = structlog.get_logger(__name__)


class _Filterable(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def size_bytes(self) -> int | None: ...


C = TypeVar("C", bound=_Filterable)

_Rule = Callable[
    [_Filterable, ReleaseInfo, ContentType, ContentQuery | None, FilterPolicy], bool
]


def _type_ok(
    candidate: _Filterable,
    info: ReleaseInfo,
    content_type: ContentType,
    meta: ContentQuery | None,
    policy: FilterPolicy,
) -> bool:
    if content_type == "movie":
        return not (info.is_episode or info.is_season_pack or info.season is not None)
    # Series: explicit movie marker only counts when nothing says "episode".
    if info.is_movie_marker and not (info.is_episode or info.season is not None):
        return False
    return True


def _episode_ok(
    candidate: _Filterable,
    info: ReleaseInfo,
    content_type: ContentType,
    meta: ContentQuery | None,
    policy: FilterPolicy,
) -> bool:
    if content_type != "series" or meta is None or not meta.is_episode:
        return True
    if info.season is not None and info.season != meta.season:
        return False
    if info.episode is not None and not info.is_season_pack:
        return info.episode == meta.episode
    return True


def _resolution_ok(
    candidate: _Filterable,
    info: ReleaseInfo,
    content_type: ContentType,
    meta: ContentQuery | None,
    policy: FilterPolicy,
) -> bool:
    return info.quality_tag is not QualityTag.EXPLICIT_LOW


def effective_size(size_bytes: int | None, info: ReleaseInfo) -> int | None:
    """Per-episode size estimate for season packs, raw size otherwise."""
    if size_bytes is None:
        return None
    if info.is_season_pack and info.episode_count:
        return size_bytes // info.episode_count
    return size_bytes


def _min_size_ok(
    candidate: _Filterable,
    info: ReleaseInfo,
    content_type: ContentType,
    meta: ContentQuery | None,
    policy: FilterPolicy,
) -> bool:
    if candidate.size_bytes is None:
        return True
    if content_type == "movie":
        return candidate.size_bytes >= policy.min_size_movie_bytes
    size = effective_size(candidate.size_bytes, info)
    return size is None or size >= policy.min_size_episode_bytes


def _max_size_ok(
    candidate: _Filterable,
    info: ReleaseInfo,
    content_type: ContentType,
    meta: ContentQuery | None,
    policy: FilterPolicy,
) -> bool:
    if not policy.max_size_bytes or candidate.size_bytes is None:
        return True
    return candidate.size_bytes <= policy.max_size_bytes


def _exclude_ok(
    candidate: _Filterable,
    info: ReleaseInfo,
    content_type: ContentType,
    meta: ContentQuery | None,
    policy: FilterPolicy,
) -> bool:
    return not any(rx.search(candidate.name) for rx in policy.exclude_regexes)


def _title_ok(
    candidate: _Filterable,
    info: ReleaseInfo,
    content_type: ContentType,
    meta: ContentQuery | None,
    policy: FilterPolicy,
) -> bool:
    if meta is None or not meta.title or not policy.title_match_threshold:
        return True
    if title_score(meta.title, candidate.name) < policy.title_match_threshold:
        return False
    # Show start year and release year legitimately drift for series.
    if content_type != "movie":
        return True
    release_year = info.year
    # "Blade Runner 2049": a number from the title is not the release year.
    if release_year is not None and str(release_year) in normalize_title(meta.title).split():
        release_year = None
    return year_matches(meta.year, release_year, policy.year_tolerance)


_RULES: tuple[tuple[str, _Rule], ...] = (
    ("exclude_pattern", _exclude_ok),
    ("max_size", _max_size_ok),
    ("min_size", _min_size_ok),
    ("resolution", _resolution_ok),
    ("content_type", _type_ok),
    ("episode", _episode_ok),
    ("title", _title_ok),
)


def rejection_reason(
    candidate: _Filterable,
    meta: ContentQuery | None,
    content_type: ContentType,
    policy: FilterPolicy,
) -> str | None:
    """Name of the first rule that rejects *candidate*, or None if admitted."""
    if not candidate.name or not candidate.name.strip():
        return "empty_name"
    info = parse_release(candidate.name)
    for reason, rule in _RULES:
        if not rule(candidate, info, content_type, meta, policy):
            return reason
    return None


def filter_candidates(
    candidates: Iterable[C],
    meta: ContentQuery | None,
    content_type: ContentType,
    policy: FilterPolicy,
) -> list[C]:
    """Return the admitted subset of *candidates*, order preserved."""
    kept: list[C] = []
    rejected: Counter[str] = Counter()
    for candidate in candidates:
        reason = rejection_reason(candidate, meta, content_type, policy)
        if reason is None:
            kept.append(candidate)
        else:
            rejected[reason] += 1

    if rejected:
        log.debug(
            "candidates_filtered",
            content_type=content_type,
            kept=len(kept),
            rejected=dict(rejected),
        )
    return kept
