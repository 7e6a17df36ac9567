"""Binge-group tagging for episodic candidates.

Clients auto-advance between streams that share a binge group, so the
value must be identical across episodes of one season and must differ
between seasons or shows.
"""

from __future__ import annotations

from dataclasses import replace

from streamfuse.domain.entities.streams import ContentQuery, StreamCandidate

_PREFIX = "streamfuse"


def binge_group_for(
    *, collection_id: str | None, series_id: str | None, season: int | None
) -> str | None:
    """Deterministic group id, or None for standalone items."""
    key = collection_id or series_id
    if not key or season is None:
        return None
    return f"{_PREFIX}|{key}|s{season}"


def tag(
    candidate: StreamCandidate, query: ContentQuery | None = None
) -> StreamCandidate:
    """Return *candidate* with binge_group set where one applies.

    Movies are returned untouched. Fields missing on the candidate fall
    back to the query it answers.
    """
    if candidate.type == "movie" and not (
        candidate.collection_id or (query is not None and query.collection_id)
    ):
        return candidate
    collection_id, series_id, season = (
        candidate.collection_id,
        candidate.series_id,
        candidate.season,
    )
    if query is not None:
        collection_id = collection_id or query.collection_id
        series_id = series_id or query.series_id
        season = query.season if season is None else season
    group = binge_group_for(
        collection_id=collection_id, series_id=series_id, season=season
    )
    if group is None or group == candidate.binge_group:
        return candidate
    return replace(candidate, binge_group=group)
