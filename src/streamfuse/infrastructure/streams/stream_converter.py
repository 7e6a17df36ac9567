"""Convert provider RawCandidates into normalized StreamCandidates.

Pure transformation logic: no I/O, no framework dependencies.
"""

from __future__ import annotations

import re

from streamfuse.domain.entities.streams import ContentQuery, RawCandidate, StreamCandidate
from streamfuse.infrastructure.common.magnet import (
    info_hash_from_magnet,
    normalize_info_hash,
)
from streamfuse.infrastructure.streams.release_parser import parse_release

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalized_title(name: str) -> str:
    return _NON_ALNUM_RE.sub("", name.lower())


def _series_key(query: ContentQuery) -> str | None:
    if query.series_id:
        return query.series_id
    if query.type == "series":
        return f"title:{normalized_title(query.title)}"
    return None


def canonical_info_hash(info_hash: str | None, magnet_uri: str | None) -> str | None:
    """Lower-cased hash from the explicit field, else from the magnet's btih."""
    return normalize_info_hash(info_hash) or info_hash_from_magnet(magnet_uri)


def to_stream_candidate(raw: RawCandidate, query: ContentQuery) -> StreamCandidate | None:
    """Normalize *raw*; None when it carries no playback reference at all."""
    info_hash = canonical_info_hash(raw.info_hash, raw.magnet_uri)
    if not (info_hash or raw.magnet_uri or raw.url):
        return None

    info = parse_release(raw.name)
    size = raw.size_bytes if raw.size_bytes is None or raw.size_bytes >= 0 else None
    return StreamCandidate(
        name=raw.name,
        provider_id=raw.provider_id,
        type=query.type,
        size_bytes=size,
        seeders=raw.seeders,
        info_hash=info_hash,
        magnet_uri=raw.magnet_uri,
        direct_url=raw.url,
        season=query.season,
        episode=query.episode,
        collection_id=query.collection_id,
        series_id=_series_key(query),
        quality_tag=info.quality_tag,
        resolution=info.resolution,
        languages=info.languages,
        cached=raw.cached,
        needs_extraction=raw.needs_extraction,
    )
