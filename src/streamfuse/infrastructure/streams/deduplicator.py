"""Collapse candidates that point at the same underlying content.

Pure transformation logic: no I/O. Fingerprint is the canonical info hash
when one is known, else (normalized title, size, provider) for hash-less
sources such as direct HTTP hosts.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from streamfuse.domain.entities.streams import ContentQuery, RawCandidate, StreamCandidate
from streamfuse.infrastructure.streams.stream_converter import (
    canonical_info_hash,
    normalized_title,
    to_stream_candidate,
)

log = structlog.get_logger(__name__)

Fingerprint = tuple[str, ...]


def fingerprint(candidate: RawCandidate | StreamCandidate) -> Fingerprint:
    info_hash = canonical_info_hash(candidate.info_hash, candidate.magnet_uri)
    if info_hash:
        return ("btih", info_hash)
    size = "" if candidate.size_bytes is None else str(candidate.size_bytes)
    return ("title", normalized_title(candidate.name), size, candidate.provider_id)


def _priority(provider_id: str, provider_priority: Sequence[str]) -> int:
    try:
        return provider_priority.index(provider_id)
    except ValueError:
        return len(provider_priority)


def _beats(
    challenger: StreamCandidate,
    incumbent: StreamCandidate,
    provider_priority: Sequence[str],
) -> bool:
    """True when *challenger* should replace *incumbent*.

    Seeders, then size, then provider priority; the first criterion that
    differs decides and a full tie keeps the incumbent.
    """
    seeders_a, seeders_b = challenger.seeders or 0, incumbent.seeders or 0
    if seeders_a != seeders_b:
        return seeders_a > seeders_b
    size_a, size_b = challenger.size_bytes or 0, incumbent.size_bytes or 0
    if size_a != size_b:
        return size_a > size_b
    return _priority(challenger.provider_id, provider_priority) < _priority(
        incumbent.provider_id, provider_priority
    )


def dedupe(
    candidates: Iterable[RawCandidate | StreamCandidate],
    query: ContentQuery,
    provider_priority: Sequence[str] = (),
) -> list[StreamCandidate]:
    """Return at most one StreamCandidate per fingerprint.

    Output follows the first-seen order of each fingerprint. RawCandidates
    are normalized on the way; StreamCandidates pass through as they are.
    """
    winners: dict[Fingerprint, StreamCandidate] = {}
    seen = 0
    dropped = 0

    for candidate in candidates:
        seen += 1
        if isinstance(candidate, StreamCandidate):
            normalized: StreamCandidate | None = candidate
        else:
            normalized = to_stream_candidate(candidate, query)
        if normalized is None:
            dropped += 1
            continue

        key = fingerprint(normalized)
        incumbent = winners.get(key)
        if incumbent is None or _beats(normalized, incumbent, provider_priority):
            # Replacing keeps the key's original insertion position.
            winners[key] = normalized

    result = list(winners.values())
    log.debug(
        "candidates_deduplicated",
        before=seen,
        after=len(result),
        without_reference=dropped,
    )
    return result
