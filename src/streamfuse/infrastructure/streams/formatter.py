"""Display name and description rendering for final candidates.

Pure transformation logic: no I/O. Missing or invalid numbers always
render as "unknown", never as an empty or NaN string.
"""

from __future__ import annotations

import math
from dataclasses import replace

from streamfuse.domain.entities.streams import ContentQuery, StreamCandidate
from streamfuse.infrastructure.streams.release_parser import parse_release

UNKNOWN = "unknown"
GENERIC_FLAG = "\U0001f30d"  # globe

_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB")

_FLAGS: dict[str, str] = {
    "it": "\U0001f1ee\U0001f1f9",
    "en": "\U0001f1ec\U0001f1e7",
    "de": "\U0001f1e9\U0001f1ea",
    "fr": "\U0001f1eb\U0001f1f7",
    "es": "\U0001f1ea\U0001f1f8",
    "ja": "\U0001f1ef\U0001f1f5",
}

_LANGUAGE_NAMES: dict[str, str] = {
    "it": "Italian",
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "ja": "Japanese",
    "multi": "Multi",
}

_RESOLUTION_BADGES: dict[str, str] = {
    "4K": "\U0001f31f 4K",
    "1080p": "✨ FHD",
    "720p": "\U0001f4ab HD",
    "480p": "\U0001fa90 SD",
}

_STATUS_DIRECT = ("⚡", "Direct")
_STATUS_CACHED = ("\U0001f680", "Cached")
_STATUS_P2P = ("⚠️", "P2P")
_STATUS_EMBED = ("❓", "External")


def _is_valid_number(value: float | int | None) -> bool:
    if value is None or isinstance(value, bool):
        return False
    return math.isfinite(value) and value >= 0


def human_size(size_bytes: float | int | None) -> str:
    """Render bytes in binary units, e.g. 1536 -> "1.50 KB"."""
    if not _is_valid_number(size_bytes):
        return UNKNOWN
    value = float(size_bytes)  # type: ignore[arg-type]
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    if unit == 0:
        return f"{int(value)} B"
    return f"{value:.2f} {_UNITS[unit]}"


def format_count(value: float | int | None) -> str:
    if not _is_valid_number(value):
        return UNKNOWN
    return str(int(value))  # type: ignore[arg-type]


def language_flag(languages: tuple[str, ...]) -> str:
    """Flag for the first specific language, generic marker otherwise."""
    for code in languages:
        flag = _FLAGS.get(code)
        if flag:
            return flag
    return GENERIC_FLAG


def _status(candidate: StreamCandidate) -> tuple[str, str]:
    if candidate.is_direct:
        return _STATUS_DIRECT
    if candidate.cached:
        return _STATUS_CACHED
    if candidate.info_hash or candidate.magnet_uri:
        return _STATUS_P2P
    return _STATUS_EMBED


def _title_line(candidate: StreamCandidate, query: ContentQuery | None) -> str:
    title = query.title if query and query.title else parse_release(candidate.name).title
    line = f"\U0001f3ac {title or candidate.name}"
    # Collection items carry season and episode too, but are movies.
    if (
        candidate.type == "series"
        and candidate.season is not None
        and candidate.episode is not None
    ):
        line += f" S{candidate.season:02d}E{candidate.episode:02d}"
    return line


def format_candidate(
    candidate: StreamCandidate, query: ContentQuery | None = None
) -> StreamCandidate:
    """Return *candidate* with display_name and description filled in."""
    info = parse_release(candidate.name)
    icon, status_text = _status(candidate)
    resolution = candidate.resolution or info.resolution
    badge = _RESOLUTION_BADGES.get(resolution or "", resolution or "\U0001f4fa")

    display_name = (
        f"{badge}\n{language_flag(candidate.languages)} {icon} {candidate.provider_id}"
    )

    year = query.year if query and query.year else info.year
    tech = " • ".join(
        part
        for part in (
            f"\U0001f4bf {info.source}" if info.source else "",
            f"\U0001f39e️ {info.codec}" if info.codec else "",
            f"\U0001f4fa {' '.join(info.visual)}" if info.visual else "",
        )
        if part
    )
    languages = " | ".join(
        _LANGUAGE_NAMES.get(code, code.upper()) for code in candidate.languages
    )
    stats = (
        f"\U0001f4e6 {human_size(candidate.size_bytes)} "
        f"\U0001f331 {format_count(candidate.seeders)} "
        f"\U0001f50d {status_text}"
    )

    lines = [
        _title_line(candidate, query),
        f"\U0001f4c5 {year}" if year else "",
        tech,
        f"\U0001f50a {' '.join(info.audio)}" if info.audio else "",
        f"\U0001f310 {languages}" if languages else "",
        f"\U0001f4c4 {candidate.name}",
        stats,
    ]
    return replace(
        candidate,
        display_name=display_name,
        description="\n".join(line for line in lines if line),
    )
