"""Release name parser: turns a raw name into a structured ReleaseInfo once.

Resolution, language and type markers are detected with word-bounded
regexes over a separator-normalized copy of the name. guessit settles the
release year when the name carries several year-like tokens, and counts
season pack episodes the regexes cannot.
"""

from __future__ import annotations

import re
from functools import lru_cache

from guessit import guessit

from streamfuse.domain.entities.streams import ReleaseInfo

# --- Resolution markers ---

_LOW_RE = re.compile(r"\b(480p|720p|SD|HD|DVDRip|xvid|divx)\b", re.IGNORECASE)
_HIGH_RE = re.compile(r"\b(1080p|2160p|4K)\b", re.IGNORECASE)
# "HD" inside lossless audio tags is not a resolution.
_AUDIO_HD_RE = re.compile(r"\bDTS[- ]?HD\b", re.IGNORECASE)

_LOW_CANONICAL: dict[str, str] = {
    "480p": "480p",
    "720p": "720p",
    "sd": "SD",
    "hd": "HD",
    "dvdrip": "DVDRip",
    "xvid": "DVDRip",
    "divx": "DVDRip",
}
_HIGH_CANONICAL: dict[str, str] = {"1080p": "1080p", "2160p": "2160p", "4k": "4K"}

# Canonical label shown to users, best first.
_RESOLUTION_ORDER: tuple[tuple[str, str], ...] = (
    ("2160p", "4K"),
    ("4K", "4K"),
    ("1080p", "1080p"),
    ("720p", "720p"),
    ("HD", "720p"),
    ("480p", "480p"),
    ("SD", "480p"),
    ("DVDRip", "480p"),
)

# --- Type markers ---

_EPISODE_RE = re.compile(
    r"\bS(\d{1,2})\s?E(\d{1,3})\b|\b(\d{1,2})x(\d{1,3})\b", re.IGNORECASE
)
_EPISODE_WORD_RE = re.compile(r"\b(?:Episode|Episodio|Folge)\s*(\d{1,3})\b", re.IGNORECASE)
_SEASON_WORD_RE = re.compile(
    r"\b(?:Season|Stagione|Staffel|Saison|Temporada)\s*(\d{1,2})\b", re.IGNORECASE
)
_SEASON_TAG_RE = re.compile(r"\bS(\d{1,2})\b(?!\s?E\d)", re.IGNORECASE)
_EPISODE_RANGE_RE = re.compile(
    r"(?:\b|(?<=\d))E(\d{1,3})\s?-\s?E?(\d{1,3})\b"
    r"|\b(?:Episodes?|Episodi|Ep)\s*(\d{1,3})\s?-\s?(\d{1,3})\b",
    re.IGNORECASE,
)
_COMPLETE_RE = re.compile(r"\b(Complete|Completa|Integrale)\b", re.IGNORECASE)
_MOVIE_RE = re.compile(r"\b(Movie|Film)\b", re.IGNORECASE)

_YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")
_SEPARATORS_RE = re.compile(r"[._\[\]()+]+")

# --- Languages ---

_LANGUAGE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("it", re.compile(r"\b(ITA|ITALIAN|ITALIANO)\b", re.IGNORECASE)),
    ("en", re.compile(r"\b(ENG|ENGLISH)\b", re.IGNORECASE)),
    ("de", re.compile(r"\b(GER|GERMAN|DEUTSCH)\b", re.IGNORECASE)),
    ("fr", re.compile(r"\b(FRE|FRENCH|VFF|TRUEFRENCH)\b", re.IGNORECASE)),
    ("es", re.compile(r"\b(SPA|SPANISH|ESP|CASTELLANO)\b", re.IGNORECASE)),
    ("ja", re.compile(r"\b(JAP|JAPANESE)\b", re.IGNORECASE)),
)
_MULTI_RE = re.compile(r"\b(MULTI|DUAL)\b", re.IGNORECASE)

# --- Quality tags (first match wins) ---

_SOURCES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("BluRay", re.compile(r"\b(BluRay|BDRip|BRRip|BD)\b", re.IGNORECASE)),
    ("WebDL", re.compile(r"\bWEB-?DL\b", re.IGNORECASE)),
    ("WebRip", re.compile(r"\bWEB-?Rip\b", re.IGNORECASE)),
    ("HDRip", re.compile(r"\bHDRip\b", re.IGNORECASE)),
    ("DVDRip", re.compile(r"\bDVDRip\b", re.IGNORECASE)),
    ("Cam", re.compile(r"\b(CAM|HDCAM|CAMRip)\b", re.IGNORECASE)),
    ("TeleSync", re.compile(r"\b(TS|HDTS|TELESYNC)\b", re.IGNORECASE)),
)
_CODECS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("HEVC", re.compile(r"\b(x265|h265|HEVC)\b", re.IGNORECASE)),
    ("AVC", re.compile(r"\b(x264|h264|AVC)\b", re.IGNORECASE)),
    ("AV1", re.compile(r"\bAV1\b", re.IGNORECASE)),
    ("XviD", re.compile(r"\bXviD\b", re.IGNORECASE)),
)
_VISUAL: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("HDR", re.compile(r"\bHDR(10\+?)?\b", re.IGNORECASE)),
    ("DV", re.compile(r"\b(DV|DoVi|Dolby Vision)\b", re.IGNORECASE)),
    ("10bit", re.compile(r"\b10-?bit\b", re.IGNORECASE)),
    ("IMAX", re.compile(r"\bIMAX\b", re.IGNORECASE)),
)
_AUDIO: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Atmos", re.compile(r"\bAtmos\b", re.IGNORECASE)),
    ("TrueHD", re.compile(r"\bTrueHD\b", re.IGNORECASE)),
    ("DTS-HD", re.compile(r"\bDTS-?HD\b", re.IGNORECASE)),
    ("DTS", re.compile(r"\bDTS\b(?!-?HD)", re.IGNORECASE)),
    ("E-AC3", re.compile(r"\b(EAC3|DDP|DD\+)", re.IGNORECASE)),
    ("AC3", re.compile(r"\b(AC3|DD)(?=\b|\d)", re.IGNORECASE)),
    ("7.1", re.compile(r"(?<![\d.])7\.1(?!\d)")),
    ("5.1", re.compile(r"(?<![\d.])5\.1(?!\d)")),
    ("AAC", re.compile(r"\bAAC\b", re.IGNORECASE)),
)


def _normalize(name: str) -> str:
    """Turn dots, underscores and brackets into spaces so \\b works per token."""
    return " ".join(_SEPARATORS_RE.sub(" ", name).split())


def _first_label(
    text: str, table: tuple[tuple[str, re.Pattern[str]], ...]
) -> str | None:
    for label, pattern in table:
        if pattern.search(text):
            return label
    return None


def _all_labels(
    text: str, table: tuple[tuple[str, re.Pattern[str]], ...]
) -> tuple[str, ...]:
    return tuple(label for label, pattern in table if pattern.search(text))


def _canonical_resolution(low: frozenset[str], high: frozenset[str]) -> str | None:
    found = low | high
    for marker, label in _RESOLUTION_ORDER:
        if marker in found:
            return label
    return None


def _languages(text: str) -> tuple[str, ...]:
    langs = [code for code, pattern in _LANGUAGE_PATTERNS if pattern.search(text)]
    if _MULTI_RE.search(text):
        langs.append("multi")
    return tuple(langs)


def _episode_count(text: str, raw_name: str) -> int | None:
    """Infer how many episodes a season pack holds, or None."""
    m = _EPISODE_RANGE_RE.search(text)
    if m:
        first = m.group(1) or m.group(3)
        last = m.group(2) or m.group(4)
        count = int(last) - int(first) + 1
        return count if count > 0 else None

    episodes = guessit(raw_name).get("episode")
    if isinstance(episodes, list) and len(episodes) > 1:
        return len(episodes)
    return None


def _release_year(text: str, raw_name: str) -> re.Match[str] | None:
    """The year token that dates the release, not one that is part of the title.

    A leading year is always title ("2001 A Space Odyssey"). Among the rest,
    guessit's year wins when it is one of them; otherwise the last one does
    ("Blade Runner 2049 2017" -> 2017).
    """
    tokens = [m for m in _YEAR_RE.finditer(text) if m.start() > 0]
    if len(tokens) < 2:
        return tokens[0] if tokens else None
    guessed = guessit(raw_name).get("year")
    for m in tokens:
        if guessed == int(m.group(1)):
            return m
    return tokens[-1]


def _title_prefix(text: str, year: re.Match[str] | None) -> str:
    """Everything before the release year or the first type or resolution marker."""
    cut = year.start() if year else len(text)
    for pattern in (_EPISODE_RE, _SEASON_WORD_RE, _SEASON_TAG_RE, _LOW_RE, _HIGH_RE):
        m = pattern.search(text)
        if m and 0 < m.start() < cut:
            cut = m.start()
    return text[:cut].strip(" -")


@lru_cache(maxsize=4096)
def parse_release(name: str) -> ReleaseInfo:
    """Parse a release name into structured tokens (cached per name)."""
    text = _normalize(name)

    res_text = _AUDIO_HD_RE.sub(" ", text)
    low = frozenset(_LOW_CANONICAL[m.lower()] for m in _LOW_RE.findall(res_text))
    high = frozenset(_HIGH_CANONICAL[m.lower()] for m in _HIGH_RE.findall(res_text))

    season: int | None = None
    episode: int | None = None
    is_episode = False
    is_pack = False
    count: int | None = None

    ep = _EPISODE_RE.search(text)
    if ep:
        season = int(ep.group(1) or ep.group(3))
        episode = int(ep.group(2) or ep.group(4))
        is_episode = True
    else:
        ep_word = _EPISODE_WORD_RE.search(text)
        if ep_word:
            episode = int(ep_word.group(1))
            is_episode = True

    season_match = _SEASON_WORD_RE.search(text) or _SEASON_TAG_RE.search(text)
    if season_match and season is None:
        season = int(season_match.group(1))

    range_match = _EPISODE_RANGE_RE.search(text)
    if season_match or range_match or (season is not None and _COMPLETE_RE.search(text)):
        if range_match or not is_episode:
            is_pack = True
            count = _episode_count(text, name)
            if range_match:
                is_episode = False

    year = _release_year(text, name)

    return ReleaseInfo(
        title=_title_prefix(text, year),
        year=int(year.group(1)) if year else None,
        resolution=_canonical_resolution(low, high),
        low_markers=low,
        high_markers=high,
        languages=_languages(text),
        season=season,
        episode=None if is_pack else episode,
        is_episode=is_episode,
        is_season_pack=is_pack,
        is_movie_marker=bool(_MOVIE_RE.search(text)),
        episode_count=count,
        codec=_first_label(text, _CODECS),
        source=_first_label(text, _SOURCES),
        audio=_all_labels(name, _AUDIO),
        visual=_all_labels(text, _VISUAL),
    )
