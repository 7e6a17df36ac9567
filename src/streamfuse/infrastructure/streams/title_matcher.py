"""Fuzzy title matching between a query title and a release name.

Uses **rapidfuzz** ``token_set_ratio`` so word reordering and extra tokens
("Dune" vs "Dune Part One") do not sink the score.
"""

from __future__ import annotations

import re

from guessit import guessit
from rapidfuzz import fuzz
from unidecode import unidecode as _unidecode

from streamfuse.infrastructure.streams.release_parser import parse_release

_PUNCT_RE = re.compile(r"[^\w\s]|_")


def normalize_title(text: str) -> str:
    """Lowercase, transliterate to ASCII, strip punctuation, collapse ws."""
    text = _unidecode(text.lower())
    text = _PUNCT_RE.sub(" ", text)
    return " ".join(text.split())


def _title_candidates(release_name: str) -> list[str]:
    candidates: list[str] = []
    for text in (parse_release(release_name).title, guessit(release_name).get("title")):
        if isinstance(text, str):
            norm = normalize_title(text)
            if norm and norm not in candidates:
                candidates.append(norm)
    return candidates


def title_score(reference: str, release_name: str) -> float:
    """Best 0-100 similarity between *reference* and the release's title."""
    norm_ref = normalize_title(reference)
    if not norm_ref:
        return 0.0
    best = 0.0
    for candidate in _title_candidates(release_name):
        best = max(best, fuzz.token_set_ratio(norm_ref, candidate, processor=None))
    return best


def year_matches(reference_year: int | None, release_year: int | None, tolerance: int) -> bool:
    """Unknown years never disqualify."""
    if reference_year is None or release_year is None:
        return True
    return abs(reference_year - release_year) <= tolerance
