"""Magnet URI helpers."""

from __future__ import annotations

import re
from urllib.parse import quote

DEFAULT_TRACKERS: tuple[str, ...] = (
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://open.stealth.si:80/announce",
    "udp://tracker.torrent.eu.org:451/announce",
    "udp://tracker.tiny-vps.com:6969/announce",
    "udp://tracker.theoks.net:6969/announce",
    "udp://exodus.desync.com:6969/announce",
)

_BTIH_RE = re.compile(r"xt=urn:btih:([0-9a-z]{32,40})", re.IGNORECASE)
_HEX_HASH_RE = re.compile(r"^[0-9a-fA-F]{40}$")


def normalize_info_hash(value: str | None) -> str | None:
    """Lower-case a 40-char hex info hash; anything else yields None."""
    if not value:
        return None
    value = value.strip()
    return value.lower() if _HEX_HASH_RE.match(value) else None


def info_hash_from_magnet(magnet_uri: str | None) -> str | None:
    if not magnet_uri:
        return None
    m = _BTIH_RE.search(magnet_uri)
    return m.group(1).lower() if m else None


def build_magnet(
    info_hash: str, name: str | None = None, trackers: tuple[str, ...] = DEFAULT_TRACKERS
) -> str:
    parts = [f"magnet:?xt=urn:btih:{info_hash.lower()}"]
    if name:
        parts.append(f"dn={quote(name)}")
    parts.extend(f"tr={quote(tracker, safe='')}" for tracker in trackers)
    return "&".join(parts)
