"""SuperVideo extractor: packed JWPlayer config to HLS master playlist.

SuperVideo hides its player setup in a Dean Edwards packed ``eval`` block.
The word list of that block carries everything needed to rebuild the
``serversicuro`` urlset playlist; when it does not, the block is unpacked
and the JWPlayer ``file:`` source is read instead.
"""

from __future__ import annotations

import re
import string

import httpx
import structlog

from streamfuse.domain.entities.streams import ExtractedStream
from streamfuse.domain.exceptions import ExtractorFailure

log = structlog.get_logger(__name__)

_DOMAINS = {"supervideo"}

_PACKED_RE = re.compile(
    r"eval\(function\(p,a,c,k,e,d\)\{.*?\.split\('\|'\)", re.DOTALL
)
_PACKED_ARGS_RE = re.compile(
    r"\}\(\s*'((?:[^'\\]|\\.)*)',\s*(\d+),\s*(\d+),\s*'((?:[^'\\]|\\.)*)'\.split",
    re.DOTALL,
)
_FILE_RE = re.compile(r"""file\s*:\s*["'](https?://[^"']+\.(?:m3u8|mp4)[^"']*)""")


def _unpack_p_a_c_k(packed_js: str) -> str | None:
    """Decode eval(function(p,a,c,k,e,d){...}) packed JavaScript.

    The body uses base-N number tokens that index a word list built with
    split('|'); empty words leave the token as is.
    """
    match = _PACKED_ARGS_RE.search(packed_js)
    if not match:
        return None

    body = match.group(1)
    base = int(match.group(2))
    words = match.group(4).split("|")
    if base < 2 or base > 36:
        return None

    chars = (string.digits + string.ascii_lowercase)[:base]
    pattern = r"\b[" + re.escape(chars) + r"]+\b"

    def replacer(m: re.Match[str]) -> str:
        token = m.group(0)
        try:
            idx = int(token, base)
        except ValueError:
            return token
        return words[idx] if idx < len(words) and words[idx] else token

    return re.sub(pattern, replacer, body)


def playlist_from_terms(words: list[str]) -> str | None:
    """Rebuild the urlset master playlist from the packer's word list.

    The list holds ``file``, an ``hfs`` host label, and the urlset path
    parts between ``urlset`` and ``hls`` in reverse order.
    """
    if "file" not in words or "urlset" not in words or "hls" not in words:
        return None
    file_index = words.index("file")
    host = next((w for w in words[file_index:] if "hfs" in w), "")
    urlset_index = words.index("urlset")
    hls_index = words.index("hls")
    if not host or hls_index <= urlset_index:
        return None

    parts = list(reversed(words[urlset_index + 1 : hls_index]))
    if not parts:
        return None
    base = f"https://{host}.serversicuro.cc/hls/"
    if len(parts) == 1:
        return f"{base},{parts[0]}.urlset/master.m3u8"
    return base + ",".join(parts) + ",.urlset/master.m3u8"


def extract_playlist(html: str) -> str | None:
    packed = _PACKED_RE.search(html)
    if not packed:
        return None
    args = _PACKED_ARGS_RE.search(html[packed.start():])
    if args:
        url = playlist_from_terms(args.group(4).split("|"))
        if url:
            return url
    unpacked = _unpack_p_a_c_k(html[packed.start():])
    if unpacked:
        m = _FILE_RE.search(unpacked)
        if m:
            return m.group(1)
    return None


class SuperVideoExtractor:
    """Resolves supervideo.cc/.tv embed pages."""

    def __init__(self, http_client: httpx.AsyncClient, user_agent: str = "") -> None:
        self._http = http_client
        self._user_agent = user_agent

    @property
    def name(self) -> str:
        return "supervideo"

    def can_handle(self, url: str) -> bool:
        return any(domain in url.lower() for domain in _DOMAINS)

    @staticmethod
    def _normalize_embed_url(url: str) -> str:
        """Ensure the /e/ embed form; /v/ and bare ids serve a landing page."""
        return re.sub(r"supervideo\.(\w+)/(?!e/)(?:v/)?", r"supervideo.\1/e/", url)

    async def resolve(self, url: str) -> ExtractedStream | None:
        embed_url = self._normalize_embed_url(url)
        headers = {"Referer": embed_url}
        if self._user_agent:
            headers["User-Agent"] = self._user_agent

        resp = await self._http.get(embed_url, headers=headers, follow_redirects=True)
        if resp.status_code != 200:
            raise ExtractorFailure(f"supervideo returned HTTP {resp.status_code}")

        playlist = extract_playlist(resp.text)
        if playlist is None:
            raise ExtractorFailure("no packed player config on supervideo page")

        log.debug("supervideo_resolved", url=embed_url)
        return ExtractedStream(direct_url=playlist, headers={"Referer": embed_url})
