"""VixCloud extractor: token-gated HLS playlists.

The embed page declares ``window.masterPlaylist = {url, params: {token,
expires}}``. The playlist is only playable with a valid token/expires pair.
Credentials are looked up in the page body first; when the page does not
carry them, the embed URL's own ``token``/``expires`` query parameters are
used (shared embed links often already include valid credentials).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode, urlparse

import httpx
import structlog

from streamfuse.domain.entities.streams import ExtractedStream
from streamfuse.domain.exceptions import ExtractorFailure

log = structlog.get_logger(__name__)

_DOMAINS = {"vixcloud", "vixsrc"}

_MASTER_PLAYLIST_RE = re.compile(
    r"masterPlaylist\s*=\s*(\{.*?\})\s*(?:;|\n|</script>)", re.DOTALL
)
_URL_RE = re.compile(r"""url\s*:\s*['"]([^'"]+)['"]""")
_TOKEN_RE = re.compile(r"""['"]?token['"]?\s*:\s*['"]([^'"]+)['"]""")
_EXPIRES_RE = re.compile(r"""['"]?expires['"]?\s*:\s*['"]?(\d+)['"]?""")
_FHD_RE = re.compile(r"canPlayFHD\s*[:=]\s*true")
_EMBED_ID_RE = re.compile(r"/embed/(\d+)")


@dataclass(frozen=True)
class Credentials:
    token: str
    expires: str
    source: str  # "page" or "url"


def playlist_url_from_page(html: str) -> str | None:
    block = _MASTER_PLAYLIST_RE.search(html)
    if not block:
        return None
    m = _URL_RE.search(block.group(1))
    return m.group(1) if m else None


def credentials_from_page(html: str) -> Credentials | None:
    """token/expires declared inside the masterPlaylist block."""
    block = _MASTER_PLAYLIST_RE.search(html)
    if not block:
        return None
    token = _TOKEN_RE.search(block.group(1))
    expires = _EXPIRES_RE.search(block.group(1))
    if not token or not expires:
        return None
    return Credentials(token=token.group(1), expires=expires.group(1), source="page")


def credentials_from_url(embed_url: str) -> Credentials | None:
    """token/expires carried by the embed URL's own query string."""
    query = parse_qs(urlparse(embed_url).query)
    token = query.get("token", [""])[0]
    expires = query.get("expires", [""])[0]
    if not token or not expires:
        return None
    return Credentials(token=token, expires=expires, source="url")


def resolve_credentials(html: str, embed_url: str) -> Credentials | None:
    """Page body first, embed URL second. Never reversed."""
    return credentials_from_page(html) or credentials_from_url(embed_url)


def _wants_fhd(html: str, embed_url: str) -> bool:
    if _FHD_RE.search(html):
        return True
    return parse_qs(urlparse(embed_url).query).get("canPlayFHD", ["0"])[0] == "1"


def _fallback_playlist_url(embed_url: str) -> str | None:
    parsed = urlparse(embed_url)
    m = _EMBED_ID_RE.search(parsed.path)
    if not m or not parsed.hostname:
        return None
    return f"{parsed.scheme or 'https'}://{parsed.hostname}/playlist/{m.group(1)}"


def build_playlist_url(base_url: str, credentials: Credentials, fhd: bool) -> str:
    """Attach credentials to the playlist URL and force an .m3u8 path."""
    base_url = base_url.replace("?b:1", "?b=1")
    path, _, query = base_url.partition("?")
    if not path.lower().endswith(".m3u8"):
        path = path.rstrip("/") + ".m3u8"

    params = urlencode({"token": credentials.token, "expires": credentials.expires})
    query = f"{query}&{params}" if query else params
    if fhd:
        query += "&h=1"
    return f"{path}?{query}"


class VixCloudExtractor:
    """Resolves vixcloud embed pages to HLS master playlists."""

    def __init__(self, http_client: httpx.AsyncClient, user_agent: str = "") -> None:
        self._http = http_client
        self._user_agent = user_agent

    @property
    def name(self) -> str:
        return "vixcloud"

    def can_handle(self, url: str) -> bool:
        hostname = urlparse(url).hostname or ""
        return any(part in _DOMAINS for part in hostname.split("."))

    async def _fetch_page(self, embed_url: str) -> str:
        """Embed page HTML, or "" when the host refuses it."""
        headers = {"Referer": f"{urlparse(embed_url).scheme}://{urlparse(embed_url).hostname}/"}
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        try:
            resp = await self._http.get(
                embed_url, headers=headers, follow_redirects=True
            )
        except httpx.HTTPError as exc:
            log.warning("vixcloud_page_fetch_failed", url=embed_url, error=str(exc))
            return ""
        if resp.status_code != 200:
            log.warning("vixcloud_page_http_error", url=embed_url, status=resp.status_code)
            return ""
        return resp.text

    async def resolve(self, url: str) -> ExtractedStream | None:
        html = await self._fetch_page(url)

        credentials = resolve_credentials(html, url)
        if credentials is None:
            raise ExtractorFailure(f"no token/expires for {url}")

        base_url = playlist_url_from_page(html) or _fallback_playlist_url(url)
        if base_url is None:
            raise ExtractorFailure(f"no playlist url for {url}")

        log.debug("vixcloud_credentials", source=credentials.source, url=url)
        return ExtractedStream(
            direct_url=build_playlist_url(base_url, credentials, _wants_fhd(html, url)),
            expires_at=int(credentials.expires) if credentials.expires.isdigit() else None,
            headers={"Referer": url},
        )
