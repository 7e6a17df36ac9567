"""Last-resort extractor: URLs that already serve media directly."""

from __future__ import annotations

import httpx
import structlog

from streamfuse.domain.entities.streams import ExtractedStream
from streamfuse.domain.exceptions import ExtractorUnsupported

log = structlog.get_logger(__name__)

_MEDIA_SUFFIXES = (".mp4", ".mkv", ".m3u8", ".webm")
_HLS_CONTENT_TYPES = ("application/vnd.apple.mpegurl", "application/x-mpegurl")


class DirectMediaExtractor:
    """Accepts a URL when a HEAD probe reports a video or HLS content type."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    @property
    def name(self) -> str:
        return "direct"

    def can_handle(self, url: str) -> bool:
        return url.startswith(("http://", "https://"))

    async def resolve(self, url: str) -> ExtractedStream | None:
        path = url.split("?", 1)[0].lower()
        if path.endswith(_MEDIA_SUFFIXES):
            return ExtractedStream(direct_url=url)

        resp = await self._http.head(url, follow_redirects=True)
        content_type = resp.headers.get("content-type", "").lower()
        if content_type.startswith("video/") or any(
            hls in content_type for hls in _HLS_CONTENT_TYPES
        ):
            log.debug("direct_media_probe_hit", url=url, content_type=content_type)
            return ExtractedStream(direct_url=str(resp.url))
        raise ExtractorUnsupported(f"{url} is not a media resource ({content_type})")
