"""MaxStream / uprot extractor: plain mp4 source in the player config."""

from __future__ import annotations

import re

import httpx

from streamfuse.domain.entities.streams import ExtractedStream
from streamfuse.domain.exceptions import ExtractorFailure

_DOMAINS = ("maxstream", "uprot")

_SRC_RE = re.compile(r"""src\s*:\s*["']([^"']+\.mp4[^"']*)["']""")


class MaxStreamExtractor:
    def __init__(self, http_client: httpx.AsyncClient, user_agent: str = "") -> None:
        self._http = http_client
        self._user_agent = user_agent

    @property
    def name(self) -> str:
        return "maxstream"

    def can_handle(self, url: str) -> bool:
        return any(domain in url.lower() for domain in _DOMAINS)

    async def resolve(self, url: str) -> ExtractedStream | None:
        headers = {"User-Agent": self._user_agent} if self._user_agent else {}
        resp = await self._http.get(url, headers=headers, follow_redirects=True)
        if resp.status_code != 200:
            raise ExtractorFailure(f"maxstream returned HTTP {resp.status_code}")
        m = _SRC_RE.search(resp.text)
        if not m:
            raise ExtractorFailure("no mp4 source on maxstream page")
        return ExtractedStream(direct_url=m.group(1), headers={"Referer": str(resp.url)})
