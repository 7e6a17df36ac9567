"""IMDB Suggest API: title resolution without an API key.

Used when no TMDB key is configured. Only ``tt...`` ids can be resolved.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from streamfuse.domain.entities.streams import ContentType, TitleInfo

log = structlog.get_logger(__name__)

_SUGGEST_URL = "https://v2.sg.media-imdb.com/suggestion/t/{imdb_id}.json"


class ImdbSuggestClient:
    """Implements ``MetadataPort`` from domain.ports.metadata."""

    def __init__(self, *, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def _fetch_suggest(self, imdb_id: str) -> dict[str, Any] | None:
        url = _SUGGEST_URL.format(imdb_id=imdb_id)
        try:
            resp = await self._http.get(url, timeout=10.0)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError):
            log.warning("imdb_suggest_failed", imdb_id=imdb_id, exc_info=True)
            return None

        entries = data.get("d") or []
        if not entries:
            return None
        # Prefer the entry for the requested id; the API also returns related titles.
        for entry in entries:
            if entry.get("id") == imdb_id:
                return entry
        return entries[0]

    async def get_title_and_year(
        self, media_id: str, content_type: ContentType
    ) -> TitleInfo | None:
        if not media_id.startswith("tt"):
            return None
        entry = await self._fetch_suggest(media_id)
        if not entry or not entry.get("l"):
            return None
        year = entry.get("y") if isinstance(entry.get("y"), int) else None
        return TitleInfo(title=entry["l"], year=year)
