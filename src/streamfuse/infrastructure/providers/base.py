"""Shared base class for httpx-based providers.

Covers what every JSON indexer adapter repeats: search term building,
fetch with structured error logging, JSON parsing, and magnet building.
Failures surface as ProviderError so the orchestrator can absorb them.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from streamfuse.domain.entities.streams import ContentQuery, ContentType, RawCandidate
from streamfuse.domain.exceptions import ProviderError
from streamfuse.infrastructure.common.converters import parse_size, to_int
from streamfuse.infrastructure.common.magnet import (
    build_magnet,
    info_hash_from_magnet,
    normalize_info_hash,
)


def search_term(query: ContentQuery) -> str:
    """Title plus year for movies, title plus SxxEyy for episodes."""
    title = query.title.strip()
    if query.type == "series" and query.is_episode:
        return f"{title} S{query.season:02d}E{query.episode:02d}"
    if query.year:
        return f"{title} {query.year}"
    return title


class HttpxProviderBase:
    """Shared base for JSON indexer providers.

    Subclasses **must** set ``name`` and override ``search()``.
    They **may** override ``content_types`` and ``default_base_url``.
    """

    name: str = ""
    default_base_url: str = ""
    content_types: frozenset[str] = frozenset({"movie", "series"})

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str | None = None,
        user_agent: str = "",
    ) -> None:
        self._http = http_client
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self._user_agent = user_agent
        self._log = structlog.get_logger(self.name or __name__)

    def supports(self, content_type: ContentType) -> bool:
        return content_type in self.content_types

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent} if self._user_agent else {}

    async def _fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        **kwargs: Any,
    ) -> httpx.Response:
        """Fetch *url*; any transport or status failure becomes ProviderError."""
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            resp = await self._http.request(method, url, headers=headers, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.TimeoutException as exc:
            self._log.warning(f"{self.name}_timeout", url=url)
            raise ProviderError(self.name, "request timed out") from exc
        except httpx.HTTPStatusError as exc:
            self._log.warning(
                f"{self.name}_http_error",
                url=url,
                status=exc.response.status_code,
            )
            raise ProviderError(
                self.name, f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            self._log.warning(f"{self.name}_fetch_error", url=url, error=str(exc))
            raise ProviderError(self.name, str(exc) or type(exc).__name__) from exc

    def _parse_json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            self._log.warning(f"{self.name}_invalid_json", url=str(response.url))
            raise ProviderError(self.name, "invalid JSON payload") from exc

    def _torrent_candidate(
        self,
        *,
        name: Any,
        info_hash: Any = None,
        magnet_uri: Any = None,
        size: Any = None,
        seeders: Any = None,
    ) -> RawCandidate | None:
        """Build a RawCandidate from loosely typed fields; None when unusable."""
        if not name or not isinstance(name, str):
            return None
        magnet = magnet_uri if isinstance(magnet_uri, str) and magnet_uri else None
        normalized = normalize_info_hash(str(info_hash)) if info_hash else None
        normalized = normalized or info_hash_from_magnet(magnet)
        if normalized is None:
            return None
        return RawCandidate(
            name=name.strip(),
            provider_id=self.name,
            size_bytes=parse_size(size),
            seeders=to_int(seeders),
            info_hash=normalized,
            magnet_uri=magnet or build_magnet(normalized, name),
        )

    async def search(self, query: ContentQuery) -> list[RawCandidate]:
        raise NotImplementedError(f"{type(self).__name__}.search() not implemented")
