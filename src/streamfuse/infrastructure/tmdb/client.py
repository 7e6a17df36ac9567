"""TMDB title and collection lookups (async httpx).

A TMDB collection (``ctmdb.{id}``) is presented to clients as a single
season whose episodes are the collection's films in release order.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from streamfuse.domain.entities.streams import CollectionItem, ContentType, TitleInfo

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"
COLLECTION_PREFIX = "ctmdb."
COLLECTION_SEASON = 1


def collection_tmdb_id(collection_id: str) -> str | None:
    """Numeric TMDB id from "ctmdb.{id}" (or a bare id); None when malformed."""
    raw = collection_id.removeprefix(COLLECTION_PREFIX)
    return raw if raw.isdigit() else None


def _release_year(part: dict[str, Any]) -> int | None:
    date_str = part.get("release_date") or ""
    return int(date_str[:4]) if len(date_str) >= 4 and date_str[:4].isdigit() else None


def ordered_parts(parts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Collection parts by release date; undated parts go last, by id."""
    return sorted(
        parts,
        key=lambda p: (not p.get("release_date"), p.get("release_date") or "", p.get("id", 0)),
    )


class HttpxTmdbClient:
    """Async TMDB client.

    Implements ``CatalogStorePort`` (domain.ports.catalog) and
    ``MetadataPort`` (domain.ports.metadata).
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        language: str = "en-US",
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._language = language

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _params(self, **extra: Any) -> dict[str, Any]:
        return {"api_key": self._api_key, "language": self._language, **extra}

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{_BASE_URL}{path}"
        try:
            resp = await self._http.get(url, params=self._params(**extra))
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None

    async def _imdb_id(self, movie_id: int) -> str | None:
        data = await self._get(f"/movie/{movie_id}/external_ids")
        if data is None:
            return None
        return data.get("imdb_id") or None

    # ------------------------------------------------------------------
    # Public API (CatalogStorePort)
    # ------------------------------------------------------------------

    async def get_collection_item(
        self, collection_id: str, season: int, episode: int
    ) -> CollectionItem | None:
        """Film number *episode* of the collection, or None when unknown."""
        tmdb_id = collection_tmdb_id(collection_id)
        if tmdb_id is None or season != COLLECTION_SEASON or episode < 1:
            return None

        data = await self._get(f"/collection/{tmdb_id}")
        if data is None:
            return None
        parts = ordered_parts(data.get("parts") or [])
        if episode > len(parts):
            log.debug(
                "tmdb_collection_item_out_of_range",
                collection_id=collection_id,
                episode=episode,
                parts=len(parts),
            )
            return None

        part = parts[episode - 1]
        movie_id = part.get("id")
        title = part.get("title") or part.get("original_title") or ""
        if not movie_id or not title:
            return None

        real_id = await self._imdb_id(movie_id) or f"tmdb:{movie_id}"
        return CollectionItem(
            collection_id=f"{COLLECTION_PREFIX}{tmdb_id}",
            season=season,
            episode=episode,
            real_id=real_id,
            title=title,
            year=_release_year(part),
        )

    # ------------------------------------------------------------------
    # Public API (MetadataPort)
    # ------------------------------------------------------------------

    async def find_by_imdb_id(self, imdb_id: str) -> dict[str, Any] | None:
        """Lookup TMDB entry by IMDb ID. Returns movie/TV metadata or None."""
        data = await self._get(f"/find/{imdb_id}", external_source="imdb_id")
        if data is None:
            return None
        for media_type in ("movie_results", "tv_results"):
            results = data.get(media_type, [])
            if results:
                return results[0]
        return None

    async def get_title_and_year(
        self, media_id: str, content_type: ContentType
    ) -> TitleInfo | None:
        if media_id.startswith(COLLECTION_PREFIX):
            tmdb_id = collection_tmdb_id(media_id)
            data = await self._get(f"/collection/{tmdb_id}") if tmdb_id else None
        elif media_id.startswith("tmdb:"):
            endpoint = "tv" if content_type == "series" else "movie"
            data = await self._get(f"/{endpoint}/{media_id.removeprefix('tmdb:')}")
        else:
            data = await self.find_by_imdb_id(media_id)
        if data is None:
            return None

        title = data.get("title") or data.get("name")
        if not title:
            return None
        date_str = data.get("release_date") or data.get("first_air_date") or ""
        year = int(date_str[:4]) if date_str[:4].isdigit() else None
        return TitleInfo(title=title, year=year)
