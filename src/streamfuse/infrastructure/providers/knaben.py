"""Knaben meta-indexer (JSON POST API)."""

from __future__ import annotations

from streamfuse.domain.entities.streams import ContentQuery, RawCandidate
from streamfuse.domain.exceptions import ProviderError

from .base import HttpxProviderBase, search_term

_PAGE_SIZE = 100


class KnabenProvider(HttpxProviderBase):
    name = "knaben"
    default_base_url = "https://api.knaben.org/v1"

    async def search(self, query: ContentQuery) -> list[RawCandidate]:
        resp = await self._fetch(
            self.base_url,
            method="POST",
            json={"query": search_term(query), "size": _PAGE_SIZE, "hide_xxx": True},
        )
        data = self._parse_json(resp)
        if not isinstance(data, dict):
            raise ProviderError(self.name, "expected a JSON object")
        hits = data.get("hits") or []
        if not isinstance(hits, list):
            raise ProviderError(self.name, "'hits' is not a list")

        candidates: list[RawCandidate] = []
        for hit in hits:
            if not isinstance(hit, dict):
                continue
            candidate = self._torrent_candidate(
                name=hit.get("title"),
                info_hash=hit.get("hash"),
                magnet_uri=hit.get("magnetUrl"),
                size=hit.get("bytes"),
                seeders=hit.get("seeders"),
            )
            if candidate is not None:
                candidates.append(candidate)
        return candidates
