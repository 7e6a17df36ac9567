"""Zilean DMM hash-list search."""

from __future__ import annotations

from streamfuse.domain.entities.streams import ContentQuery, RawCandidate
from streamfuse.domain.exceptions import ProviderError

from .base import HttpxProviderBase, search_term


class ZileanProvider(HttpxProviderBase):
    """Zilean indexes debrid hash lists; it reports no seeders."""

    name = "zilean"
    default_base_url = "https://zilean.elfhosted.com"

    async def search(self, query: ContentQuery) -> list[RawCandidate]:
        resp = await self._fetch(
            f"{self.base_url}/dmm/filtered", params={"query": search_term(query)}
        )
        rows = self._parse_json(resp)
        if not isinstance(rows, list):
            raise ProviderError(self.name, "expected a JSON list")

        candidates: list[RawCandidate] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            candidate = self._torrent_candidate(
                name=row.get("raw_title") or row.get("filename"),
                info_hash=row.get("info_hash"),
                size=row.get("size"),
            )
            if candidate is not None:
                candidates.append(candidate)
        return candidates
