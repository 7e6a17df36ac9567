"""The Pirate Bay via the apibay JSON API."""

from __future__ import annotations

from streamfuse.domain.entities.streams import ContentQuery, RawCandidate
from streamfuse.domain.exceptions import ProviderError

from .base import HttpxProviderBase, search_term

# apibay category 200 = Video (movies, TV, HD variants)
_VIDEO_CATEGORY = "200"
_NO_RESULTS_ID = "0"


class ThePirateBayProvider(HttpxProviderBase):
    name = "tpb"
    default_base_url = "https://apibay.org"

    async def search(self, query: ContentQuery) -> list[RawCandidate]:
        resp = await self._fetch(
            f"{self.base_url}/q.php",
            params={"q": search_term(query), "cat": _VIDEO_CATEGORY},
        )
        rows = self._parse_json(resp)
        if not isinstance(rows, list):
            raise ProviderError(self.name, "expected a JSON list")
        # apibay answers an empty search with a single placeholder row.
        first = rows[0] if len(rows) == 1 else None
        if isinstance(first, dict) and str(first.get("id")) == _NO_RESULTS_ID:
            return []

        candidates: list[RawCandidate] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            candidate = self._torrent_candidate(
                name=row.get("name"),
                info_hash=row.get("info_hash"),
                size=row.get("size"),
                seeders=row.get("seeders"),
            )
            if candidate is not None:
                candidates.append(candidate)

        self._log.debug("tpb_search_done", query=search_term(query), count=len(candidates))
        return candidates
