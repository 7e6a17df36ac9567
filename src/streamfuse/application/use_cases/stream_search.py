"""Stream search use case.

ContentQuery -> (collection lookup) -> provider fan-out -> filter -> dedupe
-> debrid availability -> inline extraction -> sort -> binge group -> format.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import replace
from typing import Protocol

import structlog

from streamfuse.domain.entities.streams import (
    ContentQuery,
    ExtractedStream,
    FilterPolicy,
    RawCandidate,
    StreamCandidate,
    StreamRequest,
)
from streamfuse.domain.ports.catalog import CatalogStorePort
from streamfuse.domain.ports.metadata import MetadataPort
from streamfuse.infrastructure.streams import binge
from streamfuse.infrastructure.streams.deduplicator import dedupe
from streamfuse.infrastructure.streams.filterer import filter_candidates
from streamfuse.infrastructure.streams.formatter import format_candidate

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its collaborators.
# Infrastructure components satisfy these via structural subtyping.
# ---------------------------------------------------------------------------


class _Orchestrator(Protocol):
    async def aggregate(self, query: ContentQuery) -> list[RawCandidate]: ...


class _Availability(Protocol):
    @property
    def service(self) -> str: ...

    async def check_availability(self, hashes: Sequence[str]) -> dict[str, bool]: ...


class _Extractor(Protocol):
    async def resolve(self, embed_url: str) -> ExtractedStream | None: ...

    async def resolve_many(
        self, urls: Sequence[str], limit: int
    ) -> dict[str, ExtractedStream | None]: ...


class _StreamSorter(Protocol):
    def sort(self, streams: list[StreamCandidate]) -> list[StreamCandidate]: ...


log = structlog.get_logger(__name__)


class StreamSearchUseCase:
    """Answer "which streams exist for this item right now?".

    Only InvalidQueryError (bad query) and ConfigError (no applicable
    provider) escape execute(); every upstream failure degrades to fewer
    or no candidates.
    """

    def __init__(
        self,
        *,
        orchestrator: _Orchestrator,
        policy: FilterPolicy,
        sorter: _StreamSorter,
        extractor_chain: _Extractor,
        debrid: _Availability | None = None,
        catalog: CatalogStorePort | None = None,
        metadata: MetadataPort | None = None,
        provider_priority: Sequence[str] = (),
        resolve_inline: bool = False,
        extractor_concurrency: int = 5,
    ) -> None:
        self._orchestrator = orchestrator
        self._policy = policy
        self._sorter = sorter
        self._chain = extractor_chain
        self._debrid = debrid
        self._catalog = catalog
        self._metadata = metadata
        self._provider_priority = tuple(provider_priority)
        self._resolve_inline = resolve_inline
        self._extractor_concurrency = extractor_concurrency

    async def execute(self, query: ContentQuery) -> list[StreamCandidate]:
        query.validate()

        search_query = await self._resolve_collection(query)
        if search_query is None:
            return []

        raw = await self._orchestrator.aggregate(search_query)
        if not raw:
            log.info("stream_search_no_results", title=search_query.title)
            return []

        # guessit parsing is CPU-bound; keep it off the event loop.
        loop = asyncio.get_running_loop()
        admitted = await loop.run_in_executor(
            None,
            lambda: filter_candidates(
                raw, search_query, search_query.type, self._policy
            ),
        )
        candidates = dedupe(admitted, search_query, self._provider_priority)

        candidates = await self._mark_cached(candidates)
        if self._resolve_inline:
            candidates = await self._extract_inline(candidates)

        ordered = self._sorter.sort(candidates)
        result = [
            format_candidate(binge.tag(c, search_query), search_query) for c in ordered
        ]

        log.info(
            "stream_search_complete",
            title=search_query.title,
            content_type=search_query.type,
            raw=len(raw),
            admitted=len(admitted),
            streams=len(result),
        )
        return result

    async def search(self, request: StreamRequest) -> list[StreamCandidate]:
        """Resolve *request*'s title, then run execute().

        Returns [] when the id cannot be resolved to a title.
        """
        query = await self.build_query(request)
        if query is None:
            return []
        return await self.execute(query)

    async def build_query(self, request: StreamRequest) -> ContentQuery | None:
        if self._metadata is None:
            log.warning("metadata_lookup_unavailable", media_id=request.media_id)
            return None
        info = await self._metadata.get_title_and_year(
            request.media_id, request.content_type
        )
        if info is None:
            log.warning("stream_title_not_found", media_id=request.media_id)
            return None

        media_id = request.media_id
        return ContentQuery(
            type=request.content_type,
            title=info.title,
            year=info.year,
            imdb_id=media_id if media_id.startswith("tt") else None,
            tmdb_id=media_id.removeprefix("tmdb:") if media_id.startswith("tmdb:") else None,
            season=request.season,
            episode=request.episode,
            collection_id=media_id if request.is_collection else None,
        )

    async def resolve_embed(self, url: str) -> ExtractedStream | None:
        """Resolve one embed page lazily (playback time)."""
        return await self._chain.resolve(url)

    async def _resolve_collection(self, query: ContentQuery) -> ContentQuery | None:
        """Map a collection item onto a movie query for its real title.

        Season/episode and collection_id are kept for binge grouping.
        Returns None when the item cannot be resolved.
        """
        if not query.collection_id or not query.is_episode:
            return query
        if self._catalog is None:
            log.warning("collection_catalog_unavailable", collection_id=query.collection_id)
            return None

        item = await self._catalog.get_collection_item(
            query.collection_id, query.season, query.episode  # type: ignore[arg-type]
        )
        if item is None:
            log.info(
                "collection_item_not_found",
                collection_id=query.collection_id,
                season=query.season,
                episode=query.episode,
            )
            return None

        log.debug(
            "collection_item_resolved",
            collection_id=query.collection_id,
            episode=query.episode,
            real_id=item.real_id,
            title=item.title,
        )
        imdb_id = item.real_id if item.real_id.startswith("tt") else None
        tmdb_id = item.real_id.removeprefix("tmdb:") if imdb_id is None else None
        return ContentQuery(
            type="movie",
            title=item.title,
            year=item.year,
            imdb_id=imdb_id,
            tmdb_id=tmdb_id,
            season=query.season,
            episode=query.episode,
            collection_id=query.collection_id,
        )

    async def _mark_cached(
        self, candidates: list[StreamCandidate]
    ) -> list[StreamCandidate]:
        if self._debrid is None:
            return candidates
        hashes = [c.info_hash for c in candidates if c.info_hash]
        if not hashes:
            return candidates

        availability = await self._debrid.check_availability(hashes)
        return [
            replace(c, cached=True)
            if c.info_hash and availability.get(c.info_hash) and not c.cached
            else c
            for c in candidates
        ]

    async def _extract_inline(
        self, candidates: list[StreamCandidate]
    ) -> list[StreamCandidate]:
        """Swap embed URLs for direct ones; unresolved embeds stay lazy."""
        urls = [c.direct_url for c in candidates if c.needs_extraction and c.direct_url]
        if not urls:
            return candidates

        resolved = await self._chain.resolve_many(urls, self._extractor_concurrency)
        out: list[StreamCandidate] = []
        for c in candidates:
            stream = resolved.get(c.direct_url or "") if c.needs_extraction else None
            if stream is None:
                out.append(c)
                continue
            out.append(
                replace(
                    c,
                    direct_url=stream.direct_url,
                    needs_extraction=False,
                    expires_at=stream.expires_at,
                )
            )
        return out
