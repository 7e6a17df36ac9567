"""Port for upstream stream providers (torrent indexers, embed sites)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from streamfuse.domain.entities.streams import ContentQuery, ContentType, RawCandidate


@runtime_checkable
class ProviderPort(Protocol):
    """Fetches and parses one upstream source.

    Implementations raise ProviderError on network or parse failures;
    the orchestrator absorbs it.
    """

    @property
    def name(self) -> str:
        """Provider identifier, stamped on every candidate it emits."""
        ...

    def supports(self, content_type: ContentType) -> bool: ...

    async def search(self, query: ContentQuery) -> list[RawCandidate]: ...
