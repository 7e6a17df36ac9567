"""Port for resolving embed page URLs to direct media URLs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from streamfuse.domain.entities.streams import ExtractedStream


@runtime_checkable
class ExtractorPort(Protocol):
    """Resolves one embed-hosting scheme.

    resolve() may return None or raise ExtractorUnsupported when the page
    is not one it understands, and raises ExtractorFailure (or lets an
    httpx error escape) when the host is broken.
    """

    @property
    def name(self) -> str: ...

    def can_handle(self, url: str) -> bool: ...

    async def resolve(self, url: str) -> ExtractedStream | None: ...
