"""Port for media id -> title lookups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from streamfuse.domain.entities.streams import ContentType, TitleInfo


@runtime_checkable
class MetadataPort(Protocol):
    """Resolves ``tt...``, ``tmdb:...`` and ``ctmdb.`` ids to a title.

    Returns None for ids the implementation cannot resolve.
    """

    async def get_title_and_year(
        self, media_id: str, content_type: ContentType
    ) -> TitleInfo | None: ...
