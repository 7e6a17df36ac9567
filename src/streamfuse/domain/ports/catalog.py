"""Port for the read-only metadata store."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from streamfuse.domain.entities.streams import CollectionItem


@runtime_checkable
class CatalogStorePort(Protocol):
    """Looks up collection items. Owned and written by other collaborators."""

    async def get_collection_item(
        self, collection_id: str, season: int, episode: int
    ) -> CollectionItem | None: ...
