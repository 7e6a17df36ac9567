"""Stream ranking.

Order: direct streams first, then debrid-cached torrents, then resolution,
then preferred language, then seeders. Python's sort is stable, so equal
candidates keep their pipeline order.
"""

from __future__ import annotations

from streamfuse.domain.entities.streams import StreamCandidate
from streamfuse.infrastructure.config.schema import SortingConfig


class StreamSorter:
    """Tuple-key ranking with weights taken from SortingConfig."""

    def __init__(self, config: SortingConfig) -> None:
        self._resolution_scores = config.resolution_scores
        self._preferred_languages = [code.lower() for code in config.preferred_languages]

    def _language_rank(self, stream: StreamCandidate) -> int:
        """Lower is better; streams with no preferred language rank last."""
        for index, code in enumerate(self._preferred_languages):
            if code in stream.languages:
                return index
        return len(self._preferred_languages)

    def rank(self, stream: StreamCandidate) -> tuple[int, int, int, int, int]:
        """Sort key for a single stream (ascending sort)."""
        return (
            0 if stream.is_direct else 1,
            0 if stream.cached else 1,
            -self._resolution_scores.get(stream.resolution or "", 0),
            self._language_rank(stream),
            -(stream.seeders or 0),
        )

    def sort(self, streams: list[StreamCandidate]) -> list[StreamCandidate]:
        """Return a new list, best stream first."""
        return sorted(streams, key=self.rank)
