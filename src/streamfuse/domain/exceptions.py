"""Error taxonomy for the aggregation pipeline.

Only ConfigError and InvalidQueryError are meant to reach a caller; the
others are absorbed at the boundary of the component that raised them.
"""

from __future__ import annotations


class StreamfuseError(Exception):
    """Base class for all streamfuse errors."""


class ProviderError(StreamfuseError):
    """One provider's fetch or parse failed."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ExtractorUnsupported(StreamfuseError):
    """The extractor does not recognize the URL; try the next one."""


class ExtractorFailure(StreamfuseError):
    """An extractor recognized the URL but could not resolve it."""


class DebridUnavailable(StreamfuseError):
    """The debrid API could not be queried; treated as a cache miss."""


class ConfigError(StreamfuseError):
    """Invalid policy or no applicable providers."""


class InvalidQueryError(StreamfuseError):
    """The content query is missing required fields or is inconsistent."""
