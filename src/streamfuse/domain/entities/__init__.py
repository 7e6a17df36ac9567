from .streams import (
    CONTENT_TYPES,
    CollectionItem,
    ContentQuery,
    ContentType,
    ExtractedStream,
    FilterPolicy,
    QualityTag,
    RawCandidate,
    ReleaseInfo,
    StreamCandidate,
    StreamRequest,
    TitleInfo,
)

__all__ = [
    "CONTENT_TYPES",
    "CollectionItem",
    "ContentQuery",
    "ContentType",
    "ExtractedStream",
    "FilterPolicy",
    "QualityTag",
    "RawCandidate",
    "ReleaseInfo",
    "StreamCandidate",
    "StreamRequest",
    "TitleInfo",
]
