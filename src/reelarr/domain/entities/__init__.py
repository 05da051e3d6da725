from .media import (
    CONTENT_KINDS,
    CatalogFilter,
    ContentKind,
    EpisodeLink,
    FilterKind,
    Genre,
    Info,
    Post,
    SeasonLink,
    SourceType,
    Stream,
    StreamKind,
    Subtitle,
)
from .outcome import Failure, Outcome, Success

__all__ = [
    "CONTENT_KINDS",
    "CatalogFilter",
    "ContentKind",
    "EpisodeLink",
    "Failure",
    "FilterKind",
    "Genre",
    "Info",
    "Outcome",
    "Post",
    "SeasonLink",
    "SourceType",
    "Stream",
    "StreamKind",
    "Subtitle",
    "Success",
]
