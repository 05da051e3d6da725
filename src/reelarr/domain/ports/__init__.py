from .base_url import BaseUrlResolverPort
from .cache import CachePort
from .extractor import ExtractorPort
from .metadata_source import MetadataSourcePort

__all__ = [
    "BaseUrlResolverPort",
    "CachePort",
    "ExtractorPort",
    "MetadataSourcePort",
]
