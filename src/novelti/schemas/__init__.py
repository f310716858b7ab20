"""
Data contracts and type definitions.
"""

__all__ = [
    "AUTHOR_UNKNOWN",
    "SEARCH_MODES",
    "Book",
    "CacheConfig",
    "FetcherConfig",
    "ImageLinksDict",
    "IndustryIdentifierDict",
    "ResolverConfig",
    "SearchMode",
    "SearchResult",
    "SessionConfig",
    "StoreConfig",
    "VolumeCollectionDict",
    "VolumeDict",
    "VolumeInfoDict",
    "VolumeRecord",
]

from .book import (
    AUTHOR_UNKNOWN,
    Book,
    ImageLinksDict,
    IndustryIdentifierDict,
    VolumeCollectionDict,
    VolumeDict,
    VolumeInfoDict,
    VolumeRecord,
)
from .config import (
    CacheConfig,
    FetcherConfig,
    ResolverConfig,
    SessionConfig,
    StoreConfig,
)
from .search import SEARCH_MODES, SearchMode, SearchResult
