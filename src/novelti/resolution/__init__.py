"""
Search resolution engine: result cache, cover resolution and the
orchestrator that ties them to the upstream client.
"""

__all__ = [
    "BookResolver",
    "ResultCache",
    "ThumbnailResolver",
    "make_cache_key",
]

from .cache import ResultCache, make_cache_key
from .resolver import BookResolver
from .thumbnails import ThumbnailResolver
