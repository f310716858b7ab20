"""
Client side of the upstream volumes API: query building, fetching and
response normalization.
"""

__all__ = [
    "GoogleBooksFetcher",
    "GoogleBooksParser",
    "MalformedUpstreamResponse",
    "NoResultsFound",
    "NoveltiError",
    "ThumbnailNotFound",
    "UpstreamUnavailable",
    "build_request_url",
    "normalize_isbn",
]

from .errors import (
    MalformedUpstreamResponse,
    NoResultsFound,
    NoveltiError,
    ThumbnailNotFound,
    UpstreamUnavailable,
)
from .fetcher import GoogleBooksFetcher
from .parser import GoogleBooksParser
from .query import build_request_url, normalize_isbn
