"""
Builds the upstream request URL for each search mode.
"""

from __future__ import annotations

__all__ = [
    "build_request_url",
    "normalize_isbn",
    "DEFAULT_BASE_URL",
    "FREE_TEXT_SUFFIX",
]

import re
from urllib.parse import quote, quote_plus

from novelti.schemas import SEARCH_MODES, SearchMode

DEFAULT_BASE_URL = "https://www.googleapis.com/books/v1/volumes"

# Appended to free-text terms so the upstream ranks book-like matches first.
FREE_TEXT_SUFFIX = " books"

_QUALIFIERS: dict[SearchMode, str] = {
    "by_subject": "subject:",
    "by_title": "intitle:",
    "by_isbn": "isbn:",
}

_ISBN_SEPARATORS_RE = re.compile(r"[\s-]+")


def normalize_isbn(term: str) -> str:
    """Drop the hyphens and spaces people type inside ISBNs."""
    return _ISBN_SEPARATORS_RE.sub("", term)


def build_request_url(
    term: str,
    mode: SearchMode,
    offset: int = 0,
    *,
    base_url: str = DEFAULT_BASE_URL,
    page_size: int = 20,
    order_by: str = "relevance",
) -> str:
    """Map a search to a fully encoded upstream URL.

    Args:
        term: The user's search term, or a volume ID for ``by_id``.
        mode: Search mode.
        offset: Zero-based pagination offset (``startIndex``).
        base_url: Volumes endpoint.
        page_size: ``maxResults`` for collection queries.
        order_by: ``orderBy`` hint for collection queries.

    Returns:
        The request URL.

    Raises:
        ValueError: On an unknown mode, an empty term, or a negative offset.
    """
    if mode not in SEARCH_MODES:
        raise ValueError(f"Unsupported search mode: {mode!r}")
    term = term.strip()
    if not term:
        raise ValueError("Search term must not be empty")
    if offset < 0:
        raise ValueError(f"Offset must be non-negative, got {offset}")

    base_url = base_url.rstrip("/")

    if mode == "by_id":
        return f"{base_url}/{quote(term, safe='')}"

    if mode == "free_text":
        q = term + FREE_TEXT_SUFFIX
    elif mode == "by_isbn":
        q = _QUALIFIERS[mode] + normalize_isbn(term)
    else:
        q = _QUALIFIERS[mode] + term

    return (
        f"{base_url}?q={quote_plus(q)}"
        f"&maxResults={page_size}&startIndex={offset}&orderBy={order_by}"
    )
