from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from .book import Book

SearchMode = Literal["by_id", "by_subject", "by_title", "free_text", "by_isbn"]

SEARCH_MODES: tuple[SearchMode, ...] = (
    "by_id",
    "by_subject",
    "by_title",
    "free_text",
    "by_isbn",
)


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Resolved page of books returned to callers.

    Attributes:
        books: Books in upstream order, unique by identifier.
        cache_key: Key under which the page is cached.
        from_cache: Whether the page was served without calling upstream.
        total_items: Upstream-declared match count, if the response had one.
    """

    books: tuple[Book, ...]
    cache_key: str
    from_cache: bool = False
    total_items: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "books": [b.to_dict() for b in self.books],
            "totalItems": self.total_items,
            "cached": self.from_cache,
        }
