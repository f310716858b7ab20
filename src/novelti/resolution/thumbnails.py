from __future__ import annotations

import asyncio
import logging
import string
from collections.abc import Callable, Sequence
from typing import Protocol, TypeVar

from novelti.schemas import VolumeRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_COVER_TEMPLATE = (
    "https://books.google.com/books/publisher/content/images/frontcover/"
    "{volume_id}?fife=w600-h800&source=gbs_api"
)


class ThumbnailLookup(Protocol):
    """Read side of the persisted thumbnail store."""

    def get_thumbnail(self, book_id: str) -> str | None: ...

    def get_thumbnails(self, book_ids: list[str]) -> dict[str, str | None]: ...


def validate_cover_template(template: str) -> str:
    """Check that ``template`` only uses the ``{volume_id}`` placeholder.

    Raises:
        ValueError: On malformed braces, positional fields or unknown names.
    """
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as e:
        raise ValueError(f"Invalid cover template {template!r}: {e}") from e

    fields = {f for _, f, _, _ in parsed if f is not None}
    unknown = sorted(fields - {"volume_id"})
    if unknown:
        raise ValueError(
            f"Cover template {template!r} may only use {{volume_id}}, got {unknown}"
        )
    return template


class ThumbnailResolver:
    """Resolves a cover URL for each book through an ordered fallback chain.

    1. A thumbnail recorded in the persisted store for the identifier.
    2. A derived high-resolution cover URL, when upstream declared images.
    3. No cover.

    Any store failure or timeout counts as a miss on the first tier; nothing
    in this class raises for a missing cover.
    """

    def __init__(
        self,
        store: ThumbnailLookup | None,
        *,
        cover_template: str = DEFAULT_COVER_TEMPLATE,
        timeout: float = 2.0,
        batch_size: int = 200,
    ) -> None:
        self._store = store
        self._cover_template = validate_cover_template(cover_template)
        self._timeout = timeout
        self._batch_size = max(1, batch_size)

    async def resolve(
        self, identifier: str, volume_id: str, has_image: bool
    ) -> str | None:
        """Resolve the cover for a single book.

        Args:
            identifier: Canonical identifier used as the store key.
            volume_id: Upstream volume ID used for the derived URL.
            has_image: Whether upstream declared image links.

        Returns:
            The cover URL, or None.
        """
        stored = None
        if self._store is not None:
            stored = await self._call_store(self._store.get_thumbnail, identifier)
        return self._pick(identifier, volume_id, has_image, stored)

    async def resolve_many(self, records: Sequence[VolumeRecord]) -> list[str | None]:
        """Resolve covers for a page of records.

        The store is queried once per ``batch_size`` identifiers instead of
        once per book.

        Args:
            records: Parsed records.

        Returns:
            Cover URLs (or None) aligned with ``records``.
        """
        if not records:
            return []

        stored: dict[str, str | None] = {}
        if self._store is not None:
            ids = list(dict.fromkeys(r.identifier for r in records))
            for start in range(0, len(ids), self._batch_size):
                chunk = ids[start : start + self._batch_size]
                found = await self._call_store(self._store.get_thumbnails, chunk)
                stored.update(found or {})

        return [
            self._pick(r.identifier, r.volume_id, r.has_image, stored.get(r.identifier))
            for r in records
        ]

    def _pick(
        self, identifier: str, volume_id: str, has_image: bool, stored: str | None
    ) -> str | None:
        if stored:
            logger.debug("Using stored thumbnail for %s", identifier)
            return stored
        if has_image:
            return self._cover_template.format(volume_id=volume_id)
        logger.debug("No thumbnail available for %s", identifier)
        return None

    async def _call_store(self, lookup: Callable[[T], R], arg: T) -> R | None:
        try:
            async with asyncio.timeout(self._timeout):
                return await asyncio.to_thread(lookup, arg)
        except TimeoutError:
            logger.warning(
                "Thumbnail lookup for %s timed out after %.1fs", arg, self._timeout
            )
        except Exception as e:
            logger.warning("Thumbnail lookup for %s failed: %r", arg, e)
        return None
