"""
Normalizer for upstream volume payloads.

The upstream returns two shapes: a single volume object for ID lookups and a
paged collection for every other search. Both are decoded strictly: each
optional field is checked for presence and type, and an item that fails a
check is dropped from a collection instead of failing the whole page.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from novelti.schemas import AUTHOR_UNKNOWN, SearchMode, VolumeRecord

from .errors import MalformedUpstreamResponse, NoResultsFound

logger = logging.getLogger(__name__)


class _SkipItem(Exception):
    """Raised internally when one collection item cannot be mapped."""


class GoogleBooksParser:
    """Maps raw upstream JSON into :class:`VolumeRecord` instances."""

    def decode(self, raw: bytes | str, *, url: str = "") -> dict[str, Any]:
        """Parse a raw response body into a JSON object.

        Args:
            raw: Response body.
            url: Request URL, attached to errors for diagnosis.

        Returns:
            The decoded top-level object.

        Raises:
            MalformedUpstreamResponse: If the body is not JSON or its root is
                not an object.
        """
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedUpstreamResponse(
                f"Response is not valid JSON: {e}", url=url
            ) from e

        if not isinstance(data, dict):
            raise MalformedUpstreamResponse(
                f"Response root must be an object, got {type(data).__name__}",
                url=url,
            )
        return data

    def parse_volume(
        self,
        payload: Mapping[str, Any],
        *,
        detailed: bool = True,
        fallback_id: str = "",
        url: str = "",
    ) -> VolumeRecord:
        """Parse a single volume object (``by_id`` lookups).

        Args:
            payload: Decoded response object.
            detailed: Whether to keep the description.
            fallback_id: Identifier to use when the payload carries no ``id``.
            url: Request URL, attached to errors for diagnosis.

        Returns:
            The parsed record.

        Raises:
            MalformedUpstreamResponse: If ``volumeInfo`` or the title is
                missing or of the wrong type.
        """
        volume_id = payload.get("id")
        if not isinstance(volume_id, str) or not volume_id:
            volume_id = fallback_id

        try:
            return self._map_volume(volume_id, volume_id, payload, detailed)
        except _SkipItem as e:
            raise MalformedUpstreamResponse(str(e), url=url) from e

    def parse_collection(
        self,
        payload: Mapping[str, Any],
        mode: SearchMode,
        *,
        detailed: bool = False,
        url: str = "",
    ) -> list[VolumeRecord]:
        """Parse a paged collection, dropping bad and duplicate items.

        Args:
            payload: Decoded response object.
            mode: Search mode that produced the collection.
            detailed: Whether to keep descriptions.
            url: Request URL, attached to errors for diagnosis.

        Returns:
            Records in upstream order, unique by identifier (first wins).

        Raises:
            NoResultsFound: If upstream reported no items at all.
            MalformedUpstreamResponse: If ``items`` is not a list, or every
                item in it was malformed.
        """
        items = payload.get("items")
        total = payload.get("totalItems")

        if items is None or items == []:
            if total not in (None, 0) and items is None:
                logger.debug(
                    "Upstream declared %s items but sent none (offset past end?): %s",
                    total,
                    url,
                )
            raise NoResultsFound(f"No results for {url or 'query'}")
        if not isinstance(items, list):
            raise MalformedUpstreamResponse(
                f"'items' must be a list, got {type(items).__name__}", url=url
            )

        records: list[VolumeRecord] = []
        seen: set[str] = set()
        malformed = 0

        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                malformed += 1
                logger.debug("Skipping item %d: not an object", index)
                continue

            volume_id = item.get("id")
            if not isinstance(volume_id, str) or not volume_id:
                malformed += 1
                logger.debug("Skipping item %d: missing volume id", index)
                continue

            try:
                identifier = self._identifier_for(volume_id, item, mode)
                if identifier in seen:
                    logger.debug("Skipping duplicate item %d: %s", index, identifier)
                    continue
                record = self._map_volume(volume_id, identifier, item, detailed)
            except _SkipItem as e:
                malformed += 1
                logger.debug("Skipping item %d (%s): %s", index, volume_id, e)
                continue

            seen.add(identifier)
            records.append(record)

        if not records:
            raise MalformedUpstreamResponse(
                f"All {malformed} items in the response were malformed", url=url
            )
        if malformed:
            logger.info("Dropped %d malformed item(s) from %s", malformed, url)
        return records

    @staticmethod
    def total_items(payload: Mapping[str, Any]) -> int | None:
        """Return the upstream-declared match count, if present and valid."""
        total = payload.get("totalItems")
        if isinstance(total, int) and not isinstance(total, bool) and total >= 0:
            return total
        return None

    # ------------------------------------------------------------------
    # field mapping
    # ------------------------------------------------------------------

    def _identifier_for(
        self, volume_id: str, item: Mapping[str, Any], mode: SearchMode
    ) -> str:
        if mode != "by_isbn":
            return volume_id
        info = item.get("volumeInfo")
        if isinstance(info, Mapping):
            isbn = self._isbn13(info)
            if isbn:
                return isbn
        return volume_id

    def _map_volume(
        self,
        volume_id: str,
        identifier: str,
        item: Mapping[str, Any],
        detailed: bool,
    ) -> VolumeRecord:
        info = item.get("volumeInfo")
        if not isinstance(info, Mapping):
            raise _SkipItem("missing 'volumeInfo' object")

        title = info.get("title")
        if not isinstance(title, str) or not title.strip():
            raise _SkipItem("missing or invalid 'title'")

        published = info.get("publishedDate")
        description = info.get("description") if detailed else None

        return VolumeRecord(
            volume_id=volume_id,
            identifier=identifier,
            title=title,
            authors=self._authors(info.get("authors")),
            published_date=published if isinstance(published, str) else None,
            description=description if isinstance(description, str) else None,
            has_image=self._has_image(info.get("imageLinks")),
        )

    @staticmethod
    def _authors(raw: Any) -> tuple[str, ...]:
        """Apply the single author policy used by every search mode.

        A missing, non-list or empty field yields one placeholder; ``null``
        or non-string entries are replaced by the placeholder in place.
        """
        if not isinstance(raw, list) or not raw:
            return (AUTHOR_UNKNOWN,)
        return tuple(
            a if isinstance(a, str) and a.strip() else AUTHOR_UNKNOWN for a in raw
        )

    @staticmethod
    def _has_image(raw: Any) -> bool:
        if not isinstance(raw, Mapping):
            return False
        return any(
            isinstance(raw.get(key), str) and raw.get(key)
            for key in ("thumbnail", "smallThumbnail")
        )

    @staticmethod
    def _isbn13(info: Mapping[str, Any]) -> str | None:
        identifiers = info.get("industryIdentifiers")
        if not isinstance(identifiers, list):
            return None
        for entry in identifiers:
            if not isinstance(entry, Mapping) or entry.get("type") != "ISBN_13":
                continue
            value = entry.get("identifier")
            if isinstance(value, str) and value:
                return value
        return None
