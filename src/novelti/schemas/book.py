from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict

AUTHOR_UNKNOWN = "Author Unknown"


class ImageLinksDict(TypedDict, total=False):
    """Cover image links declared by upstream for a volume."""

    smallThumbnail: str
    thumbnail: str


class IndustryIdentifierDict(TypedDict):
    """One entry of ``volumeInfo.industryIdentifiers``.

    Attributes:
        type: Identifier scheme, e.g. ``"ISBN_13"`` or ``"ISBN_10"``.
        identifier: The identifier value.
    """

    type: str
    identifier: str


class VolumeInfoDict(TypedDict, total=False):
    """The subset of ``volumeInfo`` the normalizer reads.

    Every field is optional upstream; the parser checks presence and type of
    each one before use.
    """

    title: str
    authors: list[str | None]
    publishedDate: str
    description: str
    imageLinks: ImageLinksDict
    industryIdentifiers: list[IndustryIdentifierDict]


class VolumeDict(TypedDict):
    """A single upstream volume object.

    Attributes:
        id: Upstream volume identifier.
        volumeInfo: Nested metadata block.
    """

    id: str
    volumeInfo: NotRequired[VolumeInfoDict]


class VolumeCollectionDict(TypedDict, total=False):
    """A paged upstream collection response.

    Attributes:
        kind: Response kind marker (``"books#volumes"``).
        totalItems: Upstream-declared number of matches.
        items: Volumes on this page.
    """

    kind: str
    totalItems: int
    items: list[VolumeDict]


@dataclass(frozen=True, slots=True)
class VolumeRecord:
    """A strictly decoded upstream item, before cover resolution.

    Attributes:
        volume_id: Upstream volume identifier.
        identifier: Canonical identifier for the resulting book.
        title: Book title.
        authors: Author names, never empty.
        published_date: Free-form publication date string.
        description: Upstream description, only kept for detailed lookups.
        has_image: Whether upstream declared image links for the volume.
    """

    volume_id: str
    identifier: str
    title: str
    authors: tuple[str, ...]
    published_date: str | None = None
    description: str | None = None
    has_image: bool = False

    def to_book(self, cover: str | None = None) -> "Book":
        return Book(
            identifier=self.identifier,
            title=self.title,
            authors=self.authors,
            published_date=self.published_date,
            cover=cover,
            description=self.description,
        )


@dataclass(frozen=True, slots=True)
class Book:
    """Canonical book record, independent of the search mode that produced it.

    Instances are immutable; cached pages hold them by reference.

    Attributes:
        identifier: Volume ID, or ISBN-13 for ISBN searches.
        title: Book title.
        authors: Author names (``"Author Unknown"`` placeholders where missing).
        published_date: Upstream publication date, unparsed.
        cover: Resolved cover URL, or None when no source has one.
        description: Raw upstream description text, detailed lookups only.
    """

    identifier: str
    title: str
    authors: tuple[str, ...] = (AUTHOR_UNKNOWN,)
    published_date: str | None = None
    cover: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.identifier,
            "title": self.title,
            "authors": list(self.authors),
            "publishedDate": self.published_date,
            "cover": self.cover,
        }
        if self.description is not None:
            data["description"] = self.description
        return data
