"""
Resolution orchestrator: the single entry point for book searches.

Each call runs ``check cache -> build query -> call upstream -> normalize ->
resolve thumbnails -> populate cache``, returning cached pages for repeated
searches until their TTL runs out.
"""

from __future__ import annotations

__all__ = ["BookResolver"]

import asyncio
import logging
import types
from typing import TYPE_CHECKING, Any, Self

from novelti.infra.persistence.thumbnail_store import ThumbnailStore
from novelti.schemas import (
    SEARCH_MODES,
    Book,
    ResolverConfig,
    SearchMode,
    SearchResult,
)
from novelti.upstream import (
    GoogleBooksFetcher,
    GoogleBooksParser,
    MalformedUpstreamResponse,
    NoResultsFound,
    ThumbnailNotFound,
    UpstreamUnavailable,
)

from .cache import ResultCache, make_cache_key
from .thumbnails import ThumbnailResolver

if TYPE_CHECKING:
    from novelti.infra.config import ConfigAdapter

logger = logging.getLogger(__name__)

CachedPage = tuple[tuple[Book, ...], int | None]


class BookResolver:
    """Resolves searches into pages of :class:`Book` records.

    Collaborators are injected so that tests and embedding applications can
    supply their own cache, store, or stub fetcher. :meth:`from_config`
    wires the default set.
    """

    def __init__(
        self,
        fetcher: GoogleBooksFetcher,
        cache: ResultCache[CachedPage],
        *,
        parser: GoogleBooksParser | None = None,
        store: ThumbnailStore | None = None,
        thumbnails: ThumbnailResolver | None = None,
        store_timeout: float = 2.0,
    ) -> None:
        """Initialize the resolver.

        Args:
            fetcher: Upstream fetcher.
            cache: Shared result cache.
            parser: Response normalizer; a default one is created if omitted.
            store: Persisted thumbnail store, used for cover lookups and
                :meth:`attach_thumbnail` / :meth:`get_thumbnail`.
            thumbnails: Cover resolver; defaults to one reading ``store``.
            store_timeout: Timeout in seconds for direct store operations.
        """
        self.fetcher = fetcher
        self.parser = parser or GoogleBooksParser()
        self.cache = cache
        self.store = store
        self.thumbnails = thumbnails or ThumbnailResolver(store, timeout=store_timeout)
        self._store_timeout = store_timeout
        self._thumbnail_writes = 0

    @classmethod
    def from_config(
        cls,
        config: ConfigAdapter | ResolverConfig | None = None,
        **kwargs: Any,
    ) -> Self:
        """Build a resolver with the default collaborators.

        Args:
            config: A :class:`ConfigAdapter`, a ready :class:`ResolverConfig`,
                or None for built-in defaults.
            **kwargs: Forwarded to :class:`GoogleBooksFetcher`
                (e.g. ``session=``).

        Returns:
            An uninitialized resolver; call :meth:`init` or use it as an
            async context manager.
        """
        if config is None:
            cfg = ResolverConfig()
        elif isinstance(config, ResolverConfig):
            cfg = config
        else:
            cfg = config.get_resolver_config()

        store = ThumbnailStore(cfg.store_cfg.db_path)
        thumbnails = ThumbnailResolver(
            store,
            cover_template=cfg.cover_template,
            timeout=cfg.store_cfg.timeout,
            batch_size=cfg.batch_size,
        )
        return cls(
            GoogleBooksFetcher(cfg.fetcher_cfg, **kwargs),
            ResultCache(cfg.cache_cfg.ttl, cfg.cache_cfg.max_entries),
            store=store,
            thumbnails=thumbnails,
            store_timeout=cfg.store_cfg.timeout,
        )

    async def init(self) -> None:
        """Open the upstream session and the thumbnail store."""
        if self.store is not None:
            await asyncio.to_thread(self.store.connect)
        await self.fetcher.init()

    async def close(self) -> None:
        """Release the upstream session and the thumbnail store."""
        try:
            await self.fetcher.close()
        finally:
            if self.store is not None:
                self.store.close()

    async def resolve(
        self,
        term: str,
        mode: SearchMode,
        offset: int = 0,
        detailed: bool | None = None,
    ) -> SearchResult:
        """Resolve one search into a page of books.

        Args:
            term: Search term, ISBN, or volume ID.
            mode: Search mode.
            offset: Pagination offset; ignored for ``by_id``.
            detailed: Include descriptions. Defaults to True for ``by_id``
                and False for list searches.

        Returns:
            The resolved page.

        Raises:
            ValueError: On an unknown mode, empty term, or negative offset.
            NoResultsFound: Upstream has no match. The empty answer is
                cached, so repeats within the TTL raise without an upstream
                call.
            UpstreamUnavailable: The upstream call failed.
            MalformedUpstreamResponse: The upstream payload was unusable.
        """
        if mode not in SEARCH_MODES:
            raise ValueError(f"Unsupported search mode: {mode!r}")
        if not term or not term.strip():
            raise ValueError("Search term must not be empty")
        if offset < 0:
            raise ValueError(f"Offset must be non-negative, got {offset}")
        if mode == "by_id":
            offset = 0
        if detailed is None:
            detailed = mode == "by_id"

        key = make_cache_key(term, mode, offset, detailed)
        cached, hit = self.cache.get(key)
        if hit and cached is not None:
            books, total = cached
            if not books:
                raise NoResultsFound(f"No results for {key}", cache_key=key)
            logger.debug("Cache hit: %s", key)
            return SearchResult(books, key, from_cache=True, total_items=total)

        logger.debug("Cache miss: %s", key)
        url = self.fetcher.build_url(term, mode, offset)
        try:
            raw = await self.fetcher.fetch_volumes(url)
        except UpstreamUnavailable as e:
            if mode == "by_id" and e.status == 404:
                self.cache.put(key, ((), 0))
                raise NoResultsFound(
                    f"No book found with ID: {term.strip()}", cache_key=key
                ) from e
            raise

        writes_before = self._thumbnail_writes
        try:
            books, total = await self._normalize(raw, term, mode, detailed, url)
        except NoResultsFound as e:
            self.cache.put(key, ((), 0))
            e.cache_key = key
            raise
        except MalformedUpstreamResponse as e:
            logger.error("Malformed upstream response for %s (%s): %s", key, e.url, e)
            raise

        if writes_before == self._thumbnail_writes:
            self.cache.put(key, (books, total))
        else:
            # A thumbnail landed while covers were resolving; this page may
            # carry the old cover.
            logger.debug("Thumbnail attached during %s; page not cached", key)
        return SearchResult(books, key, from_cache=False, total_items=total)

    def invalidate(self, key: str) -> bool:
        """Drop one cached page.

        Args:
            key: Cache key, as returned in :attr:`SearchResult.cache_key`.

        Returns:
            True if an entry was present.
        """
        return self.cache.invalidate(key)

    async def attach_thumbnail(self, book_id: str, thumbnail: str) -> int:
        """Record a thumbnail and drop cached pages that show the book.

        Searches still resolving covers when the write lands return their
        page but do not cache it, so no stale cover outlives this call.

        Args:
            book_id: Book identifier.
            thumbnail: Thumbnail URL.

        Returns:
            The number of cache entries invalidated.

        Raises:
            RuntimeError: If no store is configured.
            ValueError: If either argument is empty.
        """
        store = self._require_store()
        async with asyncio.timeout(self._store_timeout):
            await asyncio.to_thread(store.attach_thumbnail, book_id, thumbnail)
        self._thumbnail_writes += 1

        dropped = self.cache.invalidate_where(
            lambda _key, page: any(b.identifier == book_id for b in page[0])
        )
        logger.info(
            "Thumbnail for %s attached; invalidated %d cached page(s)", book_id, dropped
        )
        return dropped

    async def get_thumbnail(self, book_id: str) -> str:
        """Return the stored thumbnail for a book.

        Raises:
            ThumbnailNotFound: If the store has no thumbnail for the book.
            RuntimeError: If no store is configured.
        """
        store = self._require_store()
        async with asyncio.timeout(self._store_timeout):
            url = await asyncio.to_thread(store.get_thumbnail, book_id)
        if not url:
            raise ThumbnailNotFound(book_id)
        return url

    async def _normalize(
        self,
        raw: bytes,
        term: str,
        mode: SearchMode,
        detailed: bool,
        url: str,
    ) -> CachedPage:
        payload = self.parser.decode(raw, url=url)

        if mode == "by_id":
            records = [
                self.parser.parse_volume(
                    payload, detailed=detailed, fallback_id=term.strip(), url=url
                )
            ]
            total = 1
        else:
            records = self.parser.parse_collection(
                payload, mode, detailed=detailed, url=url
            )
            total = self.parser.total_items(payload)

        covers = await self.thumbnails.resolve_many(records)
        books = tuple(r.to_book(c) for r, c in zip(records, covers, strict=True))
        return books, total

    def _require_store(self) -> ThumbnailStore:
        if self.store is None:
            raise RuntimeError("No thumbnail store configured.")
        return self.store

    async def __aenter__(self) -> Self:
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        await self.close()
