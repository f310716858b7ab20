import asyncio

import aiohttp.web
import pytest
import pytest_asyncio

from novelti.infra.persistence.thumbnail_store import ThumbnailStore
from novelti.resolution import BookResolver, ResultCache
from novelti.resolution.thumbnails import DEFAULT_COVER_TEMPLATE, ThumbnailResolver
from novelti.schemas import (
    AUTHOR_UNKNOWN,
    CacheConfig,
    FetcherConfig,
    ResolverConfig,
    StoreConfig,
)
from novelti.upstream import (
    MalformedUpstreamResponse,
    NoResultsFound,
    ThumbnailNotFound,
    UpstreamUnavailable,
)
from novelti.upstream.query import build_request_url

from ..factories import FakeClock, StubFetcher, make_collection, make_volume


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher() -> StubFetcher:
    return StubFetcher()


@pytest_asyncio.fixture
async def resolver(fetcher, clock):
    store = ThumbnailStore(":memory:")
    cache = ResultCache(600, clock=clock)
    async with BookResolver(fetcher, cache, store=store) as r:
        yield r


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_free_text_search(resolver, fetcher):
    fetcher.respond(
        "dune",
        "free_text",
        make_collection(make_volume("X1", "Dune", description="long"), total=412),
    )

    result = await resolver.resolve("dune", "free_text")

    assert not result.from_cache
    assert result.total_items == 412
    assert result.cache_key == "free_text:dune:0"
    [book] = result.books
    assert book.identifier == "X1"
    assert book.title == "Dune"
    assert book.authors == ("Frank Herbert",)
    assert book.cover == DEFAULT_COVER_TEMPLATE.format(volume_id="X1")
    assert book.description is None
    assert fetcher.calls == [build_request_url("dune", "free_text", 0)]


@pytest.mark.asyncio
async def test_repeat_within_ttl_is_served_from_cache(resolver, fetcher):
    fetcher.respond("fantasy", "by_subject", make_collection(make_volume("a")))

    first = await resolver.resolve("fantasy", "by_subject")
    second = await resolver.resolve("fantasy", "by_subject")
    third = await resolver.resolve("  FANTASY ", "by_subject")

    assert len(fetcher.calls) == 1
    assert second.from_cache and third.from_cache
    assert first.books == second.books == third.books


@pytest.mark.asyncio
async def test_expired_entry_is_fetched_exactly_once(resolver, fetcher, clock):
    fetcher.respond("fantasy", "by_subject", make_collection(make_volume("a")))

    await resolver.resolve("fantasy", "by_subject")
    clock.advance(600)
    refreshed = await resolver.resolve("fantasy", "by_subject")
    again = await resolver.resolve("fantasy", "by_subject")

    assert len(fetcher.calls) == 2
    assert not refreshed.from_cache
    assert again.from_cache


@pytest.mark.asyncio
async def test_offsets_are_cached_separately(resolver, fetcher):
    fetcher.respond("dune", "by_title", make_collection(make_volume("a")), offset=0)
    fetcher.respond("dune", "by_title", make_collection(make_volume("b")), offset=20)

    page1 = await resolver.resolve("dune", "by_title", 0)
    page2 = await resolver.resolve("dune", "by_title", 20)

    assert page1.books[0].identifier == "a"
    assert page2.books[0].identifier == "b"
    assert len(fetcher.calls) == 2


@pytest.mark.asyncio
async def test_duplicates_collapse(resolver, fetcher):
    fetcher.respond(
        "dune",
        "free_text",
        make_collection(make_volume("X1", "First"), make_volume("X1", "Second")),
    )

    result = await resolver.resolve("dune", "free_text")
    assert [b.title for b in result.books] == ["First"]


@pytest.mark.asyncio
async def test_missing_and_null_authors(resolver, fetcher):
    fetcher.respond(
        "anon",
        "by_title",
        make_collection(
            make_volume("a", authors=None),
            make_volume("b", authors=[None, "Known"]),
        ),
    )

    result = await resolver.resolve("anon", "by_title")
    assert [b.authors for b in result.books] == [
        (AUTHOR_UNKNOWN,),
        (AUTHOR_UNKNOWN, "Known"),
    ]


@pytest.mark.asyncio
async def test_by_id_defaults_to_detailed(resolver, fetcher):
    fetcher.respond("abc123", "by_id", make_volume("abc123", description="<b>Spice</b>"))

    result = await resolver.resolve("abc123", "by_id")

    assert result.cache_key == "id:abc123"
    assert result.total_items == 1
    assert result.books[0].description == "<b>Spice</b>"


@pytest.mark.asyncio
async def test_by_id_ignores_offset(resolver, fetcher):
    fetcher.respond("abc123", "by_id", make_volume("abc123"))

    await resolver.resolve("abc123", "by_id", 40)
    cached = await resolver.resolve("abc123", "by_id")

    assert cached.from_cache
    assert len(fetcher.calls) == 1


@pytest.mark.asyncio
async def test_list_search_can_request_details(resolver, fetcher):
    fetcher.respond("dune", "by_title", make_collection(make_volume("a", description="d")))

    plain = await resolver.resolve("dune", "by_title")
    detailed = await resolver.resolve("dune", "by_title", detailed=True)

    assert plain.books[0].description is None
    assert detailed.books[0].description == "d"
    assert detailed.cache_key.endswith(":detailed")


@pytest.mark.asyncio
async def test_isbn_search_uses_isbn_identifier(resolver, fetcher):
    fetcher.respond(
        "9780441172719",
        "by_isbn",
        make_collection(make_volume("vol1", isbn13="9780441172719")),
    )

    [book] = (await resolver.resolve("9780441172719", "by_isbn")).books

    assert book.identifier == "9780441172719"
    assert book.cover == DEFAULT_COVER_TEMPLATE.format(volume_id="vol1")


@pytest.mark.asyncio
async def test_isbn_spellings_share_one_cache_entry(resolver, fetcher):
    fetcher.respond(
        "9780441172719",
        "by_isbn",
        make_collection(make_volume("vol1", isbn13="9780441172719")),
    )

    first = await resolver.resolve("978-0441172719", "by_isbn")
    second = await resolver.resolve("978 0 441 17271 9", "by_isbn")

    assert second.from_cache
    assert first.cache_key == second.cache_key == "by_isbn:9780441172719:0"
    assert len(fetcher.calls) == 1


@pytest.mark.asyncio
async def test_by_id_without_volume_info_is_malformed(resolver, fetcher):
    fetcher.respond("abc123", "by_id", {"kind": "books#volume", "id": "abc123"})

    with pytest.raises(MalformedUpstreamResponse):
        await resolver.resolve("abc123", "by_id")
    with pytest.raises(MalformedUpstreamResponse):
        await resolver.resolve("abc123", "by_id")

    assert len(fetcher.calls) == 2
    assert "id:abc123" not in resolver.cache


@pytest.mark.asyncio
async def test_non_json_body_is_malformed(resolver, fetcher):
    fetcher.responses[build_request_url("dune", "by_title")] = b"<html>"

    with pytest.raises(MalformedUpstreamResponse):
        await resolver.resolve("dune", "by_title")


@pytest.mark.asyncio
async def test_empty_result_is_cached(resolver, fetcher):
    fetcher.respond("zzzz", "free_text", make_collection())

    with pytest.raises(NoResultsFound) as first:
        await resolver.resolve("zzzz", "free_text")
    with pytest.raises(NoResultsFound) as second:
        await resolver.resolve("zzzz", "free_text")

    assert first.value.cache_key == second.value.cache_key == "free_text:zzzz:0"
    assert len(fetcher.calls) == 1


@pytest.mark.asyncio
async def test_unknown_volume_id_is_no_results(resolver, fetcher):
    fetcher.respond(
        "missing",
        "by_id",
        UpstreamUnavailable("not found", url="u", status=404),
    )

    with pytest.raises(NoResultsFound):
        await resolver.resolve("missing", "by_id")
    with pytest.raises(NoResultsFound):
        await resolver.resolve("missing", "by_id")

    assert len(fetcher.calls) == 1


@pytest.mark.asyncio
async def test_list_search_404_stays_unavailable(resolver, fetcher):
    fetcher.respond("dune", "by_title", UpstreamUnavailable("gone", url="u", status=404))

    with pytest.raises(UpstreamUnavailable):
        await resolver.resolve("dune", "by_title")


@pytest.mark.asyncio
async def test_upstream_failure_is_not_cached(resolver, fetcher):
    fetcher.respond("dune", "by_title", UpstreamUnavailable("boom", url="u", status=503))

    with pytest.raises(UpstreamUnavailable):
        await resolver.resolve("dune", "by_title")

    fetcher.respond("dune", "by_title", make_collection(make_volume("a")))
    result = await resolver.resolve("dune", "by_title")

    assert not result.from_cache
    assert len(fetcher.calls) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("term", "mode", "offset"),
    [
        ("dune", "by_author", 0),
        ("dune", "by_title", -1),
        ("", "by_title", 0),
        ("   ", "by_id", 0),
    ],
)
async def test_invalid_requests(resolver, fetcher, term, mode, offset):
    with pytest.raises(ValueError):
        await resolver.resolve(term, mode, offset)
    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_concurrent_identical_requests_agree(resolver, fetcher):
    fetcher.respond("dune", "by_title", make_collection(make_volume("a"), make_volume("b")))

    results = await asyncio.gather(
        *(resolver.resolve("dune", "by_title") for _ in range(5))
    )

    assert {r.books for r in results} == {results[0].books}
    assert 1 <= len(fetcher.calls) <= 5
    assert "by_title:dune:0" in resolver.cache


@pytest.mark.asyncio
async def test_invalidate(resolver, fetcher):
    fetcher.respond("dune", "by_title", make_collection(make_volume("a")))
    result = await resolver.resolve("dune", "by_title")

    assert resolver.invalidate(result.cache_key) is True
    assert not (await resolver.resolve("dune", "by_title")).from_cache


# ---------------------------------------------------------------------------
# thumbnails
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_thumbnail_missing(resolver):
    with pytest.raises(ThumbnailNotFound) as exc:
        await resolver.get_thumbnail("nope")

    assert str(exc.value) == "no thumbnail found for book ID: nope"


@pytest.mark.asyncio
async def test_attach_then_get_thumbnail(resolver):
    await resolver.attach_thumbnail("b1", "http://covers.example/b1.jpg")
    assert await resolver.get_thumbnail("b1") == "http://covers.example/b1.jpg"


@pytest.mark.asyncio
async def test_attach_invalidates_pages_showing_the_book(resolver, fetcher):
    fetcher.respond("dune", "by_title", make_collection(make_volume("a"), make_volume("b")))
    fetcher.respond("other", "by_title", make_collection(make_volume("c")))
    await resolver.resolve("dune", "by_title")
    await resolver.resolve("other", "by_title")

    dropped = await resolver.attach_thumbnail("b", "http://covers.example/b.jpg")

    assert dropped == 1
    assert (await resolver.resolve("other", "by_title")).from_cache

    refreshed = await resolver.resolve("dune", "by_title")
    assert not refreshed.from_cache
    assert refreshed.books[1].cover == "http://covers.example/b.jpg"
    assert refreshed.books[0].cover == DEFAULT_COVER_TEMPLATE.format(volume_id="a")


@pytest.mark.asyncio
async def test_attach_rejects_empty_values(resolver):
    with pytest.raises(ValueError):
        await resolver.attach_thumbnail("", "http://x")
    with pytest.raises(ValueError):
        await resolver.attach_thumbnail("b1", "")


@pytest.mark.asyncio
async def test_thumbnail_operations_need_a_store(fetcher):
    resolver = BookResolver(fetcher, ResultCache())

    with pytest.raises(RuntimeError):
        await resolver.get_thumbnail("b1")
    with pytest.raises(RuntimeError):
        await resolver.attach_thumbnail("b1", "http://x")


class _FailingStore:
    def get_thumbnail(self, book_id: str) -> str | None:
        raise ThumbnailNotFound(book_id)

    def get_thumbnails(self, book_ids: list[str]) -> dict[str, str | None]:
        raise OSError("disk I/O error")


@pytest.mark.asyncio
async def test_store_errors_fall_back_to_derived_covers(fetcher):
    fetcher.respond(
        "dune",
        "by_title",
        make_collection(make_volume("a", image=False), make_volume("b")),
    )
    resolver = BookResolver(
        fetcher, ResultCache(), thumbnails=ThumbnailResolver(_FailingStore())
    )

    result = await resolver.resolve("dune", "by_title")

    assert result.books[0].cover is None
    assert result.books[1].cover == DEFAULT_COVER_TEMPLATE.format(volume_id="b")


class _AttachingThumbnails:
    """Attaches a thumbnail while a search is still resolving its covers."""

    def __init__(self) -> None:
        self.resolver: BookResolver | None = None

    async def resolve_many(self, records):
        assert self.resolver is not None
        await self.resolver.attach_thumbnail("a", "http://covers.example/new.jpg")
        return [None] * len(records)


@pytest.mark.asyncio
async def test_attach_during_resolve_keeps_stale_page_out_of_cache(fetcher):
    fetcher.respond("dune", "by_title", make_collection(make_volume("a")))
    thumbnails = _AttachingThumbnails()
    resolver = BookResolver(
        fetcher,
        ResultCache(),
        store=ThumbnailStore(":memory:"),
        thumbnails=thumbnails,  # type: ignore[arg-type]
    )
    thumbnails.resolver = resolver

    async with resolver:
        result = await resolver.resolve("dune", "by_title")

    assert result.books[0].cover is None
    assert not result.from_cache
    assert result.cache_key not in resolver.cache


# ---------------------------------------------------------------------------
# lifecycle and wiring
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_context_manager_opens_and_closes(fetcher):
    store = ThumbnailStore(":memory:")

    async with BookResolver(fetcher, ResultCache(), store=store):
        assert fetcher.initialized
        assert store.get_thumbnail("x") is None

    assert fetcher.closed
    with pytest.raises(RuntimeError):
        store.get_thumbnail("x")


@pytest.mark.asyncio
async def test_from_config_end_to_end(aiohttp_server, tmp_path):
    async def handler(request):
        assert request.query["q"] == "intitle:dune"
        return aiohttp.web.json_response(make_collection(make_volume("a", image=False)))

    app = aiohttp.web.Application()
    app.router.add_get("/volumes", handler)
    server = await aiohttp_server(app)

    cfg = ResolverConfig(
        fetcher_cfg=FetcherConfig(base_url=str(server.make_url("/volumes"))),
        cache_cfg=CacheConfig(ttl=30, max_entries=4),
        store_cfg=StoreConfig(db_path=str(tmp_path / "db" / "thumbs.sqlite")),
    )

    async with BookResolver.from_config(cfg) as resolver:
        await resolver.attach_thumbnail("a", "http://covers.example/a.jpg")
        result = await resolver.resolve("dune", "by_title")

    assert result.books[0].cover == "http://covers.example/a.jpg"
    assert (tmp_path / "db" / "thumbs.sqlite").exists()


def test_from_config_rejects_unknown_cover_placeholders(tmp_path):
    cfg = ResolverConfig(
        cover_template="http://covers.example/{id}.jpg",
        store_cfg=StoreConfig(db_path=str(tmp_path / "thumbs.sqlite")),
    )

    with pytest.raises(ValueError, match="volume_id"):
        BookResolver.from_config(cfg)
