from __future__ import annotations

import asyncio

import aiohttp.web
import pytest_asyncio

from ..factories import make_collection, make_volume


@pytest_asyncio.fixture
async def volumes_server(aiohttp_server):
    """A stand-in for the upstream volumes endpoint.

    ``/volumes?q=...`` returns a two-item collection, ``/volumes/{id}`` a
    single volume. The ``q`` values ``fail``, ``slow`` and ``garbage``
    trigger a 503, a delayed response and a non-JSON body.
    """
    seen: list[dict[str, str]] = []

    async def handler_search(request):
        seen.append(dict(request.query))
        # Match on the term after any mode qualifier (``intitle:``, ``subject:``).
        q = request.query.get("q", "").split(":", 1)[-1]
        if q.startswith("fail"):
            return aiohttp.web.Response(text="backend error", status=503)
        if q.startswith("slow"):
            await asyncio.sleep(2)
        if q.startswith("garbage"):
            return aiohttp.web.Response(text="<html>oops</html>")
        return aiohttp.web.json_response(
            make_collection(make_volume("a", "First"), make_volume("b", "Second"))
        )

    async def handler_volume(request):
        volume_id = request.match_info["volume_id"]
        if volume_id == "missing":
            return aiohttp.web.json_response(
                {"error": {"code": 404, "message": "The volume ID could not be found."}},
                status=404,
            )
        return aiohttp.web.json_response(make_volume(volume_id))

    app = aiohttp.web.Application()
    app.router.add_get("/volumes", handler_search)
    app.router.add_get("/volumes/{volume_id}", handler_volume)

    server = await aiohttp_server(app)
    server.seen_queries = seen
    return server
