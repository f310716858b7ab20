from __future__ import annotations

import aiohttp.web
import pytest_asyncio


@pytest_asyncio.fixture
async def test_server(aiohttp_server):
    async def handler_ok(request):
        return aiohttp.web.Response(text="hello", status=200)

    async def handler_json(request):
        return aiohttp.web.json_response({"kind": "books#volumes", "totalItems": 0})

    async def handler_status(request):
        return aiohttp.web.Response(text="nope", status=int(request.match_info["code"]))

    async def handler_echo_headers(request):
        return aiohttp.web.json_response({"headers": dict(request.headers)})

    async def handler_echo_query(request):
        return aiohttp.web.json_response({"query": dict(request.query)})

    app = aiohttp.web.Application()
    app.router.add_get("/ok", handler_ok)
    app.router.add_get("/json", handler_json)
    app.router.add_get("/status/{code}", handler_status)
    app.router.add_get("/echo-headers", handler_echo_headers)
    app.router.add_get("/echo-query", handler_echo_query)

    server = await aiohttp_server(app)
    return server
