import pytest
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import JSONResponse, StreamingResponse
from starlette.routing import Route

from asgi_compression_cache import BROTLI_AVAILABLE, CompressionMiddleware

pytestmark = pytest.mark.skipif(not BROTLI_AVAILABLE, reason="brotli package not installed")


async def hello_handler(request):
    return JSONResponse({"message": "Hello, World! " * 100})


async def page_handler(request):
    async def gen():
        for i in range(5):
            yield f"<li>chunk-{i}</li>".encode()

    return StreamingResponse(gen(), media_type="text/html")


def make_app(**options):
    return Starlette(
        routes=[
            Route("/hello", hello_handler, methods=["GET"]),
            Route("/page", page_handler, methods=["GET"]),
        ],
        middleware=[Middleware(CompressionMiddleware, brotli_level=4, **options)],
    )


@pytest.mark.asyncio
async def test_middleware_brotli_integration():
    async with AsyncClient(
        transport=ASGITransport(app=make_app()), base_url="http://test"
    ) as client:
        resp = await client.get("/hello", headers={"Accept-Encoding": "br"})
        assert resp.headers["content-encoding"] == "br"

        data = resp.json()
        assert data["message"] == "Hello, World! " * 100


@pytest.mark.asyncio
async def test_middleware_brotli_streaming():
    async with AsyncClient(
        transport=ASGITransport(app=make_app()), base_url="http://test"
    ) as client:
        resp = await client.get("/page", headers={"Accept-Encoding": "br"})
        assert resp.headers["content-encoding"] == "br"

        text = resp.text
        assert "chunk-0" in text
        assert "chunk-4" in text


@pytest.mark.asyncio
async def test_middleware_server_preference_by_content_type():
    async with AsyncClient(
        transport=ASGITransport(app=make_app()), base_url="http://test"
    ) as client:
        # JSON prefers gzip, HTML prefers brotli when the client has no favourite
        resp = await client.get("/hello", headers={"Accept-Encoding": "br, gzip"})
        assert resp.headers["content-encoding"] == "gzip"

        resp2 = await client.get("/page", headers={"Accept-Encoding": "gzip, br"})
        assert resp2.headers["content-encoding"] == "br"


@pytest.mark.asyncio
async def test_middleware_client_choice_wins():
    async with AsyncClient(
        transport=ASGITransport(app=make_app()), base_url="http://test"
    ) as client:
        resp = await client.get("/page", headers={"Accept-Encoding": "br;q=0.5, gzip"})
        assert resp.headers["content-encoding"] == "gzip"


@pytest.mark.asyncio
async def test_middleware_custom_preferences():
    app = make_app(preferences_by_content_type={"application/json": "br", "*": []})

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        resp = await client.get("/hello", headers={"Accept-Encoding": "gzip, br"})
        assert resp.headers["content-encoding"] == "br"

        resp2 = await client.get("/page", headers={"Accept-Encoding": "gzip, br"})
        assert "content-encoding" not in resp2.headers
