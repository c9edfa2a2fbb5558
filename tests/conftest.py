import gzip
from collections import Counter

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, Response, StreamingResponse
from starlette.routing import Route

from asgi_compression_cache import CompressionMiddleware, ResponseCacheMiddleware


@pytest.fixture
def calls():
    """Counts origin handler invocations per path."""
    return Counter()


@pytest.fixture
def starlette_app(calls):
    async def text_response(request: Request):
        calls[request.url.path] += 1
        return PlainTextResponse("A" * 1000)

    async def html_response(request: Request):
        calls[request.url.path] += 1
        return HTMLResponse("<p>hello</p>" * 100)

    async def streaming_response(request: Request):
        """Streaming response generator."""
        calls[request.url.path] += 1

        async def generator():
            yield b"chunk1" * 100
            yield b"chunk2" * 100
            yield b"chunk3" * 100

        return StreamingResponse(generator(), media_type="text/plain")

    async def image_response(request: Request):
        calls[request.url.path] += 1
        return Response(b"\x89PNG" + b"\x00" * 1000, media_type="image/png")

    async def error_response(request: Request):
        """400 Bad Request response (for status code preservation test)."""
        calls[request.url.path] += 1
        return PlainTextResponse("Error occurred", status_code=400)

    async def encoded_response(request: Request):
        calls[request.url.path] += 1
        return Response(
            gzip.compress(b"x" * 100),
            media_type="text/plain",
            headers={"Content-Encoding": "gzip"},
        )

    async def cookie_response(request: Request):
        calls[request.url.path] += 1
        response = PlainTextResponse("with cookie " * 50)
        response.set_cookie("session", "abc")
        return response

    async def search_response(request: Request):
        calls[request.url.path] += 1
        return PlainTextResponse(f"results for {request.query_params['q']}")

    routes = [
        Route("/text", text_response),
        Route("/html", html_response),
        Route("/stream", streaming_response),
        Route("/image", image_response),
        Route("/error", error_response),
        Route("/encoded", encoded_response),
        Route("/cookie", cookie_response),
        Route("/search", search_response),
    ]
    return Starlette(routes=routes)


@pytest.fixture
def app(starlette_app, tmp_path):
    return ResponseCacheMiddleware(CompressionMiddleware(starlette_app), directory=tmp_path)


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver"
    ) as c:
        yield c
