"""
Conversions between ASGI and the request/response model, plus the handler
call conventions.
"""
from __future__ import annotations

import asyncio
import inspect

from asgi_compression_cache.headers import decode_headers, encode_headers
from asgi_compression_cache.models import (
    AsyncHandler,
    CallbackHandler,
    Handler,
    Request,
    Response,
)
from asgi_compression_cache.streams import SendSink, write_body
from asgi_compression_cache.types import Receive, Scope, Send


async def call_handler(handler: Handler, request: Request) -> Response:
    """Invokes a direct handler that may be either sync or async."""
    response = handler(request)
    if inspect.isawaitable(response):
        response = await response
    return response


def from_callback(handler: CallbackHandler) -> AsyncHandler:
    """
    Adapts a continuation-passing handler to the direct convention.
    ``respond``/``raise_`` may be invoked from any thread.
    """
    async def direct_handler(request: Request) -> Response:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Response] = loop.create_future()

        def respond(response: Response) -> None:
            loop.call_soon_threadsafe(_resolve, future, response, None)

        def raise_(exc: BaseException) -> None:
            loop.call_soon_threadsafe(_resolve, future, None, exc)

        handler(request, respond, raise_)
        return await future

    return direct_handler


def _resolve(future: asyncio.Future, response: Response | None, exc: BaseException | None) -> None:
    if future.done():
        return
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(response)


def request_from_scope(scope: Scope) -> Request:
    return Request(
        method=scope.get("method", "GET"),
        path=scope.get("path", "/"),
        query_string=scope.get("query_string", b"").decode("latin-1"),
        headers=decode_headers(scope.get("headers", [])),
    )


def start_message(response: Response) -> dict:
    return {
        "type": "http.response.start",
        "status": response.status,
        "headers": encode_headers(response.headers),
    }


async def send_response(response: Response, send: Send) -> None:
    """Writes a complete response, body included, to an ASGI ``send``."""
    await send(start_message(response))
    await write_body(response.body, SendSink(send))
    await send({"type": "http.response.body", "body": b"", "more_body": False})


class HandlerApp:
    """
    ASGI application serving a handler.

    >>> app = HandlerApp(cache.wrap(compression.wrap(handler)))
    >>> app = HandlerApp.from_callback(cache.wrap_callback(compression.wrap_callback(handler)))
    """

    def __init__(self, handler: Handler) -> None:
        self.handler = handler

    @classmethod
    def from_callback(cls, handler: CallbackHandler) -> HandlerApp:
        return cls(from_callback(handler))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            raise RuntimeError(f"HandlerApp only serves http scopes, got {scope['type']!r}")

        response = await call_handler(self.handler, request_from_scope(scope))
        await send_response(response, send)
