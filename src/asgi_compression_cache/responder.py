from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable

from asgi_compression_cache.adapters import send_response, start_message
from asgi_compression_cache.cache import ResponseCache
from asgi_compression_cache.compression import CompressionWrapper
from asgi_compression_cache.headers import decode_headers
from asgi_compression_cache.models import Request, Response
from asgi_compression_cache.streams import Pipe, PipedBody, SendSink
from asgi_compression_cache.types import ASGIApp, Message, Receive, Scope, Send

# extensions whose messages hand the body to the server by path or file
# descriptor, never passing through ``http.response.body``
FILE_SEND_EXTENSIONS = ("http.response.pathsend", "http.response.zerocopysend")


def without_file_sends(scope: Scope) -> Scope:
    """Returns ``scope`` with the file-sending extensions switched off."""
    extensions = scope.get("extensions")
    if not extensions or not any(name in extensions for name in FILE_SEND_EXTENSIONS):
        return scope
    return {
        **scope,
        "extensions": {
            name: value
            for name, value in extensions.items()
            if name not in FILE_SEND_EXTENSIONS
        },
    }


class PipeResponder(ABC):
    """
    Intercepts an ASGI app's ``send`` and routes the response through the
    pipeline's ``transform``.

    On ``http.response.start`` the status and headers become a Response with
    no body. If ``transform`` returns it unchanged the messages pass straight
    through. If it returns a piped body, that pipe is opened over the real
    ``send`` and every body chunk is written through it. Any other response
    replaces the app's output entirely.
    """

    def __init__(self, app: ASGIApp, request: Request) -> None:
        self.app = app
        self.request = request

        self.send: Send = self.unattached_send
        self.pipe: Pipe | None = None
        self.replaced = False
        self.finished = False

    @abstractmethod
    def transform(self, response: Response) -> Response:
        raise NotImplementedError

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.send = send
        try:
            await self.app(without_file_sends(scope), receive, self.send_with_pipe)
        except BaseException:
            if self.pipe is not None and not self.finished:
                await self.pipe.abort()
            raise

        if self.pipe is not None and not self.finished:
            # the app returned without completing its body
            await self.pipe.abort()

    async def send_with_pipe(self, message: Message) -> None:
        message_type = message["type"]

        if message_type == "http.response.start":
            response = Response(
                status=message["status"],
                headers=decode_headers(message.get("headers", [])),
            )
            processed = self.transform(response)

            if processed is response:
                await self.send(message)
            elif isinstance(processed.body, PipedBody):
                # opened before headers go out so configuration errors surface first
                self.pipe = processed.body.open(SendSink(self.send))
                await self.send({**message, **start_message(processed)})
            else:
                self.replaced = True
                await send_response(processed, self.send)

        elif message_type == "http.response.body":
            if self.replaced:
                return
            if self.pipe is None:
                await self.send(message)
                return

            await self.pipe.write(message.get("body", b""))
            if not message.get("more_body", False):
                self.finished = True
                await self.pipe.close()
                await self.send(
                    {"type": "http.response.body", "body": b"", "more_body": False}
                )

        elif not self.replaced:
            await self.send(message)

    async def unattached_send(self, message: Message) -> None:
        raise RuntimeError("send awaitable not set")


class CompressionResponder(PipeResponder):
    def __init__(self, app: ASGIApp, wrapper: CompressionWrapper, request: Request) -> None:
        super().__init__(app, request)
        self.wrapper = wrapper

    def transform(self, response: Response) -> Response:
        return self.wrapper.process(self.request, response)


class CachingResponder(PipeResponder):
    def __init__(
        self, app: ASGIApp, cache: ResponseCache, request: Request, key: Hashable
    ) -> None:
        super().__init__(app, request)
        self.cache = cache
        self.key = key

    def transform(self, response: Response) -> Response:
        return self.cache.process_response(self.key, response)
