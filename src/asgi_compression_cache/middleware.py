from __future__ import annotations

import os
from collections.abc import Mapping

from asgi_compression_cache.adapters import request_from_scope, send_response
from asgi_compression_cache.cache import CacheablePredicate, CacheKeyFunction, ResponseCache
from asgi_compression_cache.compression import CompressionWrapper
from asgi_compression_cache.compressors import CompressorFactory, default_compressors
from asgi_compression_cache.content_types import PreferenceSpec
from asgi_compression_cache.responder import CachingResponder, CompressionResponder
from asgi_compression_cache.types import ASGIApp, Receive, Scope, Send


class CompressionMiddleware:
    """
    Compresses responses on demand.

    The encoding is negotiated between the request's Accept-Encoding and the
    server preferences registered for the response's content type. Mapping a
    content type to an empty list guarantees it is never compressed.
    Responses that already carry a Content-Encoding are left alone.
    """

    def __init__(
        self,
        app: ASGIApp,
        preferences_by_content_type: Mapping[str, PreferenceSpec] | None = None,
        compressors: Mapping[str, CompressorFactory] | None = None,
        gzip_level: int = 9,
        deflate_level: int = 6,
        brotli_level: int = 4,
    ) -> None:
        self.app = app

        if compressors is None:
            compressors = default_compressors(
                gzip_level=gzip_level,
                deflate_level=deflate_level,
                brotli_level=brotli_level,
            )
        self.wrapper = CompressionWrapper(preferences_by_content_type, compressors)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        responder = CompressionResponder(self.app, self.wrapper, request_from_scope(scope))
        await responder(scope, receive, send)


class ResponseCacheMiddleware:
    """
    Caches responses on disk and replays them without calling the app.

    Intended to sit outside CompressionMiddleware so the compressed bytes
    are what gets stored:

    >>> app = ResponseCacheMiddleware(CompressionMiddleware(app))
    """

    def __init__(
        self,
        app: ASGIApp,
        cache_key: CacheKeyFunction | None = None,
        cacheable: CacheablePredicate | None = None,
        directory: str | os.PathLike | None = None,
    ) -> None:
        self.app = app
        self.cache = ResponseCache(cache_key=cache_key, cacheable=cacheable, directory=directory)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = request_from_scope(scope)
        key, entry = self.cache.lookup(request)
        if entry is not None:
            await send_response(entry.to_response(), send)
            return

        responder = CachingResponder(self.app, self.cache, request, key)
        await responder(scope, receive, send)

    def close(self) -> None:
        self.cache.close()
