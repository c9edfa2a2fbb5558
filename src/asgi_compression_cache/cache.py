"""
Response caching.

The body of a cached response lives in a temporary file; status and headers
are held in memory. A response is cached while it is written out for the
first time, so the origin never renders it twice and the body is never
buffered in memory.

Limitations: entries are never evicted and nothing bounds the stored size.
Concurrent misses for the same key each run the handler and each write a
file; the first one to finish is kept and the others delete their copy.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from pathlib import Path

from asgi_compression_cache.adapters import call_handler
from asgi_compression_cache.headers import remove_headers
from asgi_compression_cache.models import (
    AsyncHandler,
    CallbackHandler,
    Handler,
    Raise,
    Request,
    Respond,
    Response,
)
from asgi_compression_cache.preferences import compile_preferences, parse_accept_encoding
from asgi_compression_cache.storage import BodyStore, FileBody, SpoolFile
from asgi_compression_cache.streams import PipedBody, Sink, TeeSink

logger = logging.getLogger(__name__)

CacheKeyFunction = Callable[[Request], Hashable]
CacheablePredicate = Callable[[Response], bool]


def default_cache_key(request: Request) -> Hashable:
    # q=0 refusals are not part of the key
    client_accepts = frozenset(
        compile_preferences(parse_accept_encoding(request.header("accept-encoding")))
    )
    return (request.method, request.path, request.query_string, client_accepts)


def default_cacheable(response: Response) -> bool:
    return 200 <= response.status <= 299


@dataclass(frozen=True)
class CacheEntry:
    status: int
    headers: tuple[tuple[str, str], ...]
    path: Path

    @classmethod
    def from_response(cls, response: Response, path: Path) -> CacheEntry:
        # Session cookies belong to the first client only
        headers = remove_headers(response.headers, "set-cookie")
        return cls(status=response.status, headers=tuple(headers), path=path)

    def to_response(self) -> Response:
        return Response(
            status=self.status,
            headers=list(self.headers),
            body=FileBody(self.path),
        )


class CacheIndex:
    """
    Key to entry mapping. Lookups take no lock; ``install`` relies on
    ``dict.setdefault`` being atomic so one entry per key is ever kept.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, CacheEntry] = {}

    def get(self, key: Hashable) -> CacheEntry | None:
        return self._entries.get(key)

    def install(self, key: Hashable, entry: CacheEntry) -> CacheEntry:
        """Stores ``entry`` unless the key is taken; returns the retained entry."""
        return self._entries.setdefault(key, entry)

    def clear(self) -> list[CacheEntry]:
        entries = list(self._entries.values())
        self._entries.clear()
        return entries

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class CachePipe:
    """Tees writes to the destination and a spool file; installs on close."""

    def __init__(
        self,
        cache: ResponseCache,
        key: Hashable,
        response: Response,
        destination: Sink,
        spool: SpoolFile,
    ) -> None:
        self.cache = cache
        self.key = key
        self.response = response
        self.spool = spool
        self.tee = TeeSink(destination, spool)

    async def write(self, data: bytes) -> None:
        await self.tee.write(data)

    async def close(self) -> None:
        try:
            self.spool.close()
        except BaseException:
            self.spool.discard()
            raise
        self.cache.install(self.key, self.response, self.spool.path)

    async def abort(self) -> None:
        logger.debug("Discarding partial cache file for %r", self.key)
        self.spool.discard()


class CachingBody(PipedBody):
    """
    Lazy body that records what it writes. The spool file is only created
    once the destination is known.
    """

    def __init__(self, cache: ResponseCache, key: Hashable, response: Response) -> None:
        super().__init__(response.body)
        self.cache = cache
        self.key = key
        self.response = response

    def open(self, destination: Sink) -> CachePipe:
        return CachePipe(
            self.cache, self.key, self.response, destination, self.cache.store.create()
        )


class ResponseCache:
    """
    Caches rendered responses on disk, keyed by request.

    :param cache_key: request -> hashable key. Defaults to method, path,
        query string and the set of encodings the client accepts.
    :param cacheable: response -> bool. Defaults to any 2xx status.
    :param directory: where bodies are stored. Defaults to a private
        temporary directory.
    """

    def __init__(
        self,
        cache_key: CacheKeyFunction | None = None,
        cacheable: CacheablePredicate | None = None,
        directory: str | os.PathLike | None = None,
    ) -> None:
        self.cache_key = cache_key or default_cache_key
        self.cacheable = cacheable or default_cacheable
        self.store = BodyStore(directory)
        self.index = CacheIndex()

    def lookup(self, request: Request) -> tuple[Hashable, CacheEntry | None]:
        key = self.cache_key(request)
        entry = self.index.get(key)
        if entry is not None:
            logger.debug("Cache hit for %s %s", request.method, request.path)
        return key, entry

    def process_response(self, key: Hashable, response: Response) -> Response:
        if not self.cacheable(response):
            return response
        return Response(
            status=response.status,
            headers=response.headers,
            body=CachingBody(self, key, response),
        )

    def install(self, key: Hashable, response: Response, path: Path) -> CacheEntry:
        entry = CacheEntry.from_response(response, path)
        retained = self.index.install(key, entry)
        if retained is entry:
            logger.debug("Cached response for %r in %s", key, path)
        else:
            logger.debug("Response for %r was cached concurrently; dropping %s", key, path)
            self.store.delete(path)
        return retained

    async def process(self, request: Request, handler: Handler) -> Response:
        key, entry = self.lookup(request)
        if entry is not None:
            return entry.to_response()
        response = await call_handler(handler, request)
        return self.process_response(key, response)

    def wrap(self, handler: Handler) -> AsyncHandler:
        async def caching_handler(request: Request) -> Response:
            return await self.process(request, handler)

        return caching_handler

    def wrap_callback(self, handler: CallbackHandler) -> CallbackHandler:
        def caching_handler(request: Request, respond: Respond, raise_: Raise) -> None:
            try:
                key, entry = self.lookup(request)
            except Exception as exc:
                raise_(exc)
                return
            if entry is not None:
                respond(entry.to_response())
                return

            def on_response(response: Response) -> None:
                try:
                    processed = self.process_response(key, response)
                except Exception as exc:
                    raise_(exc)
                    return
                respond(processed)

            handler(request, on_response, raise_)

        return caching_handler

    def close(self) -> None:
        """Drops every entry and deletes the stored bodies."""
        for entry in self.index.clear():
            self.store.delete(entry.path)
        self.store.close()
