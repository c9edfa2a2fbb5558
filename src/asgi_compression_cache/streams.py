"""
Byte sinks and lazily written bodies.

A sink is the destination of a body: the host's output channel, a
compressing stage, a tee, or a file. A pipe is a sink that sits in front of
another sink and must be finalised with ``close`` (or discarded with
``abort``) once the body has been written through it. Neither ever closes
the sink it writes into; that channel belongs to whoever created it.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, Iterable
from typing import Protocol, runtime_checkable

from asgi_compression_cache.types import Send


@runtime_checkable
class Sink(Protocol):
    async def write(self, data: bytes) -> None: ...


@runtime_checkable
class Pipe(Sink, Protocol):
    async def close(self) -> None: ...

    async def abort(self) -> None: ...


@runtime_checkable
class StreamingBody(Protocol):
    """
    A body that knows how to write itself into a destination.
    Constructed eagerly, executed only when the destination is available.
    """
    async def write_to(self, destination: Sink) -> None: ...


class SendSink:
    """Sink over an ASGI ``send`` callable; emits ``more_body`` chunks only."""

    def __init__(self, send: Send) -> None:
        self.send = send

    async def write(self, data: bytes) -> None:
        if not data:
            return
        await self.send(
            {"type": "http.response.body", "body": data, "more_body": True}
        )


class PassthroughPipe:
    """The identity stage: forwards bytes unchanged."""

    def __init__(self, destination: Sink) -> None:
        self.destination = destination

    async def write(self, data: bytes) -> None:
        await self.destination.write(data)

    async def close(self) -> None:
        pass

    async def abort(self) -> None:
        pass


class TeeSink:
    """Duplicates every write to two destinations, primary first."""

    def __init__(self, primary: Sink, secondary: Sink) -> None:
        self.primary = primary
        self.secondary = secondary

    async def write(self, data: bytes) -> None:
        await self.primary.write(data)
        await self.secondary.write(data)


def _as_bytes(chunk: bytes | str) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


async def write_body(body: object, destination: Sink) -> None:
    """Writes any supported body representation into ``destination``."""
    if body is None:
        return

    if isinstance(body, (bytes, bytearray, memoryview, str)):
        data = _as_bytes(body)
        if data:
            await destination.write(data)
    elif isinstance(body, StreamingBody):
        await body.write_to(destination)
    elif isinstance(body, AsyncIterable):
        async for chunk in body:
            await destination.write(_as_bytes(chunk))
    elif isinstance(body, Iterable):
        for chunk in body:
            await destination.write(_as_bytes(chunk))
    else:
        raise TypeError(f"Unsupported response body type: {type(body).__name__}")


class PipedBody(ABC):
    """
    Helper base class for bodies that transform another body on its way out.

    Subclasses only build the pipe; ``write_to`` drives the original body
    through it, finalising on success and aborting on any failure,
    cancellation included.
    """

    def __init__(self, original: object) -> None:
        self.original = original

    @abstractmethod
    def open(self, destination: Sink) -> Pipe:
        """Builds the transforming stage in front of ``destination``."""
        raise NotImplementedError

    async def write_to(self, destination: Sink) -> None:
        pipe = self.open(destination)
        try:
            await write_body(self.original, pipe)
        except BaseException:
            await pipe.abort()
            raise
        await pipe.close()
