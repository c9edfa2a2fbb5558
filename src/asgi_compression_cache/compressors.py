import zlib
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Protocol

from asgi_compression_cache.streams import PassthroughPipe, Pipe, Sink

try:
    import brotli
except ImportError:
    brotli = None

BROTLI_AVAILABLE = brotli is not None

# Builds a compressing pipe in front of the given sink
CompressorFactory = Callable[[Sink], Pipe]


class Compressor(Protocol):
    def compress(self, data: bytes) -> bytes: ...

    def flush(self) -> bytes: ...


class BaseCompressor(ABC):
    @abstractmethod
    def compress(self, data: bytes) -> bytes: ...

    @abstractmethod
    def flush(self) -> bytes: ...


class GzipCompressor(BaseCompressor):
    def __init__(self, level: int = 9) -> None:
        self._compressobj = zlib.compressobj(level=level, wbits=15 + 16)

    def compress(self, data: bytes) -> bytes:
        return self._compressobj.compress(data)

    def flush(self) -> bytes:
        return self._compressobj.flush()


class DeflateCompressor(BaseCompressor):
    # HTTP "deflate" is the zlib format (RFC 1950), not raw deflate
    def __init__(self, level: int = 6) -> None:
        self._compressobj = zlib.compressobj(level=level)

    def compress(self, data: bytes) -> bytes:
        return self._compressobj.compress(data)

    def flush(self) -> bytes:
        return self._compressobj.flush()


class BrotliCompressor(BaseCompressor):
    def __init__(self, level: int = 4) -> None:
        if brotli is None:
            raise ImportError(
                "brotli extra is required. Install with: pip install 'asgi-compression-cache[brotli]'"
            )
        self._compressor = brotli.Compressor(quality=level)

    def compress(self, data: bytes) -> bytes:
        return self._compressor.process(data)

    def flush(self) -> bytes:
        return self._compressor.finish()


class CompressingSink:
    """
    Pipe that runs every write through a compressor before handing it on.

    ``close`` flushes the compressor trailer into the destination but leaves
    the destination itself open.
    """

    def __init__(self, destination: Sink, compressor: Compressor) -> None:
        self.destination = destination
        self.compressor = compressor

    async def write(self, data: bytes) -> None:
        compressed = self.compressor.compress(data)
        if compressed:
            await self.destination.write(compressed)

    async def close(self) -> None:
        tail = self.compressor.flush()
        if tail:
            await self.destination.write(tail)

    async def abort(self) -> None:
        pass


def default_compressors(
    gzip_level: int = 9,
    deflate_level: int = 6,
    brotli_level: int = 4,
) -> dict[str, CompressorFactory]:
    """
    Registers the supported compression methods and their factories.
    "br" is only present when the optional brotli package is installed.
    """
    compressor_factories: dict[str, CompressorFactory] = {}

    if BROTLI_AVAILABLE:
        compressor_factories["br"] = lambda sink: CompressingSink(
            sink, BrotliCompressor(level=brotli_level)
        )

    compressor_factories["gzip"] = lambda sink: CompressingSink(
        sink, GzipCompressor(level=gzip_level)
    )
    compressor_factories["deflate"] = lambda sink: CompressingSink(
        sink, DeflateCompressor(level=deflate_level)
    )
    compressor_factories["identity"] = PassthroughPipe

    return compressor_factories
