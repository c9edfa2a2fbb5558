import pytest

try:
    import brotli  # type: ignore[import-untyped]
    from asgi_compression_cache.compressors import BrotliCompressor

    BROTLI_AVAILABLE = True
except ImportError:
    BROTLI_AVAILABLE = False

from asgi_compression_cache.compression import CompressionWrapper
from asgi_compression_cache.models import Request
from asgi_compression_cache.responder import CompressionResponder

from test_responder import (
    MockSend,
    app_with_encoding,
    mock_app,
    streaming_app,
)


def brotli_request():
    return Request(headers=[("accept-encoding", "br")])


@pytest.fixture
def wrapper():
    return CompressionWrapper({"text/*": "br, gzip;q=0.9", "*": []})


@pytest.mark.skipif(not BROTLI_AVAILABLE, reason="brotli package not installed")
@pytest.mark.asyncio
async def test_brotli_basic_compression(wrapper):
    send = MockSend()
    responder = CompressionResponder(mock_app, wrapper, brotli_request())

    await responder(scope={}, receive=None, send=send)

    headers = dict(send.messages[0]["headers"])
    assert headers[b"content-encoding"] == b"br"
    assert headers[b"vary"] == b"Content-Encoding"
    assert b"content-length" not in headers

    assert brotli.decompress(send.body) == b"Hello, World!"


@pytest.mark.skipif(not BROTLI_AVAILABLE, reason="brotli package not installed")
@pytest.mark.asyncio
async def test_brotli_streaming_response(wrapper):
    send = MockSend()
    responder = CompressionResponder(streaming_app, wrapper, brotli_request())

    await responder(scope={}, receive=None, send=send)

    headers = dict(send.messages[0]["headers"])
    assert headers[b"content-encoding"] == b"br"
    assert send.messages[-1]["more_body"] is False

    assert brotli.decompress(send.body) == b"Streaming part 2"


@pytest.mark.skipif(not BROTLI_AVAILABLE, reason="brotli package not installed")
@pytest.mark.asyncio
async def test_brotli_respects_existing_content_encoding(wrapper):
    send = MockSend()
    responder = CompressionResponder(app_with_encoding, wrapper, brotli_request())

    await responder(scope={}, receive=None, send=send)

    assert len(send.messages) == 2
    headers = dict(send.messages[0]["headers"])
    assert headers[b"content-encoding"] == b"identity"
    assert b"vary" not in headers


@pytest.mark.skipif(not BROTLI_AVAILABLE, reason="brotli package not installed")
@pytest.mark.asyncio
async def test_wildcard_client_gets_brotli(wrapper):
    send = MockSend()
    responder = CompressionResponder(mock_app, wrapper, Request(headers=[("accept-encoding", "*")]))

    await responder(scope={}, receive=None, send=send)

    assert dict(send.messages[0]["headers"])[b"content-encoding"] == b"br"


@pytest.mark.skipif(not BROTLI_AVAILABLE, reason="brotli package not installed")
def test_brotli_incremental_compression():
    compressor = BrotliCompressor(level=4)

    chunk1 = b"First chunk of data. "
    chunk2 = b"Second chunk of data. "
    chunk3 = b"Third chunk of data."

    compressed1 = compressor.compress(chunk1)
    compressed2 = compressor.compress(chunk2)
    compressed3 = compressor.compress(chunk3)
    flushed = compressor.flush()

    full_compressed = compressed1 + compressed2 + compressed3 + flushed
    decompressed = brotli.decompress(full_compressed)

    assert decompressed == chunk1 + chunk2 + chunk3
