import pytest

from asgi_compression_cache.headers import (
    decode_headers,
    encode_headers,
    get_header,
    merge_vary,
    remove_headers,
)

HEADERS = [("Content-Type", "text/plain"), ("content-length", "5"), ("Content-Length", "5")]


def test_get_header_ignores_case():
    assert get_header(HEADERS, "content-type") == "text/plain"
    assert get_header(HEADERS, "CONTENT-LENGTH") == "5"
    assert get_header(HEADERS, "vary") is None


def test_remove_headers_drops_every_casing():
    assert remove_headers(HEADERS, "Content-Length") == [("Content-Type", "text/plain")]


@pytest.mark.parametrize(
    "vary, expected",
    [
        (None, "Content-Encoding"),
        ("", "Content-Encoding"),
        ("Cookie", "Cookie, Content-Encoding"),
        ("Cookie, content-encoding", "Cookie, content-encoding"),
        ("Accept-Encoding", "Accept-Encoding, Content-Encoding"),
        ("*", "*"),
    ],
)
def test_merge_vary(vary, expected):
    assert merge_vary(vary) == expected


def test_header_encoding_is_lowercase_latin1():
    raw = encode_headers([("Content-Type", "text/plain"), ("X-Name", "caf\xe9")])

    assert raw == [(b"content-type", b"text/plain"), (b"x-name", b"caf\xe9")]
    assert decode_headers(raw) == [("content-type", "text/plain"), ("x-name", "caf\xe9")]
