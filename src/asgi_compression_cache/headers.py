"""
Case-insensitive helpers over (name, value) header lists.
"""
from collections.abc import Iterable

from asgi_compression_cache.types import HeaderList, RawHeaders


def get_header(headers: Iterable[tuple[str, str]], name: str) -> str | None:
    """Returns the first value for ``name`` regardless of casing, or None."""
    name = name.lower()
    for key, value in headers:
        if key.lower() == name:
            return value
    return None


def remove_headers(headers: Iterable[tuple[str, str]], *names: str) -> HeaderList:
    """Returns a copy of ``headers`` without any casing of ``names``."""
    dropped = {name.lower() for name in names}
    return [(key, value) for key, value in headers if key.lower() not in dropped]


def merge_vary(vary: str | None, token: str = "Content-Encoding") -> str:
    if vary is None or not vary.strip():
        return token

    tokens = [part.strip().lower() for part in vary.split(",")]
    if token.lower() in tokens or "*" in tokens:
        return vary
    return f"{vary}, {token}"


def decode_headers(raw_headers: RawHeaders) -> HeaderList:
    # ASGI header bytes are latin-1 by definition
    return [
        (key.decode("latin-1"), value.decode("latin-1"))
        for key, value in raw_headers
    ]


def encode_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    return [
        (key.lower().encode("latin-1"), value.encode("latin-1"))
        for key, value in headers
    ]
