from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from asgi_compression_cache.headers import get_header
from asgi_compression_cache.types import HeaderList

# None, bytes, str, (async) iterable of bytes, or a StreamingBody
Body = Any


def _as_header_list(headers: Mapping[str, str] | HeaderList | None) -> HeaderList:
    if headers is None:
        return []
    if isinstance(headers, Mapping):
        return list(headers.items())
    return list(headers)


@dataclass
class Request:
    method: str = "GET"
    path: str = "/"
    query_string: str = ""
    headers: HeaderList = field(default_factory=list)

    def __post_init__(self) -> None:
        self.headers = _as_header_list(self.headers)

    def header(self, name: str) -> str | None:
        return get_header(self.headers, name)


@dataclass
class Response:
    """
    A response as seen by the pipeline.

    The body is never rendered here; the host writes it into its own output
    channel once that channel exists (see ``streams.write_body``).
    """
    status: int = 200
    headers: HeaderList = field(default_factory=list)
    body: Body = None

    def __post_init__(self) -> None:
        self.headers = _as_header_list(self.headers)

    def header(self, name: str) -> str | None:
        return get_header(self.headers, name)


# Handler call conventions
Respond = Callable[[Response], None]
Raise = Callable[[BaseException], None]
Handler = Callable[[Request], Union[Response, Awaitable[Response]]]
AsyncHandler = Callable[[Request], Awaitable[Response]]
CallbackHandler = Callable[[Request, Respond, Raise], None]
