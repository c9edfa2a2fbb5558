from collections.abc import Awaitable, Callable, Iterable
from typing import Any

# ASGI types
Scope = dict[str, Any]
Message = dict[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

# Header pairs as carried by the request/response model
HeaderList = list[tuple[str, str]]
RawHeaders = Iterable[tuple[bytes, bytes]]
