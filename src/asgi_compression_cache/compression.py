from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace

from asgi_compression_cache.adapters import call_handler
from asgi_compression_cache.compressors import CompressorFactory, default_compressors
from asgi_compression_cache.content_types import (
    DEFAULT_PREFERENCES_BY_CONTENT_TYPE,
    PreferenceSpec,
    normalize_preferences,
    resolve_server_preferences,
)
from asgi_compression_cache.exceptions import MissingCompressorError
from asgi_compression_cache.headers import merge_vary, remove_headers
from asgi_compression_cache.models import (
    AsyncHandler,
    CallbackHandler,
    Handler,
    Raise,
    Request,
    Respond,
    Response,
)
from asgi_compression_cache.negotiation import negotiate
from asgi_compression_cache.preferences import IDENTITY, parse_accept_encoding
from asgi_compression_cache.streams import Pipe, PipedBody, Sink

logger = logging.getLogger(__name__)

NOT_ACCEPTABLE_MESSAGE = (
    "Server cannot satisfy the accept-encoding header presented in the request."
)


class CompressedBody(PipedBody):
    """
    Lazy body that compresses ``original`` into whatever destination it is
    eventually written to. The compressor is only constructed in ``open``.
    """

    def __init__(
        self,
        original: object,
        algorithm: str,
        compressors: Mapping[str, CompressorFactory],
    ) -> None:
        super().__init__(original)
        self.algorithm = algorithm
        self.compressors = compressors

    def open(self, destination: Sink) -> Pipe:
        factory = self.compressors.get(self.algorithm)
        if factory is None:
            raise MissingCompressorError(self.algorithm)
        return factory(destination)


class CompressionWrapper:
    """
    Negotiates a content-encoding per response and rewraps the body so it
    is compressed while the host writes it out.

    :param preferences_by_content_type: media type pattern ("type/subtype",
        "type/*" or "*") to server preference list. Must contain "*".
    :param compressors: algorithm name to compressor factory. Defaults to
        ``default_compressors()``.
    """

    def __init__(
        self,
        preferences_by_content_type: Mapping[str, PreferenceSpec] | None = None,
        compressors: Mapping[str, CompressorFactory] | None = None,
    ) -> None:
        self.preferences_by_content_type = normalize_preferences(
            preferences_by_content_type
            if preferences_by_content_type is not None
            else DEFAULT_PREFERENCES_BY_CONTENT_TYPE
        )
        self.compressors = dict(
            compressors if compressors is not None else default_compressors()
        )

    def select_encoding(self, request: Request, response: Response) -> str | None:
        client_preferences = parse_accept_encoding(request.header("accept-encoding"))
        server_preferences = resolve_server_preferences(
            self.preferences_by_content_type, response.header("content-type")
        )
        return negotiate(server_preferences, client_preferences)

    def process(self, request: Request, response: Response) -> Response:
        # Already encoded further down the stack: never compress twice
        if response.header("content-encoding") is not None:
            return response

        algorithm = self.select_encoding(request, response)

        if algorithm is None:
            logger.debug(
                "No acceptable encoding for %s %s (accept-encoding=%r)",
                request.method,
                request.path,
                request.header("accept-encoding"),
            )
            return Response(
                status=406,
                headers=[("Content-Type", "text/plain; charset=utf-8")],
                body=NOT_ACCEPTABLE_MESSAGE,
            )

        if algorithm == IDENTITY:
            return response

        vary = response.header("vary")
        headers = remove_headers(
            response.headers, "content-length", "content-encoding", "vary"
        )
        headers.append(("Content-Encoding", algorithm))
        headers.append(("Vary", merge_vary(vary)))

        return replace(
            response,
            headers=headers,
            body=CompressedBody(response.body, algorithm, self.compressors),
        )

    def wrap(self, handler: Handler) -> AsyncHandler:
        async def compression_handler(request: Request) -> Response:
            response = await call_handler(handler, request)
            return self.process(request, response)

        return compression_handler

    def wrap_callback(self, handler: CallbackHandler) -> CallbackHandler:
        def compression_handler(request: Request, respond: Respond, raise_: Raise) -> None:
            def on_response(response: Response) -> None:
                try:
                    processed = self.process(request, response)
                except Exception as exc:
                    raise_(exc)
                    return
                respond(processed)

            handler(request, on_response, raise_)

        return compression_handler
