class CompressionCacheError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(CompressionCacheError, ValueError):
    """Raised when a preference map or compressor registry is unusable."""


class MissingCompressorError(CompressionCacheError, LookupError):
    """
    An encoding was negotiated but no compressor factory is registered for it.

    Raised when the compressing stage is opened, i.e. once the output channel
    is known. Falling back to identity at that point would contradict the
    Content-Encoding header already promised to the client.
    """

    def __init__(self, algorithm: str) -> None:
        super().__init__(
            f"No compressor registered for negotiated encoding {algorithm!r}. "
            "Register a factory for it or remove it from the server preferences."
        )
        self.algorithm = algorithm
