from asgi_compression_cache.adapters import HandlerApp
from asgi_compression_cache.cache import CacheEntry, CacheIndex, ResponseCache
from asgi_compression_cache.compression import CompressedBody, CompressionWrapper
from asgi_compression_cache.compressors import BROTLI_AVAILABLE, default_compressors
from asgi_compression_cache.content_types import (
    DEFAULT_PREFERENCES_BY_CONTENT_TYPE,
    resolve_server_preferences,
)
from asgi_compression_cache.exceptions import (
    CompressionCacheError,
    ConfigurationError,
    MissingCompressorError,
)
from asgi_compression_cache.middleware import CompressionMiddleware, ResponseCacheMiddleware
from asgi_compression_cache.models import Request, Response
from asgi_compression_cache.negotiation import negotiate
from asgi_compression_cache.preferences import PreferenceEntry, parse_accept_encoding

__all__ = [
    "BROTLI_AVAILABLE",
    "DEFAULT_PREFERENCES_BY_CONTENT_TYPE",
    "CacheEntry",
    "CacheIndex",
    "CompressedBody",
    "CompressionCacheError",
    "CompressionMiddleware",
    "CompressionWrapper",
    "ConfigurationError",
    "HandlerApp",
    "MissingCompressorError",
    "PreferenceEntry",
    "Request",
    "Response",
    "ResponseCache",
    "ResponseCacheMiddleware",
    "default_compressors",
    "negotiate",
    "parse_accept_encoding",
    "resolve_server_preferences",
]
