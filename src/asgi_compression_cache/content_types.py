from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Union

from asgi_compression_cache.compressors import BROTLI_AVAILABLE
from asgi_compression_cache.exceptions import ConfigurationError
from asgi_compression_cache.preferences import (
    WILDCARD,
    PreferenceEntry,
    PreferenceList,
    parse_accept_encoding,
)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

PreferenceSpec = Union[str, Iterable[Union[PreferenceEntry, tuple[str, float]]]]


def _available(*entries: PreferenceEntry) -> PreferenceList:
    return tuple(
        entry for entry in entries
        if entry.algorithm != "br" or BROTLI_AVAILABLE
    )


PREFER_BROTLI = _available(
    PreferenceEntry("br", 1.0),
    PreferenceEntry("gzip", 0.9),
    PreferenceEntry("deflate", 0.8),
)

PREFER_GZIP = _available(
    PreferenceEntry("gzip", 1.0),
    PreferenceEntry("br", 0.9),
    PreferenceEntry("deflate", 0.8),
)

DEFAULT_PREFERENCES_BY_CONTENT_TYPE: dict[str, PreferenceList] = {
    "text/html": PREFER_BROTLI,
    "text/css": PREFER_BROTLI,
    "text/javascript": PREFER_BROTLI,
    "application/javascript": PREFER_BROTLI,
    "text/*": PREFER_GZIP,
    "image/svg+xml": PREFER_GZIP,
    "application/json": PREFER_GZIP,
    "application/xml": PREFER_GZIP,
    "application/ld+json": PREFER_GZIP,
    "application/manifest+json": PREFER_GZIP,
    # anything else (images, archives, octet streams) is left alone
    WILDCARD: (),
}


def to_preference_list(spec: PreferenceSpec) -> PreferenceList:
    """
    Accepts an Accept-Encoding style string ("br, gzip;q=0.9"), a sequence of
    PreferenceEntry, or a sequence of (algorithm, priority) pairs.
    """
    if isinstance(spec, str):
        if not spec.strip():
            return ()
        return parse_accept_encoding(spec)

    entries = []
    for item in spec:
        if isinstance(item, PreferenceEntry):
            entries.append(item)
        else:
            algorithm, priority = item
            entries.append(PreferenceEntry(algorithm.lower(), float(priority)))
    return tuple(entries)


def normalize_preferences(
    preferences_by_content_type: Mapping[str, PreferenceSpec],
) -> dict[str, PreferenceList]:
    if WILDCARD not in preferences_by_content_type:
        raise ConfigurationError(
            "Content-type preferences must include a '*' fallback entry "
            "(map it to an empty list to never compress unknown types)."
        )
    return {
        pattern.lower(): to_preference_list(spec)
        for pattern, spec in preferences_by_content_type.items()
    }


def resolve_server_preferences(
    preferences_by_content_type: Mapping[str, PreferenceList],
    content_type: str | None,
) -> PreferenceList:
    """
    Returns the server preference list for a response media type: exact
    match first, then "type/*", then "*".
    """
    media_type = (content_type or DEFAULT_CONTENT_TYPE).split(";", 1)[0].strip().lower()
    major_type = media_type.split("/", 1)[0]

    for pattern in (media_type, f"{major_type}/*", WILDCARD):
        if pattern in preferences_by_content_type:
            return tuple(preferences_by_content_type[pattern])

    raise ConfigurationError(
        f"No preferences for content type {media_type!r} and no '*' fallback"
    )
