from __future__ import annotations

import functools
import re
from collections.abc import Iterable
from dataclasses import dataclass

WILDCARD = "*"
IDENTITY = "identity"

# Identity stays acceptable at a very low priority unless explicitly refused
IDENTITY_PRIORITY = 0.001

_CODING_PATTERN = re.compile(
    r"^(gzip|compress|deflate|br|identity|\*)(?:\s*;\s*q=([0-9.]+))?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class PreferenceEntry:
    algorithm: str
    priority: float = 1.0


PreferenceList = tuple[PreferenceEntry, ...]
CompiledPreferences = dict[str, PreferenceEntry]


def parse_part(part: str) -> PreferenceEntry | None:
    """
    Parses a single part of the 'Accept-Encoding' header (e.g., "gzip;q=0.8").
    Returns None for codings outside the supported vocabulary or malformed
    q-values; those are treated as absent rather than as errors.
    """
    match = _CODING_PATTERN.match(part)
    if match is None:
        return None

    algorithm, q_value = match.groups()
    try:
        priority = float(q_value) if q_value is not None else 1.0
    except ValueError:
        return None

    return PreferenceEntry(algorithm.lower(), priority)


@functools.lru_cache(maxsize=1024)
def parse_accept_encoding(accept_header: str | None) -> PreferenceList:
    """
    Parses an Accept-Encoding header value into an ordered preference list.
    Cached to minimize parsing overhead on repetitive headers.

    A missing header means "anything is acceptable" and becomes a single
    wildcard entry. A present but empty header yields no entries, which
    leaves only the implicit identity preference.
    """
    if accept_header is None:
        return (PreferenceEntry(WILDCARD, 1.0),)

    entries = []
    for part in accept_header.split(","):
        part = part.strip()
        if not part:
            continue
        entry = parse_part(part)
        if entry is not None:
            entries.append(entry)
    return tuple(entries)


def compile_preferences(preferences: Iterable[PreferenceEntry]) -> CompiledPreferences:
    """
    Folds a preference list into one entry per algorithm.

    A zero priority removes the algorithm (identity included); otherwise the
    first occurrence of an algorithm wins and later duplicates are ignored.
    """
    compiled: CompiledPreferences = {
        IDENTITY: PreferenceEntry(IDENTITY, IDENTITY_PRIORITY)
    }
    for entry in preferences:
        if entry.priority == 0:
            compiled.pop(entry.algorithm, None)
        elif entry.algorithm not in compiled:
            compiled[entry.algorithm] = entry
    return compiled
