from __future__ import annotations

from collections.abc import Iterable, Sequence

from asgi_compression_cache.preferences import (
    WILDCARD,
    CompiledPreferences,
    PreferenceEntry,
    compile_preferences,
)


def top_algorithms(compiled: CompiledPreferences) -> list[str]:
    """Returns every algorithm sharing the highest priority, in map order."""
    best_priority = None
    winners: list[str] = []
    for entry in compiled.values():
        if best_priority is None or entry.priority > best_priority:
            best_priority = entry.priority
            winners = [entry.algorithm]
        elif entry.priority == best_priority:
            winners.append(entry.algorithm)
    return winners


def _highest_priority(entries: Iterable[PreferenceEntry]) -> str | None:
    # Strict comparison: on equal priority the earlier entry is kept
    winner: PreferenceEntry | None = None
    for entry in entries:
        if winner is None or entry.priority > winner.priority:
            winner = entry
    return winner.algorithm if winner is not None else None


def negotiate(
    server_preferences: Sequence[PreferenceEntry],
    client_preferences: Sequence[PreferenceEntry],
) -> str | None:
    """
    Picks the content-encoding to use, or None when nothing is acceptable
    to both sides.

    A client that names a single best algorithm gets it. A client whose best
    choice is the wildcard, or a tie between several algorithms, leaves the
    decision to the server's own priorities.
    """
    compiled_server = compile_preferences(server_preferences)
    compiled_client = compile_preferences(client_preferences)

    for algorithm in set(compiled_client) - set(compiled_server) - {WILDCARD}:
        del compiled_client[algorithm]

    algorithms = top_algorithms(compiled_client)
    if not algorithms:
        return None

    if WILDCARD in algorithms:
        # "*" does not cover codings the client refused explicitly with q=0
        refused = {
            entry.algorithm for entry in client_preferences if entry.priority == 0
        } - set(compiled_client)
        return _highest_priority(
            entry for entry in compiled_server.values()
            if entry.algorithm not in refused
        )

    if len(algorithms) > 1:
        return _highest_priority(
            entry for entry in compiled_server.values()
            if entry.algorithm in algorithms
        )

    return algorithms[0]
