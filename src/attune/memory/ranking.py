"""Keyword relevance ranking for memory retrieval.

The score is a fixed additive heuristic:

- +2 for every query token found as a substring of the content
- +3 for preference entries, +2 for decision entries
- +1 when the entry is younger than the recency window
- +min(access_count * 0.1, 1) for frequently recalled entries
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from attune.memory.base import MemoryEntry, MemoryType

TOKEN_MATCH_WEIGHT = 2.0
TYPE_BONUS = {
    MemoryType.PREFERENCE: 3.0,
    MemoryType.DECISION: 2.0,
}
RECENCY_BONUS = 1.0
ACCESS_WEIGHT = 0.1
ACCESS_BONUS_CAP = 1.0
DEFAULT_RECENT_WINDOW = timedelta(days=7)


def tokenize(query: str) -> list[str]:
    """Lower-case and whitespace-split a query."""
    return query.lower().split()


def score(
    entry: MemoryEntry,
    query_tokens: list[str],
    now: datetime,
    recent_window: timedelta = DEFAULT_RECENT_WINDOW,
) -> float:
    content = entry.content.lower()
    total = 0.0

    for token in query_tokens:
        if token in content:
            total += TOKEN_MATCH_WEIGHT

    total += TYPE_BONUS.get(entry.type, 0.0)

    if now - entry.timestamp < recent_window:
        total += RECENCY_BONUS

    total += min(entry.access_count * ACCESS_WEIGHT, ACCESS_BONUS_CAP)
    return total


def rank(
    entries: Iterable[MemoryEntry],
    query: str,
    now: datetime,
    recent_window: timedelta = DEFAULT_RECENT_WINDOW,
) -> list[tuple[MemoryEntry, float]]:
    """Score entries against a query, highest first.

    Python's sort is stable, so equal scores keep their input order.
    """
    tokens = tokenize(query)
    scored = [(entry, score(entry, tokens, now, recent_window)) for entry in entries]
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored
