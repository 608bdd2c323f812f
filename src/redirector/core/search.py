"""Fuzzy search over the redirect table.

Powers the index page filter and the "did you mean" hints on 404 responses.
A query matches a field when its characters appear in order (subsequence
match, case-insensitive). Keys rank above aliases, aliases above
descriptions. With fallback enabled, near misses are ranked by edit distance.
"""

from dataclasses import dataclass
from typing import Literal

from redirector.core.table import RedirectEntry, RedirectTable

KEY_SCORE = 1
ALIAS_SCORE = 2
DESCRIPTION_SCORE = 3
SIMILAR_KEY_BASE = 10
SIMILAR_ALIAS_BASE = 20

MatchField = Literal["key", "aliases", "description", "similar"]


@dataclass(frozen=True)
class SearchHit:
    """Entry matching a search query.

    ``indices`` are positions of matched characters in the matched field, so
    the index page can highlight them. Similar (edit distance) hits carry no
    indices. For alias hits, ``alias`` names the alias that matched.
    """

    key: str
    entry: RedirectEntry
    score: int
    field: MatchField
    indices: tuple[int, ...] = ()
    alias: str | None = None


def fuzzy_indices(text: str, query: str) -> list[int] | None:
    """Match query as a case-insensitive subsequence of text.

    Returns:
        Positions of the matched characters, None if the query does not match
    """
    text = text.lower()
    query = query.lower()

    indices: list[int] = []
    pos = 0
    for i, char in enumerate(text):
        if pos == len(query):
            break
        if char == query[pos]:
            indices.append(i)
            pos += 1

    return indices if pos == len(query) else None


def levenshtein(a: str, b: str) -> int:
    """Case-insensitive edit distance between two strings."""
    a = a.lower()
    b = b.lower()
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def score_entry(
    key: str,
    entry: RedirectEntry,
    query: str,
    *,
    fallback: bool = False,
) -> SearchHit | None:
    """Score one entry against a query.

    Args:
        key: Primary key of the entry
        entry: Redirect entry
        query: Search text
        fallback: Rank near misses by edit distance when nothing matches

    Returns:
        SearchHit, or None if the entry does not match
    """
    key_match = fuzzy_indices(key, query)
    if key_match is not None:
        return SearchHit(key, entry, KEY_SCORE, "key", tuple(key_match))

    for alias in entry.aliases:
        alias_match = fuzzy_indices(alias, query)
        if alias_match is not None:
            return SearchHit(key, entry, ALIAS_SCORE, "aliases", tuple(alias_match), alias)

    description_match = fuzzy_indices(entry.description, query)
    if description_match is not None:
        return SearchHit(key, entry, DESCRIPTION_SCORE, "description", tuple(description_match))

    if not fallback:
        return None

    threshold = len(query) // 2 + 3

    key_distance = levenshtein(key, query)
    if key_distance <= threshold:
        return SearchHit(key, entry, SIMILAR_KEY_BASE + key_distance, "similar")

    alias_distances = [levenshtein(alias, query) for alias in entry.aliases]
    if alias_distances and min(alias_distances) <= threshold:
        return SearchHit(key, entry, SIMILAR_ALIAS_BASE + min(alias_distances), "similar")

    return None


def search(
    table: RedirectTable,
    query: str,
    *,
    fallback: bool = False,
    limit: int | None = None,
) -> list[SearchHit]:
    """Search all redirects, best matches first.

    Hits are ordered by score, then by key. An empty query matches nothing.
    """
    if not query:
        return []

    hits = [
        hit
        for key, entry in table.items()
        if (hit := score_entry(key, entry, query, fallback=fallback)) is not None
    ]
    hits.sort(key=lambda hit: (hit.score, hit.key))
    if limit is not None:
        hits = hits[:limit]
    return hits


def suggest(table: RedirectTable, key: str, limit: int = 3) -> list[str]:
    """Suggest primary keys for a key that did not resolve."""
    return [hit.key for hit in search(table, key, fallback=True, limit=limit)]
