"""Redirect table with alias indirection.

Holds the configured redirects keyed by primary name together with a derived
alias index. Built once at startup and read-only afterwards, so it can be
shared by concurrent request handlers without locking.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Other"


@dataclass(frozen=True)
class RedirectEntry:
    """Configured redirect target."""

    target_url: str
    description: str
    category: str | None = None
    aliases: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class KeyMatch:
    """Result of a successful key lookup."""

    key: str
    entry: RedirectEntry
    via_alias: bool


def find_alias_conflicts(entries: Mapping[str, RedirectEntry]) -> list[str]:
    """Report aliases that shadow a primary key or are declared twice.

    Args:
        entries: Primary key to entry mapping, in declaration order

    Returns:
        One message per conflicting alias, empty if the aliases are unambiguous
    """
    conflicts: list[str] = []
    owners: dict[str, str] = {}
    for key, entry in entries.items():
        for alias in entry.aliases:
            if alias in entries:
                conflicts.append(f"alias '{alias}' of '{key}' collides with redirect '{alias}'")
            elif alias in owners and owners[alias] != key:
                conflicts.append(
                    f"alias '{alias}' of '{key}' is already an alias of '{owners[alias]}'",
                )
            else:
                owners.setdefault(alias, key)
    return conflicts


class RedirectTable:
    """Primary redirects plus a derived alias index.

    Direct keys always win over aliases. When aliases collide, the first
    declaration is kept and the rest are skipped with a warning, so the
    result never depends on hash ordering.
    """

    __slots__ = ("_alias_index", "_entries")

    def __init__(self, entries: Mapping[str, RedirectEntry]) -> None:
        """Initialize table.

        Args:
            entries: Primary key to entry mapping, in declaration order
        """
        self._entries: Mapping[str, RedirectEntry] = MappingProxyType(dict(entries))
        self._alias_index: Mapping[str, str] = MappingProxyType(self._build_alias_index())

    def _build_alias_index(self) -> dict[str, str]:
        index: dict[str, str] = {}
        for key, entry in self._entries.items():
            for alias in entry.aliases:
                if alias in self._entries:
                    logger.warning(f"Ignoring alias '{alias}' of '{key}': it is a redirect key")
                    continue
                if alias in index:
                    if index[alias] != key:
                        logger.warning(
                            f"Ignoring alias '{alias}' of '{key}': already an alias of '{index[alias]}'",
                        )
                    continue
                index[alias] = key
        return index

    @property
    def primary(self) -> Mapping[str, RedirectEntry]:
        """Read-only primary key to entry mapping."""
        return self._entries

    @property
    def alias_index(self) -> Mapping[str, str]:
        """Read-only alias to primary key mapping."""
        return self._alias_index

    def lookup(self, key: str) -> KeyMatch | None:
        """Look up a key directly, then through the alias index.

        Args:
            key: Subdomain label or first path segment

        Returns:
            KeyMatch naming the primary key, None if nothing matches
        """
        entry = self._entries.get(key)
        if entry is not None:
            return KeyMatch(key=key, entry=entry, via_alias=False)

        primary_key = self._alias_index.get(key)
        if primary_key is None:
            return None
        entry = self._entries.get(primary_key)
        if entry is None:
            return None
        return KeyMatch(key=primary_key, entry=entry, via_alias=True)

    def resolve_key(self, key: str) -> RedirectEntry | None:
        """Resolve a key to its entry, following at most one alias hop."""
        match = self.lookup(key)
        return match.entry if match is not None else None

    def items(self) -> Iterator[tuple[str, RedirectEntry]]:
        """Iterate (key, entry) pairs in declaration order."""
        return iter(self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
