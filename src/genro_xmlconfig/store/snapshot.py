# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Snapshot and entry classes.

A Snapshot is the complete in-memory state of one configuration file: an
ordered, case-insensitive mapping of key path to ConfigEntry, plus the name
of the document's root element.

Snapshots are not thread-safe on their own; ConfigStore guards access.
"""

from __future__ import annotations

from typing import Iterator

from ..exceptions import InvalidConfigurationError
from ..path import normalize, split

DEFAULT_ROOT_NAME = 'configuration'


def validate_root_name(name: str | None) -> str:
    """Return name unchanged, or raise if it is None, empty or whitespace."""
    if name is None or not name.strip():
        raise InvalidConfigurationError("Root name cannot be null or empty.")
    return name


class ConfigEntry:
    """One configuration value.

    Attributes:
        key: The key path, with the casing of its first insertion.
        value: The string value, or None.
        raw_block: True if the value is serialized as a CDATA section.

    Example:
        >>> entry = ConfigEntry('database:host', 'localhost')
        >>> entry.raw_block
        False
    """

    __slots__ = ('key', 'value', 'raw_block')

    def __init__(
        self,
        key: str,
        value: str | None = None,
        raw_block: bool = False,
    ) -> None:
        self.key = key
        self.value = value
        self.raw_block = raw_block

    def __repr__(self) -> str:
        flag = ', raw_block=True' if self.raw_block else ''
        return f"ConfigEntry({self.key!r}, {self.value!r}{flag})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigEntry):
            return NotImplemented
        return (
            normalize(self.key) == normalize(other.key)
            and self.value == other.value
            and self.raw_block == other.raw_block
        )

    def __hash__(self) -> int:
        return hash((normalize(self.key), self.value, self.raw_block))

    def copy(self) -> ConfigEntry:
        return ConfigEntry(self.key, self.value, self.raw_block)


class Snapshot:
    """Ordered, case-insensitive mapping of key paths to entries.

    Iteration yields ConfigEntry objects in insertion order. Updating an
    existing key keeps both its position and its original casing.

    Example:
        >>> snap = Snapshot()
        >>> snap.set('Database:Host', 'localhost')
        >>> snap.get_entry('database:host').key
        'Database:Host'
    """

    __slots__ = ('_entries', '_root_name')

    def __init__(
        self,
        entries: list[ConfigEntry] | None = None,
        root_name: str = DEFAULT_ROOT_NAME,
    ) -> None:
        self._entries: dict[str, ConfigEntry] = {}
        self._root_name = validate_root_name(root_name)
        for entry in entries or ():
            self.put(entry.key, entry.value, entry.raw_block)

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        return f"Snapshot({self._root_name!r}, {self.keys()})"

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ConfigEntry]:
        return iter(self._entries.values())

    def __contains__(self, key: str) -> bool:
        return normalize(key) in self._entries

    def __eq__(self, other: object) -> bool:
        """Compare root names and the (key, value, raw_block) set, ignoring order."""
        if not isinstance(other, Snapshot):
            return NotImplemented
        return (
            self._root_name == other._root_name
            and set(self._entries.values()) == set(other._entries.values())
        )

    __hash__ = None  # type: ignore[assignment]

    # ==================== Root Name ====================

    @property
    def root_name(self) -> str:
        """Name of the document's outer element."""
        return self._root_name

    @root_name.setter
    def root_name(self, value: str) -> None:
        self._root_name = validate_root_name(value)

    # ==================== Access ====================

    def get_entry(self, key: str) -> ConfigEntry | None:
        return self._entries.get(normalize(key))

    def put(self, key: str, value: str | None, raw_block: bool) -> None:
        """Write value and raw_block, keeping position and casing of an existing key."""
        entry = self._entries.get(normalize(key))
        if entry is None:
            self._entries[normalize(key)] = ConfigEntry(key, value, raw_block)
        else:
            entry.value = value
            entry.raw_block = raw_block

    def set(self, key: str, value: str | None) -> None:
        """Write value; an existing raw_block flag is kept, new keys get False."""
        entry = self._entries.get(normalize(key))
        if entry is None:
            self._entries[normalize(key)] = ConfigEntry(key, value)
        else:
            entry.value = value

    def set_raw(self, key: str, value: str | None) -> None:
        """Write value and mark it as a raw block."""
        self.put(key, value, True)

    # ==================== Iteration ====================

    def keys(self) -> list[str]:
        """Return key paths in insertion order."""
        return [entry.key for entry in self._entries.values()]

    def child_keys(self, parent_path: str | None = None) -> list[str]:
        """Return the distinct next-level segments below parent_path.

        With parent_path None, returns the top-level segments.

        Example:
            >>> snap = Snapshot()
            >>> snap.set('db:host', 'h')
            >>> snap.set('db:port', '1')
            >>> snap.child_keys('db')
            ['host', 'port']
        """
        parent = [] if parent_path is None else split(normalize(parent_path))
        depth = len(parent)
        result: list[str] = []
        seen: set[str] = set()
        for entry in self._entries.values():
            segments = split(entry.key)
            if len(segments) <= depth:
                continue
            if [normalize(s) for s in segments[:depth]] != parent:
                continue
            segment = segments[depth]
            if normalize(segment) not in seen:
                seen.add(normalize(segment))
                result.append(segment)
        return result

    def as_dict(self) -> dict[str, str | None]:
        """Convert to a plain dict of key path to value."""
        return {entry.key: entry.value for entry in self._entries.values()}

    def copy(self) -> Snapshot:
        """Return a deep copy; entries are not shared with the original."""
        snap = Snapshot(root_name=self._root_name)
        for folded, entry in self._entries.items():
            snap._entries[folded] = entry.copy()
        return snap
