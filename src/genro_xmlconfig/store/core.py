# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ConfigStore - thread-safe accessor over the current Snapshot.

Readers share the lock; set, set_raw and replace are exclusive. A reload
builds a complete Snapshot first and then swaps it in with replace(), so a
reader sees either the old state or the new one, never a mix.

Example:
    >>> store = ConfigStore()
    >>> store.set('database:host', 'localhost')
    >>> store.get('DATABASE:HOST')
    ('localhost', True)
"""

from __future__ import annotations

from .locking import ReaderWriterLock
from .snapshot import Snapshot, validate_root_name


class ConfigStore:
    """In-memory key path -> value store guarded by a ReaderWriterLock."""

    __slots__ = ('_lock', '_snapshot')

    def __init__(self, snapshot: Snapshot | None = None) -> None:
        self._lock = ReaderWriterLock()
        self._snapshot = snapshot if snapshot is not None else Snapshot()

    def __repr__(self) -> str:
        with self._lock.read():
            return f"ConfigStore({self._snapshot!r})"

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._snapshot)

    # ==================== Root Name ====================

    @property
    def root_name(self) -> str:
        with self._lock.read():
            return self._snapshot.root_name

    @root_name.setter
    def root_name(self, value: str) -> None:
        validate_root_name(value)
        with self._lock.write():
            self._snapshot.root_name = value

    # ==================== Reads ====================

    def get(self, key: str) -> tuple[str | None, bool]:
        """Return (value, found) for key."""
        with self._lock.read():
            entry = self._snapshot.get_entry(key)
            if entry is None:
                return None, False
            return entry.value, True

    def is_raw(self, key: str) -> bool:
        """True if key exists and is marked as a raw block."""
        with self._lock.read():
            entry = self._snapshot.get_entry(key)
            return entry is not None and entry.raw_block

    def keys(self) -> list[str]:
        with self._lock.read():
            return self._snapshot.keys()

    def child_keys(self, parent_path: str | None = None) -> list[str]:
        with self._lock.read():
            return self._snapshot.child_keys(parent_path)

    def copy(self) -> Snapshot:
        """Return a point-in-time deep copy of the snapshot."""
        with self._lock.read():
            return self._snapshot.copy()

    # ==================== Writes ====================

    def set(self, key: str, value: str | None) -> None:
        """Write value, keeping an existing raw_block flag."""
        with self._lock.write():
            self._snapshot.set(key, value)

    def set_raw(self, key: str, value: str | None) -> None:
        """Write value and mark it as a raw block."""
        with self._lock.write():
            self._snapshot.set_raw(key, value)

    def replace(self, snapshot: Snapshot) -> None:
        """Swap in a new snapshot, entries and root name together."""
        with self._lock.write():
            self._snapshot = snapshot
