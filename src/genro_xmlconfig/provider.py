# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""XmlConfigurationProvider - writable, reloadable XML configuration.

The provider ties the pieces together:

    - ConfigStore holds the current Snapshot behind a reader/writer lock.
    - parse_xml_file() (loader) and save_xml_file() (saver) touch the file,
      always under the process-wide file_lock() for that path.
    - With reload_on_change, a FileWatcher feeds a ReloadCoordinator, which
      calls load() on a background thread after the file has been quiet for
      reload_delay seconds, then notifies subscribers.

Two locks, two scopes: file_lock(path) serializes file access between all
providers in the process; the store lock serializes writers against readers
of one provider. load() parses under the file lock only and swaps the new
snapshot in under the store lock; save() copies under the store's read lock
and writes without holding it.

Example:
    >>> source = XmlConfigurationSource('settings.xml', optional=True)
    >>> with XmlConfigurationProvider(source) as provider:
    ...     provider.load()
    ...     provider.set('database:host', 'localhost')
    ...     provider.set_raw('database:init', 'SET a = 1 & b = 2')
    ...     provider.save()
"""

from __future__ import annotations

import logging
import os
import threading
from typing import IO, Any, Callable, Iterable

from .exceptions import ConfigFileNotFoundError, InvalidConfigurationError
from .parsers import parse_xml, parse_xml_file
from .reload import ReloadCoordinator
from .serializer import save_xml_file
from .source import XmlConfigurationSource
from .store import ConfigStore, Snapshot, file_lock
from .watcher import WatchHandle

logger = logging.getLogger(__name__)

ReloadCallback = Callable[['XmlConfigurationProvider'], Any]


class XmlConfigurationProvider:
    """Key/value configuration provider backed by an XML file.

    Keys are ':'-delimited paths and case-insensitive. Values are strings
    (or None). Values set with set_raw() are saved as CDATA sections, and
    that flag survives later set() calls and save/load cycles.

    Attributes:
        source: The XmlConfigurationSource this provider was built from.
    """

    def __init__(self, source: XmlConfigurationSource) -> None:
        self.source = source
        self._store = ConfigStore(Snapshot(root_name=source.root_name))
        self._subscribers: dict[str, ReloadCallback] = {}
        self._subscribers_lock = threading.Lock()
        self._coordinator: ReloadCoordinator | None = None
        self._watch: WatchHandle | None = None
        self._closed = False

        if source.reload_on_change and source.has_path:
            self._coordinator = ReloadCoordinator(
                self.load, self._notify_reloaded, delay=source.reload_delay
            )
            try:
                self._watch = source.get_watcher().watch(source.path, self._coordinator.notify)
            except BaseException:
                self._coordinator.close()
                raise

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        return f"XmlConfigurationProvider({self.source.path!r})"

    def __enter__(self) -> XmlConfigurationProvider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self._store.get(key)[1]

    def __getitem__(self, key: str) -> str | None:
        """Return the value for key.

        Raises:
            KeyError: If key is not present.
        """
        value, found = self._store.get(key)
        if not found:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: str | None) -> None:
        self.set(key, value)

    # ==================== Properties ====================

    @property
    def root_name(self) -> str:
        """Name of the document root element used on save."""
        return self._store.root_name

    @root_name.setter
    def root_name(self, value: str) -> None:
        self._store.root_name = value

    @property
    def reload_enabled(self) -> bool:
        """True if this provider watches its file."""
        return self._coordinator is not None

    @property
    def closed(self) -> bool:
        return self._closed

    # ==================== Loading ====================

    def load(self) -> None:
        """Load the backing file, replacing the whole current state.

        Raises:
            ConfigFileNotFoundError: If the file is missing and not optional.
            ConfigFormatError: If the file is not a valid document.
        """
        if not self.source.has_path:
            self._store.replace(self._missing_file(self.source.path))
            return

        path = os.fspath(self.source.path)
        with file_lock(path):
            try:
                snapshot = parse_xml_file(path)
            except FileNotFoundError:
                snapshot = self._missing_file(path)
            logger.debug("loaded %d entries from %s", len(snapshot), path)
            self._store.replace(snapshot)

    def load_from(self, stream: str | bytes | IO) -> None:
        """Load from a stream or document text instead of the backing file."""
        self._store.replace(parse_xml(stream))

    def _missing_file(self, path: Any) -> Snapshot:
        if self.source.optional:
            return Snapshot(root_name=self.source.root_name)
        raise ConfigFileNotFoundError(
            f"The configuration file '{path}' was not found and is not optional."
        )

    # ==================== Access ====================

    def try_get(self, key: str) -> tuple[str | None, bool]:
        """Return (value, found) for key."""
        return self._store.get(key)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for key, or default if absent."""
        value, found = self._store.get(key)
        return value if found else default

    def set(self, key: str, value: str | None) -> None:
        """Set key to value, keeping the key's raw-block flag if it has one."""
        self._store.set(key, value)

    def set_raw(self, key: str, value: str | None) -> None:
        """Set key to value, saved as a CDATA section from now on."""
        self._store.set_raw(key, value)

    def is_raw(self, key: str) -> bool:
        return self._store.is_raw(key)

    def keys(self) -> list[str]:
        """Return all key paths in insertion order."""
        return self._store.keys()

    def get_child_keys(
        self,
        earlier_keys: Iterable[str] = (),
        parent_path: str | None = None,
    ) -> list[str]:
        """Return the child segments below parent_path merged with earlier_keys.

        Duplicates are kept (the caller de-duplicates across providers) and
        the result is sorted with numeric segments first, in numeric order.
        """
        keys = self._store.child_keys(parent_path)
        keys.extend(earlier_keys)
        return sorted(keys, key=_segment_sort_key)

    def snapshot(self) -> Snapshot:
        """Return a point-in-time copy of the current state."""
        return self._store.copy()

    # ==================== Saving ====================

    def save(self) -> None:
        """Write the current state to the backing file.

        Raises:
            InvalidConfigurationError: If the source has no path, or a key
                cannot be written as an XML element.
        """
        if not self.source.has_path:
            raise InvalidConfigurationError("The configuration source path is not set.")

        path = os.fspath(self.source.path)
        with file_lock(path):
            snapshot = self._store.copy()
            save_xml_file(snapshot, path)

    # ==================== Reload notifications ====================

    def subscribe(self, subscriber_id: str, callback: ReloadCallback) -> None:
        """Call callback(provider) after every background reload.

        A second subscribe() with the same id replaces the callback.
        """
        with self._subscribers_lock:
            self._subscribers[subscriber_id] = callback

    def unsubscribe(self, subscriber_id: str) -> None:
        with self._subscribers_lock:
            self._subscribers.pop(subscriber_id, None)

    def _notify_reloaded(self) -> None:
        with self._subscribers_lock:
            callbacks = list(self._subscribers.items())
        for subscriber_id, callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("reload subscriber %r failed", subscriber_id)

    # ==================== Teardown ====================

    def close(self) -> None:
        """Stop watching the file and cancel any pending reload."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._watch is not None:
                self._watch.close()
        finally:
            if self._coordinator is not None:
                self._coordinator.close()


def _segment_sort_key(segment: str) -> tuple[int, int, str]:
    if segment.isascii() and segment.isdigit():
        return (0, int(segment), '')
    return (1, 0, segment.casefold())
