# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Store package - In-memory configuration state.

The package is organized into:
- snapshot: ConfigEntry and the ordered, case-insensitive Snapshot mapping
- locking: ReaderWriterLock and the process-wide file_lock registry
- core: ConfigStore, the thread-safe accessor over one Snapshot

Example:
    >>> from genro_xmlconfig.store import ConfigStore
    >>> store = ConfigStore()
    >>> store.set_raw('script', 'a < b')
    >>> store.is_raw('script')
    True
"""

from .core import ConfigStore
from .locking import ReaderWriterLock, file_lock
from .snapshot import DEFAULT_ROOT_NAME, ConfigEntry, Snapshot

__all__ = [
    "ConfigStore",
    "ConfigEntry",
    "Snapshot",
    "ReaderWriterLock",
    "file_lock",
    "DEFAULT_ROOT_NAME",
]
