# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""XmlConfigurationSource: construction parameters for a provider.

Example:

    source = XmlConfigurationSource(
        path='conf/appsettings.xml',
        optional=True,          # missing file loads as an empty store
        reload_on_change=True,  # watch the file and reload after 0.5s of quiet
    )
    with source.build() as provider:
        provider.load()
        host = provider.get('database:host')
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .reload import RELOAD_DELAY
from .store.snapshot import DEFAULT_ROOT_NAME
from .watcher import FileWatcher, PollingFileWatcher

if TYPE_CHECKING:
    from .provider import XmlConfigurationProvider


@dataclass
class XmlConfigurationSource:
    """Where the configuration lives and how the provider treats the file."""

    path: str | os.PathLike[str] | None
    optional: bool = False
    reload_on_change: bool = False
    root_name: str = DEFAULT_ROOT_NAME          # used until a document is loaded
    reload_delay: float = RELOAD_DELAY          # seconds of quiet before reloading
    watcher: FileWatcher | None = None          # default: PollingFileWatcher()

    @property
    def has_path(self) -> bool:
        return self.path is not None and bool(os.fspath(self.path).strip())

    def get_watcher(self) -> FileWatcher:
        """Return the configured watcher, creating the default one if unset."""
        if self.watcher is None:
            self.watcher = PollingFileWatcher()
        return self.watcher

    def build(self) -> XmlConfigurationProvider:
        """Create a provider for this source. The provider is not loaded yet."""
        from .provider import XmlConfigurationProvider
        return XmlConfigurationProvider(self)
