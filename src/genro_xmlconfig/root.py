# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ConfigurationRoot - compose several providers into one view.

Providers are consulted in order and the last one holding a key wins, so
later files override earlier ones. Writes go to every provider; save() and
set_raw() apply to the writable XML providers only.

Example:
    >>> with ConfigurationRoot() as config:
    ...     config.add_xml_file('defaults.xml')
    ...     config.add_xml_file('local.xml', optional=True, reload_on_change=True)
    ...     config['database:host']
    ...     config.set_raw('database:init', 'SET a = 1 & b = 2')
    ...     config.save()
"""

from __future__ import annotations

import os
from typing import Any, Iterator

from .provider import ReloadCallback, XmlConfigurationProvider
from .source import XmlConfigurationSource


class ConfigurationRoot:
    """An ordered list of providers read as one configuration."""

    def __init__(self, providers: list[Any] | None = None) -> None:
        self._providers: list[Any] = list(providers or ())

    def __repr__(self) -> str:
        return f"ConfigurationRoot({self._providers!r})"

    def __enter__(self) -> ConfigurationRoot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[Any]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, key: str) -> bool:
        return any(provider.try_get(key)[1] for provider in self._providers)

    def __getitem__(self, key: str) -> str | None:
        """Return the value from the last provider holding key.

        Raises:
            KeyError: If no provider holds key.
        """
        for provider in reversed(self._providers):
            value, found = provider.try_get(key)
            if found:
                return value
        raise KeyError(key)

    def __setitem__(self, key: str, value: str | None) -> None:
        if not self._providers:
            raise RuntimeError("Cannot set a value: no configuration providers registered")
        for provider in self._providers:
            provider.set(key, value)

    @property
    def providers(self) -> list[Any]:
        return list(self._providers)

    # ==================== Building ====================

    def add(self, provider: Any) -> ConfigurationRoot:
        """Append a provider and return self for chaining."""
        self._providers.append(provider)
        return self

    def add_xml_file(
        self,
        path: str | os.PathLike[str],
        optional: bool = False,
        reload_on_change: bool = False,
        **options: Any,
    ) -> XmlConfigurationProvider:
        """Build, load and append a provider for an XML file.

        Args:
            path: Location of the file.
            optional: If True, a missing file loads as an empty store.
            reload_on_change: If True, reload when the file changes.
            **options: Extra XmlConfigurationSource fields
                (root_name, reload_delay, watcher).

        Returns:
            The new provider.
        """
        source = XmlConfigurationSource(
            path=path, optional=optional, reload_on_change=reload_on_change, **options
        )
        provider = source.build()
        try:
            provider.load()
        except BaseException:
            provider.close()
            raise
        self._providers.append(provider)
        return provider

    # ==================== Access ====================

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def get_child_keys(self, parent_path: str | None = None) -> list[str]:
        """Return the distinct child segments below parent_path across providers."""
        keys: list[str] = []
        for provider in self._providers:
            keys = provider.get_child_keys(keys, parent_path)
        seen: set[str] = set()
        result: list[str] = []
        for key in keys:
            if key.casefold() not in seen:
                seen.add(key.casefold())
                result.append(key)
        return result

    def set_raw(self, key: str, value: str | None) -> None:
        """Set a CDATA value on every XML provider."""
        for provider in self._xml_providers():
            provider.set_raw(key, value)

    # ==================== Persistence ====================

    def reload(self) -> None:
        """Reload every provider from its source."""
        for provider in self._providers:
            provider.load()

    def save(self) -> None:
        """Save every XML provider to its file."""
        for provider in self._xml_providers():
            provider.save()

    def subscribe(self, subscriber_id: str, callback: ReloadCallback) -> None:
        """Register callback for background reloads of every XML provider."""
        for provider in self._xml_providers():
            provider.subscribe(subscriber_id, callback)

    def unsubscribe(self, subscriber_id: str) -> None:
        for provider in self._xml_providers():
            provider.unsubscribe(subscriber_id)

    def close(self) -> None:
        """Close every provider that supports it; all are attempted."""
        errors: list[BaseException] = []
        for provider in self._providers:
            close = getattr(provider, 'close', None)
            if close is None:
                continue
            try:
                close()
            except Exception as e:
                errors.append(e)
        if errors:
            raise errors[0]

    def _xml_providers(self) -> Iterator[XmlConfigurationProvider]:
        for provider in self._providers:
            if isinstance(provider, XmlConfigurationProvider):
                yield provider
