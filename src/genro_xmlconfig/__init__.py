# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Genro-XmlConfig - Writable, self-reloading XML configuration files.

Maps a nested XML document to flat ':'-delimited keys, lets threads read and
write them concurrently, saves changes back (keeping CDATA values as CDATA)
and reloads when the file is edited externally.
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    InvalidConfigurationError,
    XmlConfigError,
)
from .parsers import parse_xml, parse_xml_file
from .path import KEY_DELIMITER
from .provider import XmlConfigurationProvider
from .reload import RELOAD_DELAY, ReloadCoordinator
from .root import ConfigurationRoot
from .serializer import build_document, save_xml_file, write_xml
from .source import XmlConfigurationSource
from .store import DEFAULT_ROOT_NAME, ConfigEntry, ConfigStore, Snapshot
from .watcher import FileWatcher, PollingFileWatcher

__all__ = [
    # Core classes
    "XmlConfigurationProvider",
    "XmlConfigurationSource",
    "ConfigurationRoot",
    # Store
    "ConfigStore",
    "ConfigEntry",
    "Snapshot",
    # Loading and saving
    "parse_xml",
    "parse_xml_file",
    "build_document",
    "write_xml",
    "save_xml_file",
    # Reloading
    "ReloadCoordinator",
    "FileWatcher",
    "PollingFileWatcher",
    # Constants
    "KEY_DELIMITER",
    "DEFAULT_ROOT_NAME",
    "RELOAD_DELAY",
    # Exceptions
    "XmlConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "InvalidConfigurationError",
]
