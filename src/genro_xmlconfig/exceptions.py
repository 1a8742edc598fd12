# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""XmlConfig exceptions."""

from __future__ import annotations


class XmlConfigError(Exception):
    """Base exception for XmlConfig errors."""

    pass


class ConfigFileNotFoundError(XmlConfigError, FileNotFoundError):
    """Raised when a non-optional configuration file does not exist."""

    pass


class ConfigFormatError(XmlConfigError, ValueError):
    """Raised when a document cannot be parsed or has no root element."""

    pass


class InvalidConfigurationError(XmlConfigError, ValueError):
    """Raised on a blank root name, a missing save path or an unwritable key."""

    pass
