# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Helpers for delimited configuration key paths.

A key path addresses one value in the hierarchy, e.g. ``'database:host'``.
Lookups are case-insensitive; :func:`normalize` gives the folded form used
as dictionary key.
"""

from __future__ import annotations

KEY_DELIMITER = ':'


def combine(*segments: str) -> str:
    """Join segments into a key path.

    Example:
        >>> combine('database', 'host')
        'database:host'
    """
    return KEY_DELIMITER.join(segments)


def split(key: str) -> list[str]:
    """Split a key path into its segments."""
    return key.split(KEY_DELIMITER)


def get_section_key(key: str) -> str:
    """Return the last segment of a key path."""
    return key.rpartition(KEY_DELIMITER)[2]


def get_parent_path(key: str) -> str | None:
    """Return the key path without its last segment, or None at top level."""
    parent, sep, _ = key.rpartition(KEY_DELIMITER)
    return parent if sep else None


def normalize(key: str) -> str:
    """Return the case-folded form of a key path."""
    return key.casefold()
