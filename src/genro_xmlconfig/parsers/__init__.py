# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Parsers for populating a Snapshot from configuration documents.

Available parsers:
- xml: nested-element XML documents with optional CDATA values

Example:
    >>> from genro_xmlconfig.parsers import parse_xml, parse_xml_file
    >>> snap = parse_xml_file('appsettings.xml')
    >>> snap.get_entry('database:host')
"""

from .xml import parse_xml, parse_xml_file

__all__ = [
    'parse_xml',
    'parse_xml_file',
]
