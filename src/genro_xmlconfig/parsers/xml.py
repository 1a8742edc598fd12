# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""XML loader - turns a configuration document into a flat Snapshot.

Document layout::

    <configuration>
        <database>
            <host>localhost</host>
            <init><![CDATA[SET x = 1 & y = 2]]></init>
        </database>
    </configuration>

produces::

    database:host  -> 'localhost'                  raw_block=False
    database:init  -> 'SET x = 1 & y = 2'          raw_block=True

Only leaf elements (no element children) become entries; the chain of
element names below the root is the key path. The root element name is kept
in Snapshot.root_name. Attributes, comments and processing instructions are
ignored.

Inside a leaf, a text run made only of whitespace is dropped, so
``<blank>   </blank>`` loads as '' and an indented CDATA section loads
without the indentation around it. Text with other characters is kept
verbatim, including its leading and trailing spaces.

The document is read with expat event handlers and an explicit element
stack, so nesting depth is not bounded by the interpreter recursion limit.
"""

from __future__ import annotations

import os
from typing import IO, Any
from xml.parsers import expat

from ..exceptions import ConfigFormatError
from ..path import combine
from ..store.snapshot import Snapshot

_READ_SIZE = 64 * 1024
_NS_SEPARATOR = ' '
_XML_WHITESPACE = ' \t\r\n'


class _Frame:
    """An open element during parsing.

    Text is kept as separate runs: each CDATA section is one run, and so is
    each stretch of ordinary text between CDATA sections or comments.
    """

    __slots__ = ('path', 'has_children', 'runs', 'raw_block', 'in_cdata', 'open_run')

    def __init__(self, path: str | None) -> None:
        self.path = path
        self.has_children = False
        self.runs: list[tuple[bool, list[str]]] = []
        self.raw_block = False
        self.in_cdata = False
        self.open_run: list[str] | None = None

    def value(self) -> str:
        """Join the runs, dropping text runs made only of XML whitespace."""
        parts = []
        for is_cdata, chunks in self.runs:
            text = ''.join(chunks)
            if is_cdata or text.strip(_XML_WHITESPACE):
                parts.append(text)
        return ''.join(parts)


class _SnapshotBuilder:
    """expat handlers collecting leaf elements into a Snapshot."""

    def __init__(self) -> None:
        self.snapshot: Snapshot | None = None
        self._stack: list[_Frame] = []

    def install(self, parser: Any) -> None:
        parser.StartElementHandler = self.start_element
        parser.EndElementHandler = self.end_element
        parser.CharacterDataHandler = self.character_data
        parser.StartCdataSectionHandler = self.start_cdata
        parser.EndCdataSectionHandler = self.end_cdata
        parser.CommentHandler = self.comment

    def start_element(self, name: str, attrs: dict[str, str]) -> None:
        name = name.rpartition(_NS_SEPARATOR)[2]
        if not self._stack:
            self.snapshot = Snapshot(root_name=name)
            self._stack.append(_Frame(None))
            return
        parent = self._stack[-1]
        parent.has_children = True
        path = name if parent.path is None else combine(parent.path, name)
        self._stack.append(_Frame(path))

    def end_element(self, name: str) -> None:
        frame = self._stack.pop()
        if frame.path is None or frame.has_children:
            return
        self.snapshot.put(frame.path, frame.value(), frame.raw_block)

    def character_data(self, data: str) -> None:
        if not self._stack:
            return
        frame = self._stack[-1]
        if frame.open_run is None:
            frame.open_run = []
            frame.runs.append((frame.in_cdata, frame.open_run))
        frame.open_run.append(data)

    def start_cdata(self) -> None:
        if self._stack:
            frame = self._stack[-1]
            frame.raw_block = True
            frame.in_cdata = True
            frame.open_run = None

    def end_cdata(self) -> None:
        if self._stack:
            frame = self._stack[-1]
            frame.in_cdata = False
            frame.open_run = None

    def comment(self, data: str) -> None:
        if self._stack:
            self._stack[-1].open_run = None


def parse_xml(source: str | bytes | IO) -> Snapshot:
    """Parse an XML configuration document into a Snapshot.

    Args:
        source: Document text (str or bytes) or a readable binary/text stream.

    Returns:
        A fully built Snapshot. Nothing is returned on failure, so callers
        never see a partially populated one.

    Raises:
        ConfigFormatError: If the document is malformed or has no root element.

    Example:
        >>> snap = parse_xml('<configuration><a><b>5</b></a></configuration>')
        >>> snap.get_entry('a:b').value
        '5'
    """
    parser = expat.ParserCreate(namespace_separator=_NS_SEPARATOR)
    builder = _SnapshotBuilder()
    builder.install(parser)

    try:
        if isinstance(source, (str, bytes)):
            parser.Parse(source, True)
        else:
            while True:
                chunk = source.read(_READ_SIZE)
                if not chunk:
                    break
                parser.Parse(chunk, False)
            parser.Parse(b'', True)
    except expat.ExpatError as e:
        raise ConfigFormatError(f"Invalid XML configuration document: {e}") from e

    if builder.snapshot is None:
        raise ConfigFormatError("XML configuration file has no root element.")
    return builder.snapshot


def parse_xml_file(path: str | os.PathLike[str]) -> Snapshot:
    """Open path and parse it with parse_xml()."""
    with open(path, 'rb') as stream:
        return parse_xml(stream)
