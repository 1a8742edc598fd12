# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""XML saver - rebuilds a nested document from a flat Snapshot.

Each key path is split on the delimiter; every segment becomes one nested
element. Entries sharing a prefix share the intermediate elements created
earlier in the same save. Output order follows snapshot insertion order and
is not sorted.

Raw entries are written as CDATA, all others as escaped text. Indentation is
only inserted between element children, so leaf text is written verbatim.
"""

from __future__ import annotations

import logging
import os
import re
import stat
import tempfile
from typing import IO
from xml.dom import Node, minidom

from .exceptions import InvalidConfigurationError
from .path import split
from .store.snapshot import Snapshot

logger = logging.getLogger(__name__)

INDENT = '  '
XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'
DEFAULT_FILE_MODE = 0o644

_NAME_RE = re.compile(r'^[^\W\d][\w.\-]*$')
_INVALID_CHARS_RE = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]')
_CDATA_END = ']]>'


def build_document(snapshot: Snapshot) -> minidom.Document:
    """Build the XML document for snapshot.

    Raises:
        InvalidConfigurationError: If a key segment or the root name is not
            a valid element name, or a value holds characters XML cannot carry.

    Example:
        >>> snap = Snapshot()
        >>> snap.set('a:b', '5')
        >>> print(build_document(snap).documentElement.toxml())
        <configuration>
          <a>
            <b>5</b>
          </a>
        </configuration>
    """
    document = minidom.Document()
    root = document.createElement(_check_name(snapshot.root_name, snapshot.root_name))
    document.appendChild(root)

    for entry in snapshot:
        current = root
        for segment in split(entry.key):
            child = _find_child(current, segment)
            if child is None:
                child = document.createElement(_check_name(segment, entry.key))
                current.appendChild(child)
            current = child

        value = entry.value if entry.value is not None else ''
        if _INVALID_CHARS_RE.search(value):
            raise InvalidConfigurationError(
                f"Value of '{entry.key}' contains characters not allowed in XML"
            )
        if entry.raw_block:
            for chunk in _cdata_chunks(value):
                current.appendChild(document.createCDATASection(chunk))
        else:
            while current.firstChild is not None:
                current.removeChild(current.firstChild).unlink()
            current.appendChild(document.createTextNode(value))

    _indent(root)
    return document


def render_xml(snapshot: Snapshot) -> bytes:
    """Return snapshot as a UTF-8 encoded XML document."""
    document = build_document(snapshot)
    try:
        text = XML_DECLARATION + document.documentElement.toxml() + '\n'
    finally:
        document.unlink()
    return text.encode('utf-8')


def write_xml(snapshot: Snapshot, stream: IO[bytes]) -> None:
    """Serialize snapshot as UTF-8 XML into a binary stream."""
    stream.write(render_xml(snapshot))


def save_xml_file(snapshot: Snapshot, path: str | os.PathLike[str] | None) -> None:
    """Write snapshot to path, replacing the file in a single rename.

    The parent directory is created if missing. The document is built before
    the file is touched, so a failure leaves the previous file as it was.

    Raises:
        InvalidConfigurationError: If path is unset, or the snapshot cannot
            be represented as XML.
    """
    if path is None or not os.fspath(path).strip():
        raise InvalidConfigurationError("The configuration source path is not set.")

    path = os.fspath(path)
    data = render_xml(snapshot)

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        prefix=f'.{os.path.basename(path)}.', suffix='.tmp', dir=directory
    )
    try:
        with os.fdopen(fd, 'wb') as stream:
            stream.write(data)
            stream.flush()
            os.fsync(stream.fileno())
        os.chmod(tmp_path, _file_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
    logger.debug("saved %d entries to %s", len(snapshot), path)


def _file_mode(path: str) -> int:
    """Permission bits to give the new file: the old file's, or 0o644."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return DEFAULT_FILE_MODE


def _check_name(name: str, key: str) -> str:
    if not _NAME_RE.match(name):
        raise InvalidConfigurationError(
            f"'{name}' in key '{key}' is not a valid XML element name"
        )
    return name


def _find_child(element: minidom.Element, name: str) -> minidom.Element | None:
    """Return the first direct child element named name, or None."""
    for node in element.childNodes:
        if node.nodeType == Node.ELEMENT_NODE and node.tagName == name:
            return node
    return None


def _cdata_chunks(value: str) -> list[str]:
    """Split value so no chunk contains ']]>'.

    'a]]>b' becomes ['a]]', '>b']; written as consecutive CDATA sections
    the concatenated text is unchanged.
    """
    chunks: list[str] = []
    while _CDATA_END in value:
        cut = value.index(_CDATA_END) + 2
        chunks.append(value[:cut])
        value = value[cut:]
    chunks.append(value)
    return chunks


def _indent(root: minidom.Element) -> None:
    """Insert newline/indent text nodes around element-only content."""
    document = root.ownerDocument
    stack: list[tuple[minidom.Element, int]] = [(root, 0)]
    while stack:
        element, level = stack.pop()
        children = list(element.childNodes)
        if not children or any(n.nodeType != Node.ELEMENT_NODE for n in children):
            continue
        padding = '\n' + INDENT * (level + 1)
        for child in children:
            element.insertBefore(document.createTextNode(padding), child)
            stack.append((child, level + 1))
        element.appendChild(document.createTextNode('\n' + INDENT * level))
