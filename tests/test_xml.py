# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for the XML loader and saver."""

import io

import pytest

from genro_xmlconfig import (
    ConfigFormatError,
    InvalidConfigurationError,
    Snapshot,
    build_document,
    parse_xml,
    parse_xml_file,
    save_xml_file,
    write_xml,
)
from genro_xmlconfig.serializer import render_xml


def entries(snap):
    """Return snapshot contents as (key, value, raw_block) tuples."""
    return [(e.key, e.value, e.raw_block) for e in snap]


class TestParseXml:
    """Tests for parse_xml."""

    def test_simple_leaf(self):
        """Test a nested leaf becomes a delimited key."""
        snap = parse_xml('<configuration><a><b>5</b></a></configuration>')
        assert snap.root_name == 'configuration'
        assert entries(snap) == [('a:b', '5', False)]

    def test_root_name_is_captured(self):
        """Test the outer element name is kept."""
        snap = parse_xml('<appSettings><x>1</x></appSettings>')
        assert snap.root_name == 'appSettings'
        assert entries(snap) == [('x', '1', False)]

    def test_cdata_leaf(self):
        """Test CDATA content is detected and kept unescaped."""
        snap = parse_xml('<c><k><![CDATA[x&y <z>]]></k></c>')
        assert entries(snap) == [('k', 'x&y <z>', True)]

    def test_text_and_cdata_are_concatenated(self):
        """Test mixed text and CDATA in one leaf."""
        snap = parse_xml('<c><k>a<![CDATA[<b>]]>c</k></c>')
        assert entries(snap) == [('k', 'a<b>c', True)]

    def test_entities_are_decoded(self):
        """Test escaped text is decoded and not marked raw."""
        snap = parse_xml('<c><k>a &amp; b &lt; c</k></c>')
        assert entries(snap) == [('k', 'a & b < c', False)]

    def test_empty_leaf_is_empty_string(self):
        """Test an empty element yields '' rather than a missing key."""
        snap = parse_xml('<c><empty/><also></also></c>')
        assert entries(snap) == [('empty', '', False), ('also', '', False)]

    def test_empty_cdata_is_raw(self):
        """Test an empty CDATA section still marks the leaf raw."""
        snap = parse_xml('<c><k><![CDATA[]]></k></c>')
        assert entries(snap) == [('k', '', True)]

    def test_mixed_leaf_and_internal_children(self):
        """Test only leaves become entries, in document order."""
        snap = parse_xml(
            '<r><a><b>1</b><c><d>2</d><e>3</e></c><f>4</f></a><g>5</g></r>'
        )
        assert snap.keys() == ['a:b', 'a:c:d', 'a:c:e', 'a:f', 'g']
        assert 'a' not in snap
        assert 'a:c' not in snap

    def test_whitespace_between_elements_is_ignored(self):
        """Test indentation around internal elements does not create values."""
        snap = parse_xml(
            '<?xml version="1.0"?>\n'
            '<configuration>\n'
            '  <db>\n'
            '    <host>localhost</host>\n'
            '  </db>\n'
            '</configuration>\n'
        )
        assert entries(snap) == [('db:host', 'localhost', False)]

    def test_leaf_text_keeps_its_spaces(self):
        """Test text with content keeps its leading and trailing spaces."""
        snap = parse_xml('<c><k>  padded  </k></c>')
        assert snap.get_entry('k').value == '  padded  '

    def test_blank_leaf_is_empty(self):
        """Test a leaf holding only whitespace loads as an empty string."""
        snap = parse_xml('<c><blank>   </blank><lines>\n\t\n</lines></c>')
        assert entries(snap) == [('blank', '', False), ('lines', '', False)]

    def test_indented_cdata(self):
        """Test indentation around a CDATA section is not part of the value."""
        snap = parse_xml(
            '<configuration>\n'
            '  <script>\n'
            '    <![CDATA[x & y]]>\n'
            '  </script>\n'
            '  <blank>   </blank>\n'
            '</configuration>'
        )
        assert entries(snap) == [('script', 'x & y', True), ('blank', '', False)]

    def test_cdata_whitespace_is_kept(self):
        """Test whitespace inside a CDATA section is part of the value."""
        snap = parse_xml('<c><k>\n  <![CDATA[\n  indented\n]]>\n</k><e><![CDATA[  ]]></e></c>')
        assert entries(snap) == [('k', '\n  indented\n', True), ('e', '  ', True)]

    def test_comment_splits_text_runs(self):
        """Test blank text next to a comment is dropped and real text kept."""
        snap = parse_xml('<c><k>  <!-- note -->value</k></c>')
        assert entries(snap) == [('k', 'value', False)]

    def test_attributes_and_comments_are_ignored(self):
        """Test attributes and comments do not leak into values."""
        snap = parse_xml('<c><k enabled="1"><!-- note -->v</k></c>')
        assert entries(snap) == [('k', 'v', False)]

    def test_duplicate_leaf_last_wins(self):
        """Test repeated leaves keep the last value at the first position."""
        snap = parse_xml('<c><k>1</k><other>x</other><k>2</k></c>')
        assert entries(snap) == [('k', '2', False), ('other', 'x', False)]

    def test_keys_collide_case_insensitively(self):
        """Test elements differing only by case map to one key."""
        snap = parse_xml('<c><A><b>1</b></A><a><B>2</B></a></c>')
        assert entries(snap) == [('A:b', '2', False)]

    def test_root_only_document(self):
        """Test a document with just a root yields an empty snapshot."""
        snap = parse_xml('<settings/>')
        assert len(snap) == 0
        assert snap.root_name == 'settings'

    def test_deep_nesting(self):
        """Test nesting deeper than the recursion limit."""
        depth = 5000
        doc = '<r>' + '<n>' * depth + 'v' + '</n>' * depth + '</r>'
        snap = parse_xml(doc)
        assert len(snap) == 1
        entry = next(iter(snap))
        assert entry.key.count(':') == depth - 1
        assert entry.value == 'v'

    def test_binary_and_text_streams(self):
        """Test parsing from bytes and text streams."""
        doc = '<c><k>é</k></c>'
        assert parse_xml(io.BytesIO(doc.encode('utf-8'))).get_entry('k').value == 'é'
        assert parse_xml(io.StringIO(doc)).get_entry('k').value == 'é'
        assert parse_xml(doc.encode('utf-8')).get_entry('k').value == 'é'

    def test_malformed_document_raises(self):
        """Test unparsable input raises ConfigFormatError."""
        with pytest.raises(ConfigFormatError):
            parse_xml('<c><k>1</c>')
        with pytest.raises(ConfigFormatError):
            parse_xml('not xml at all')

    def test_empty_document_raises(self):
        """Test input without a root element raises ConfigFormatError."""
        with pytest.raises(ConfigFormatError):
            parse_xml('')
        with pytest.raises(ConfigFormatError):
            parse_xml('<?xml version="1.0"?>')
        with pytest.raises(ValueError):
            parse_xml(b'   ')

    def test_parse_xml_file(self, tmp_path):
        """Test parsing straight from a file."""
        path = tmp_path / 'settings.xml'
        path.write_text('<configuration><a>1</a></configuration>', encoding='utf-8')
        assert entries(parse_xml_file(path)) == [('a', '1', False)]


class TestBuildDocument:
    """Tests for build_document and render_xml."""

    def test_shared_prefix_shares_elements(self):
        """Test entries with a common prefix reuse intermediate elements."""
        snap = Snapshot()
        snap.set('db:host', 'h')
        snap.set('log', 'on')
        snap.set('db:port', '1')
        document = build_document(snap)
        root = document.documentElement
        assert len(document.getElementsByTagName('db')) == 1
        names = [n.tagName for n in root.childNodes if n.nodeType == n.ELEMENT_NODE]
        assert names == ['db', 'log']

    def test_output_follows_insertion_order(self):
        """Test element order is snapshot order, not sorted."""
        snap = Snapshot()
        snap.set('zeta', '1')
        snap.set('alpha', '2')
        text = render_xml(snap).decode('utf-8')
        assert text.index('<zeta>') < text.index('<alpha>')

    def test_root_name_is_used(self):
        """Test the outer element is named after the snapshot root."""
        snap = Snapshot(root_name='appSettings')
        snap.set('a', '1')
        text = render_xml(snap).decode('utf-8')
        assert text.startswith('<?xml version="1.0" encoding="utf-8"?>\n<appSettings>')
        assert text.rstrip().endswith('</appSettings>')

    def test_raw_value_is_cdata(self):
        """Test raw entries are written as unescaped CDATA."""
        snap = Snapshot()
        snap.set_raw('k', 'x&y')
        assert b'<k><![CDATA[x&y]]></k>' in render_xml(snap)

    def test_plain_value_is_escaped(self):
        """Test plain entries are written as escaped text."""
        snap = Snapshot()
        snap.set('k', 'x&y<z>')
        assert b'<k>x&amp;y&lt;z&gt;</k>' in render_xml(snap)

    def test_none_is_written_as_empty(self):
        """Test a None value becomes an empty element."""
        snap = Snapshot()
        snap.set('k', None)
        assert parse_xml(render_xml(snap)).get_entry('k').value == ''

    def test_cdata_terminator_is_split(self):
        """Test ']]>' inside a raw value survives as consecutive CDATA sections."""
        snap = Snapshot()
        snap.set_raw('k', 'a]]>b]]>c')
        data = render_xml(snap)
        assert data.count(b'<![CDATA[') == 3
        assert entries(parse_xml(data)) == [('k', 'a]]>b]]>c', True)]

    def test_indentation(self):
        """Test nested elements are indented and leaves stay inline."""
        snap = Snapshot()
        snap.set('a:b', '5')
        text = render_xml(snap).decode('utf-8')
        assert text == (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            '<configuration>\n'
            '  <a>\n'
            '    <b>5</b>\n'
            '  </a>\n'
            '</configuration>\n'
        )

    def test_invalid_element_name_raises(self):
        """Test segments that are not XML names are rejected."""
        for key in ('1abc', 'a::b', 'a:b c', ''):
            snap = Snapshot()
            snap.set(key, 'v')
            with pytest.raises(InvalidConfigurationError):
                build_document(snap)

    def test_invalid_character_raises(self):
        """Test control characters XML cannot carry are rejected."""
        snap = Snapshot()
        snap.set('k', 'bell\x07')
        with pytest.raises(InvalidConfigurationError):
            build_document(snap)

    def test_write_xml_to_stream(self):
        """Test writing into a binary stream."""
        snap = Snapshot()
        snap.set('a', '1')
        buffer = io.BytesIO()
        write_xml(snap, buffer)
        assert buffer.getvalue() == render_xml(snap)


class TestRoundTrip:
    """Tests for save-then-load equivalence."""

    def test_round_trip_preserves_entries(self):
        """Test key, value and raw flag survive serialization."""
        snap = Snapshot(root_name='settings')
        snap.set('db:host', 'localhost')
        snap.set('db:port', '5432')
        snap.set_raw('db:init', 'SET a = 1 & b = 2; <tag/>')
        snap.set('app:name', 'café & co')
        snap.set('app:empty', '')
        snap.set_raw('app:raw_empty', '')
        snap.set('app:spaces', '  two  ')
        snap.set('Feature:Flags:Beta', 'true')
        loaded = parse_xml(render_xml(snap))
        assert loaded == snap

    def test_sticky_raw_survives_round_trip(self):
        """Test set after set_raw keeps CDATA through save and load."""
        snap = Snapshot()
        snap.set_raw('k', 'v1')
        snap.set('k', 'v2')
        loaded = parse_xml(render_xml(snap))
        assert entries(loaded) == [('k', 'v2', True)]


class TestSaveXmlFile:
    """Tests for save_xml_file."""

    def test_creates_missing_directory(self, tmp_path):
        """Test the destination directory is created."""
        path = tmp_path / 'nested' / 'dir' / 'settings.xml'
        snap = Snapshot()
        snap.set('a', '1')
        save_xml_file(snap, path)
        assert entries(parse_xml_file(path)) == [('a', '1', False)]

    def test_overwrites_existing_file(self, tmp_path):
        """Test saving replaces previous content entirely."""
        path = tmp_path / 'settings.xml'
        path.write_text('<configuration><old>1</old></configuration>')
        snap = Snapshot()
        snap.set('new', '2')
        save_xml_file(snap, path)
        assert parse_xml_file(path).keys() == ['new']
        assert [p.name for p in tmp_path.iterdir()] == ['settings.xml']

    def test_unset_path_raises(self):
        """Test a missing path raises InvalidConfigurationError."""
        snap = Snapshot()
        with pytest.raises(InvalidConfigurationError):
            save_xml_file(snap, None)
        with pytest.raises(InvalidConfigurationError):
            save_xml_file(snap, '  ')

    def test_failure_leaves_file_untouched(self, tmp_path):
        """Test an unwritable snapshot does not corrupt the existing file."""
        path = tmp_path / 'settings.xml'
        original = '<configuration><a>1</a></configuration>'
        path.write_text(original)
        snap = Snapshot()
        snap.set('bad key', 'v')
        with pytest.raises(InvalidConfigurationError):
            save_xml_file(snap, path)
        assert path.read_text() == original
        assert [p.name for p in tmp_path.iterdir()] == ['settings.xml']
