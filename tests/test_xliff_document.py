#!/usr/bin/env python3
"""
Tests for the XLIFF document model.

Tests verify:
1. Serialized layout (header, file/trans-unit nesting, CRLF, notes)
2. Entity escaping of messages, comments and attributes
3. Duplicate ids: first occurrence wins
4. Keys/messages length mismatch is logged and truncated
5. Parsing translated documents, including every rejection case
6. Round trip through serialize -> translate -> parse
"""

import logging
import re

import pytest

from nlsxlf.entities import encode_entities
from nlsxlf.xliff import (
    ParsedTranslationFile,
    XliffDocument,
    XliffParseError,
    parse_xliff,
)


def translate(xliff: str, language: str = 'zh-CN') -> str:
    """Fake vendor: copy every <source> into a <target> and set target-language."""
    xliff = xliff.replace(
        'datatype="plaintext"',
        f'datatype="plaintext" target-language="{language}"',
    )
    return re.sub(
        r'<source xml:lang="en">(.*?)</source>',
        r'\g<0><target>\1</target>',
        xliff,
    )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

def test_encode_entities():
    """Test: the XML-special characters are escaped, others untouched."""
    assert encode_entities('<a href="x">&b</a> é') == '&lt;a href=&quot;x&quot;&gt;&amp;b&lt;/a&gt; é'


def test_encode_entities_escapes_entity_text():
    """Test: text that already looks like an entity is escaped again."""
    assert encode_entities("&lt;") == "&amp;lt;"
    assert encode_entities("&amp;amp;") == "&amp;amp;amp;"


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def test_serialize_exact_layout():
    """Test: one file with a plain key produces the exact XLIFF text."""
    doc = XliffDocument('vscode-editor')
    doc.add_file('vs/base/common/errors', ['stackTrace.format'], ['{0}: {1}'])

    expected = '\r\n'.join([
        '<?xml version="1.0" encoding="utf-8"?>',
        '<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">',
        '  <file original="vs/base/common/errors" source-language="en" datatype="plaintext"><body>',
        '    <trans-unit id="stackTrace.format">',
        '      <source xml:lang="en">{0}: {1}</source>',
        '    </trans-unit>',
        '  </body></file>',
        '</xliff>',
    ])
    assert doc.serialize() == expected


def test_serialize_empty_document():
    """Test: a document without files still has header and footer."""
    doc = XliffDocument('p')
    assert doc.serialize().split('\r\n') == [
        '<?xml version="1.0" encoding="utf-8"?>',
        '<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">',
        '</xliff>',
    ]


def test_serialize_is_idempotent():
    """Test: serializing twice yields identical output."""
    doc = XliffDocument('p')
    doc.add_file('a', ['k1', 'k2'], ['one', 'two'])
    doc.add_file('b', [{'key': 'k', 'comment': ['note']}], ['three'])

    assert doc.serialize() == doc.serialize()
    assert doc.to_bytes() == doc.serialize().encode('utf-8')


def test_comments_become_notes_joined_with_crlf():
    """Test: structured keys produce an escaped <note> with CRLF-joined comments."""
    doc = XliffDocument('p')
    doc.add_file('a', [{'key': 'open', 'comment': ['Opens <file>', 'Second & last']}], ['Open'])

    item = doc.files['a'][0]
    assert item.id == 'open'
    assert item.comment == 'Opens &lt;file&gt;\r\nSecond &amp; last'
    assert '      <note>Opens &lt;file&gt;\r\nSecond &amp; last</note>' in doc.serialize()


def test_structured_key_without_comment_has_no_note():
    """Test: empty or missing comment lists add no <note>."""
    doc = XliffDocument('p')
    doc.add_file('a', [{'key': 'x', 'comment': []}, {'key': 'y'}], ['X', 'Y'])

    assert [item.comment for item in doc.files['a']] == [None, None]
    assert '<note>' not in doc.serialize()


def test_messages_are_escaped():
    """Test: messages are stored entity-escaped."""
    doc = XliffDocument('p')
    doc.add_file('a', ['k'], ['<a>&b'])

    assert doc.files['a'][0].message == '&lt;a&gt;&amp;b'
    assert '<source xml:lang="en">&lt;a&gt;&amp;b</source>' in doc.serialize()


def test_attributes_are_escaped():
    """Test: ids and original paths with special characters stay well-formed."""
    doc = XliffDocument('p')
    doc.add_file('a&b', ['say "hi"'], ['Hi'])

    text = doc.serialize()
    assert '<file original="a&amp;b"' in text
    assert '<trans-unit id="say &quot;hi&quot;">' in text


def test_files_keep_insertion_order():
    """Test: files serialize in the order they were added."""
    doc = XliffDocument('p')
    for name in ['z/last', 'a/first', 'm/middle']:
        doc.add_file(name, ['k'], ['v'])

    text = doc.serialize()
    positions = [text.index(f'original="{name}"') for name in ['z/last', 'a/first', 'm/middle']]
    assert positions == sorted(positions)


def test_add_file_twice_replaces():
    """Test: re-adding a path replaces its items instead of merging."""
    doc = XliffDocument('p')
    doc.add_file('a', ['old'], ['Old'])
    doc.add_file('b', ['k'], ['v'])
    doc.add_file('a', ['new'], ['New'])

    assert len(doc) == 2
    assert [item.id for item in doc.files['a']] == ['new']
    # Position of the first insertion is kept
    assert list(doc.files) == ['a', 'b']


# ---------------------------------------------------------------------------
# Duplicates and mismatches
# ---------------------------------------------------------------------------

def test_duplicate_keys_first_wins():
    """Test: add_file(path, ["k","k"], ["m1","m2"]) keeps one item k -> m1."""
    doc = XliffDocument('p')
    doc.add_file('path', ['k', 'k'], ['m1', 'm2'])

    items = doc.files['path']
    assert len(items) == 1
    assert items[0].id == 'k'
    assert items[0].message == 'm1'


def test_duplicate_structured_and_plain_keys():
    """Test: duplicates are detected by id, whatever the key form."""
    doc = XliffDocument('p')
    doc.add_file('path', [{'key': 'k', 'comment': ['c']}, 'k', 'j'], ['m1', 'm2', 'm3'])

    assert [(i.id, i.message) for i in doc.files['path']] == [('k', 'm1'), ('j', 'm3')]


def test_length_mismatch_warns_and_truncates(caplog):
    """Test: mismatched keys/messages are processed up to the shorter length."""
    doc = XliffDocument('p')
    with caplog.at_level(logging.WARNING, logger='nlsxlf.xliff'):
        doc.add_file('path', ['a', 'b', 'c'], ['A', 'B'])

    assert [i.id for i in doc.files['path']] == ['a', 'b']
    assert any('Mismatch' in r.getMessage() and 'path' in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

TRANSLATED = """<?xml version="1.0" encoding="utf-8"?>
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
  <file original="extensions/git/package" source-language="en" target-language="zh-Hans" datatype="plaintext"><body>
    <trans-unit id="displayName">
      <source xml:lang="en">Git</source>
      <target>Git 支持</target>
    </trans-unit>
    <trans-unit id="untranslated">
      <source xml:lang="en">Later</source>
    </trans-unit>
  </body></file>
  <file original="extensions/git/out/main" source-language="en" target-language="ZH-CN" datatype="plaintext"><body>
    <trans-unit id="close">
      <source xml:lang="en">Close</source>
      <target>关闭 &amp;lt;x&amp;gt;</target>
    </trans-unit>
  </body></file>
</xliff>"""


def test_parse_files_and_messages():
    """Test: one result per <file>, language lower-cased, missing targets skipped."""
    files = parse_xliff(TRANSLATED)

    assert files == [
        ParsedTranslationFile(
            original_file_path='extensions/git/package',
            language='zh-hans',
            messages={'displayName': 'Git 支持'},
        ),
        ParsedTranslationFile(
            original_file_path='extensions/git/out/main',
            language='zh-cn',
            messages={'close': '关闭 &lt;x&gt;'},
        ),
    ]


def test_parse_is_available_on_document_class():
    """Test: XliffDocument.parse delegates to parse_xliff."""
    assert XliffDocument.parse(TRANSLATED) == parse_xliff(TRANSLATED)


def test_parse_without_namespace():
    """Test: documents without the XLIFF namespace are accepted."""
    text = (
        '<xliff version="1.2"><file original="a" target-language="de"><body>'
        '<trans-unit id="k"><source>K</source><target>Ka</target></trans-unit>'
        '</body></file></xliff>'
    )
    assert parse_xliff(text)[0].messages == {'k': 'Ka'}


def test_parse_file_without_units():
    """Test: a file node with an empty body yields an empty message map."""
    text = '<xliff version="1.2"><file original="a" target-language="de"><body/></file></xliff>'
    assert parse_xliff(text)[0].messages == {}


@pytest.mark.parametrize('text, fragment', [
    ('<xliff><file', 'Failed to parse'),
    ('<xliff version="1.2"></xliff>', '"file" node'),
    ('<resources><file original="a" target-language="de"/></resources>', '"file" node'),
    ('<xliff><file target-language="de"><body/></file></xliff>', 'original attribute'),
    ('<xliff><file original="a"><body/></file></xliff>', 'target-language'),
    (
        '<xliff><file original="a" target-language="de"><body>'
        '<trans-unit id="k"><source>K</source><target></target></trans-unit>'
        '</body></file></xliff>',
        'full localization data',
    ),
    (
        '<xliff><file original="a" target-language="de"><body>'
        '<trans-unit><source>K</source><target>Ka</target></trans-unit>'
        '</body></file></xliff>',
        'full localization data',
    ),
])
def test_parse_rejections(text, fragment):
    """Test: every malformed document is rejected as a whole."""
    with pytest.raises(XliffParseError, match=fragment):
        parse_xliff(text)


def test_parse_rejects_whole_document_on_late_error():
    """Test: a bad second file rejects the parse; no partial result."""
    text = (
        '<xliff>'
        '<file original="good" target-language="de"><body/></file>'
        '<file original="bad"><body/></file>'
        '</xliff>'
    )
    with pytest.raises(XliffParseError):
        parse_xliff(text)


def test_parse_error_is_value_error():
    """Test: XliffParseError can be handled as ValueError."""
    assert issubclass(XliffParseError, ValueError)


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------

def test_round_trip_recovers_messages():
    """Test: parse(translate(serialize(doc))) recovers every id -> message."""
    doc = XliffDocument('p')
    doc.add_file('a/one', ['k1', {'key': 'k2', 'comment': ['c']}], ['<a>&b', 'say "hi"'])
    doc.add_file('a/two', ['x'], ['Plain text é'])

    files = parse_xliff(translate(doc.serialize()))

    assert [f.original_file_path for f in files] == ['a/one', 'a/two']
    assert files[0].messages == {'k1': '<a>&b', 'k2': 'say "hi"'}
    assert files[1].messages == {'x': 'Plain text é'}
    assert all(f.language == 'zh-cn' for f in files)


def test_round_trip_keeps_entity_like_text():
    """Test: messages containing literal entities come back unchanged."""
    doc = XliffDocument('p')
    doc.add_file('a', ['k', 'j'], ['Use &lt; for <', 'Tom &amp; Jerry & co'])

    files = parse_xliff(translate(doc.serialize()))

    assert files[0].messages == {'k': 'Use &lt; for <', 'j': 'Tom &amp; Jerry & co'}
