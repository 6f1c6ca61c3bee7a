#!/usr/bin/env python3
"""
Tests for the NLS JSON handler.

Tests verify:
1. Shape decoding: combined bundle, module bundle, package map, unrecognized
2. Entries parsed from every recognized shape
3. Translated .i18n.json output with its header
4. Key/value pair conversion with and without a comment separator
"""

import json

import pytest

from nlsxlf.format_handlers import FormatRegistry
from nlsxlf.format_handlers.json_handler import (
    I18N_FILE_HEADER,
    BundleJson,
    ModuleJson,
    NlsJsonHandler,
    PackageJson,
    Unrecognized,
    bundle_to_key_value_pairs,
    decode_nls_json,
    is_localize_info,
)


@pytest.fixture
def handler():
    """Fixture to create NlsJsonHandler instance."""
    return NlsJsonHandler()


# ---------------------------------------------------------------------------
# Shape decoding
# ---------------------------------------------------------------------------

def test_decode_combined_bundle():
    """Test: exactly keys/messages/bundles decodes as a combined bundle."""
    shape = decode_nls_json({
        'keys': {'vs/base/a': ['k']},
        'messages': {'vs/base/a': ['m']},
        'bundles': {'vs/base/a': ['vs/base/a']},
    })
    assert isinstance(shape, BundleJson)
    assert shape.keys == {'vs/base/a': ['k']}
    assert shape.messages == {'vs/base/a': ['m']}


def test_decode_module_bundle():
    """Test: keys/messages arrays decode as a module bundle."""
    shape = decode_nls_json({
        'keys': ['close', {'key': 'open', 'comment': ['Opens it']}],
        'messages': ['Close', 'Open'],
    })
    assert shape == ModuleJson(
        keys=['close', {'key': 'open', 'comment': ['Opens it']}],
        messages=['Close', 'Open'],
    )


def test_decode_package_map():
    """Test: string or {message, comment} values decode as a package map."""
    data = {
        'displayName': 'Git',
        'description': {'message': 'Git support', 'comment': ['Extension description']},
    }
    shape = decode_nls_json(data)
    assert isinstance(shape, PackageJson)
    assert shape.keys() == [
        'displayName',
        {'key': 'description', 'comment': ['Extension description']},
    ]
    assert shape.messages() == ['Git', 'Git support']


def test_package_comment_string_becomes_list():
    """Test: a single-string comment is normalized to a list."""
    shape = decode_nls_json({'a': {'message': 'A', 'comment': 'one'}})
    assert shape.keys() == [{'key': 'a', 'comment': ['one']}]


@pytest.mark.parametrize('data', [
    [],
    'text',
    {'keys': {}, 'messages': {}, 'bundles': {}, 'extra': 1},
    {'name': 1},
    {'description': {'message': 'no comment field'}},
    {'keys': ['a'], 'messages': [1]},
])
def test_decode_unrecognized(data):
    """Test: anything else is Unrecognized."""
    assert isinstance(decode_nls_json(data), Unrecognized)


def test_is_localize_info():
    """Test: structured keys need a string key and an optional list of strings."""
    assert is_localize_info({'key': 'a'})
    assert is_localize_info({'key': 'a', 'comment': ['x']})
    assert not is_localize_info({'key': 'a', 'comment': 'x'})
    assert not is_localize_info({'comment': ['x']})
    assert not is_localize_info('a')


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------

def test_registered_for_json_extension():
    """Test: the registry picks this handler for .json files."""
    assert isinstance(FormatRegistry.detect_format('extensions/git/package.nls.json'), NlsJsonHandler)


def test_parse_module_entries(handler):
    """Test: module bundles become entries with comments as context."""
    content = json.dumps({
        'keys': ['close', {'key': 'open', 'comment': ['Opens it', 'Twice']}],
        'messages': ['Close', 'Open'],
    })
    entries = handler.parse(content)

    assert [(e.id, e.text, e.context) for e in entries] == [
        ('close', 'Close', None),
        ('open', 'Open', 'Opens it\nTwice'),
    ]


def test_parse_package_entries(handler):
    """Test: package maps become entries."""
    entries = handler.parse(json.dumps({'a': 'A', 'b': {'message': 'B', 'comment': []}}))
    assert [(e.id, e.text) for e in entries] == [('a', 'A'), ('b', 'B')]


def test_parse_bundle_entries(handler):
    """Test: combined bundles become entries tagged with their source file."""
    content = json.dumps({
        'keys': {'vs/base/a': ['k1', {'key': 'k2', 'comment': ['Note']}], 'vs/code/b': ['k3']},
        'messages': {'vs/base/a': ['One', 'Two'], 'vs/code/b': ['Three']},
        'bundles': {},
    })
    entries = handler.parse(content)

    assert [(e.id, e.text, e.metadata['source']) for e in entries] == [
        ('k1', 'One', 'vs/base/a'),
        ('k2', 'Two', 'vs/base/a'),
        ('k3', 'Three', 'vs/code/b'),
    ]
    assert entries[1].context == 'Note'


def test_parse_rejects_unknown_shapes_and_invalid_json(handler):
    """Test: unrecognized shapes and invalid JSON are not entry sources."""
    with pytest.raises(ValueError, match='cannot be deduced'):
        handler.parse(json.dumps([1, 2]))
    with pytest.raises(ValueError, match='Invalid JSON'):
        handler.parse('{not json')


def test_reconstruct_writes_header_and_tabs(handler):
    """Test: translated files carry the machine-generated header and tab indent."""
    output = handler.reconstruct([], {'close': '关闭', 'open': '打开'})

    assert output.startswith(I18N_FILE_HEADER + '\n{')
    assert '// Do not edit this file. It is machine generated.' in output
    assert '\t"close": "关闭"' in output
    assert json.loads(output[len(I18N_FILE_HEADER):]) == {'close': '关闭', 'open': '打开'}


def test_reconstruct_lists_only_translations(handler):
    """Test: source entries do not add untranslated keys to the output."""
    entries = handler.parse(json.dumps({'keys': ['a', 'b'], 'messages': ['A', 'B']}))
    output = handler.reconstruct(entries, {'b': 'Be'})
    assert json.loads(output[len(I18N_FILE_HEADER):]) == {'b': 'Be'}


def test_create_i18n_file(handler):
    """Test: the artifact path is <base>/<original>.i18n.json."""
    artifact = handler.create_i18n_file('chs', 'extensions/git/package', {'a': '甲'})
    assert artifact.path == 'chs/extensions/git/package.i18n.json'
    assert artifact.text().endswith('{\n\t"a": "甲"\n}')


def test_validate_content(handler):
    """Test: validation reports bad JSON, unknown shapes and mismatches."""
    assert handler.validate_content(json.dumps({'a': 'A'})) == []
    assert handler.validate_content('[1, 2]') == ['JSON format cannot be deduced']
    assert handler.validate_content('{') and 'Invalid JSON' in handler.validate_content('{')[0]
    errors = handler.validate_content(json.dumps({'keys': ['a', 'b'], 'messages': ['A']}))
    assert errors == ['Mismatch between keys (2) and messages (1)']

    bundle_errors = handler.validate_content(json.dumps({
        'keys': {'vs/base/a': ['k'], 'vs/code/b': ['k', 'j']},
        'messages': {'vs/code/b': ['K']},
        'bundles': {},
    }))
    assert bundle_errors == [
        'No messages for vs/base/a',
        'Mismatch between keys (2) and messages (1) in vs/code/b',
    ]


# ---------------------------------------------------------------------------
# Key/value pairs
# ---------------------------------------------------------------------------

BUNDLE = ModuleJson(
    keys=['plain', {'key': 'noted', 'comment': ['First', 'Second']}, {'key': 'bare'}],
    messages=['Plain', 'Noted', 'Bare'],
)


def test_key_value_pairs_keep_comment_lists():
    """Test: without a separator comments stay lists."""
    assert bundle_to_key_value_pairs(BUNDLE) == {
        'plain': 'Plain',
        'noted': {'message': 'Noted', 'comment': ['First', 'Second']},
        'bare': 'Bare',
    }


def test_key_value_pairs_join_comments():
    """Test: a separator joins comments into one string."""
    pairs = bundle_to_key_value_pairs(BUNDLE, comment_separator='\n')
    assert pairs['noted'] == {'message': 'Noted', 'comment': 'First\nSecond'}


def test_key_value_pairs_duplicate_first_wins(caplog):
    """Test: duplicated keys keep the first message and warn."""
    pairs = bundle_to_key_value_pairs(ModuleJson(keys=['a', 'a'], messages=['1', '2']))
    assert pairs == {'a': '1'}
    assert 'Duplicate key' in caplog.text
