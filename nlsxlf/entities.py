#!/usr/bin/env python3
"""
XML entity escaping for XLIFF text nodes and attribute values.

Only the characters that break XLIFF markup are handled: ``&``, ``<``,
``>`` and ``"``. Everything else passes through untouched so translated
text keeps its original characters.
"""

_ENCODE_MAP = {
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    '"': '&quot;',
}


def encode_entities(value: str) -> str:
    """
    Escape XML-special characters.

    Args:
        value: Raw text

    Returns:
        Text safe to embed in an XLIFF element or attribute
    """
    return ''.join(_ENCODE_MAP.get(ch, ch) for ch in value)

