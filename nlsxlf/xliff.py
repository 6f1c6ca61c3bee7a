#!/usr/bin/env python3
"""
XLIFF 1.2 document model.

XliffDocument collects translation items per original source file and
renders them as the XLIFF 1.2 text the translation vendor imports. The
reverse direction, parse_xliff, reads a translated XLIFF document back into
one message map per <file> node.

Output layout:
    <?xml version="1.0" encoding="utf-8"?>
    <xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
      <file original="vs/base/common/errors" source-language="en" datatype="plaintext"><body>
        <trans-unit id="stackTrace.format">
          <source xml:lang="en">{0}: {1}</source>
          <note>Error message with stack trace</note>
        </trans-unit>
      </body></file>
    </xliff>
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional
from xml.etree import ElementTree as ET

from .entities import encode_entities

logger = logging.getLogger(__name__)

XLIFF_NAMESPACE = 'urn:oasis:names:tc:xliff:document:1.2'
SOURCE_LANGUAGE = 'en'
LINE_SEPARATOR = '\r\n'


class XliffParseError(ValueError):
    """Raised when an XLIFF document cannot be turned into translations."""


@dataclass
class TranslationItem:
    """
    One <trans-unit> of an XLIFF file node.

    Attributes:
        id: Extraction key
        message: Entity-escaped source text
        comment: Entity-escaped developer note, if any
    """
    id: str
    message: str
    comment: Optional[str] = None


@dataclass
class ParsedTranslationFile:
    """Translations recovered from one <file> node of a translated XLIFF document."""
    original_file_path: str
    language: str
    messages: dict[str, str] = field(default_factory=dict)


def _key_id(key: Any) -> str:
    if isinstance(key, str):
        return key
    return key['key']


def _key_comments(key: Any) -> list[str]:
    if isinstance(key, Mapping):
        return key.get('comment') or []
    return []


class XliffDocument:
    """
    In-memory XLIFF document for one vendor resource.

    Files keep their insertion order, which is the order they appear in the
    serialized XML. Adding the same original path twice replaces the earlier
    items.
    """

    def __init__(self, project: str):
        self.project = project
        self._files: dict[str, list[TranslationItem]] = {}

    @property
    def files(self) -> dict[str, list[TranslationItem]]:
        """Copy of the original-path -> items mapping, in insertion order."""
        return {path: list(items) for path, items in self._files.items()}

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, original: str) -> bool:
        return original in self._files

    def add_file(self, original: str, keys: Sequence, messages: Sequence[str]) -> None:
        """
        Add (or replace) the items of one source file.

        Args:
            original: Logical path of the source file (``original`` attribute)
            keys: Plain string ids or ``{"key": ..., "comment": [...]}`` mappings
            messages: Source messages, parallel to ``keys``
        """
        if len(keys) != len(messages):
            logger.warning(
                "Mismatch between keys (%d) and messages (%d) in %s",
                len(keys), len(messages), original,
            )

        items = []
        seen = set()
        for key, message in zip(keys, messages):
            item_id = _key_id(key)
            # First occurrence of an id wins
            if item_id in seen:
                continue
            seen.add(item_id)

            comments = _key_comments(key)
            comment = None
            if comments:
                comment = LINE_SEPARATOR.join(encode_entities(c) for c in comments)

            items.append(TranslationItem(
                id=item_id,
                message=encode_entities(message),
                comment=comment,
            ))

        self._files[original] = items

    def serialize(self) -> str:
        """Render the document as XLIFF 1.2 text (CRLF line endings)."""
        lines = [
            '<?xml version="1.0" encoding="utf-8"?>',
            f'<xliff version="1.2" xmlns="{XLIFF_NAMESPACE}">',
        ]

        for original, items in self._files.items():
            lines.append(
                f'  <file original="{encode_entities(original)}" '
                f'source-language="{SOURCE_LANGUAGE}" datatype="plaintext"><body>'
            )
            for item in items:
                lines.append(f'    <trans-unit id="{encode_entities(item.id)}">')
                lines.append(f'      <source xml:lang="{SOURCE_LANGUAGE}">{item.message}</source>')
                if item.comment:
                    lines.append(f'      <note>{item.comment}</note>')
                lines.append('    </trans-unit>')
            lines.append('  </body></file>')

        lines.append('</xliff>')
        return LINE_SEPARATOR.join(lines)

    def to_bytes(self) -> bytes:
        return self.serialize().encode('utf-8')

    @staticmethod
    def parse(content: str) -> list['ParsedTranslationFile']:
        """Parse translated XLIFF text. See parse_xliff."""
        return parse_xliff(content)


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tag names."""
    return tag.rsplit('}', 1)[-1]


def _children(elem: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in elem if _local_name(child.tag) == name]


def parse_xliff(content: str) -> list[ParsedTranslationFile]:
    """
    Parse a translated XLIFF document.

    Either every <file> node is parsed or XliffParseError is raised; no
    partial results are returned. Trans-units without a <target> have no
    translation yet and are skipped.

    Args:
        content: XLIFF text

    Returns:
        One ParsedTranslationFile per <file> node, in document order
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise XliffParseError(f"Failed to parse XLIFF string. {e}") from e

    file_nodes = _children(root, 'file') if _local_name(root.tag) == 'xliff' else []
    if not file_nodes:
        raise XliffParseError(
            'XLIFF file does not contain "xliff" or "file" node(s) required for parsing.'
        )

    files = []
    for file_node in file_nodes:
        original = file_node.get('original')
        if not original:
            raise XliffParseError(
                'XLIFF file node does not contain original attribute to determine '
                'the original location of the resource file.'
            )
        language = file_node.get('target-language')
        if not language:
            raise XliffParseError(
                f'XLIFF file node {original} does not contain target-language attribute '
                'to determine translated language.'
            )

        messages = {}
        for body in _children(file_node, 'body'):
            for unit in _children(body, 'trans-unit'):
                targets = _children(unit, 'target')
                if not targets:
                    continue

                key = unit.get('id')
                value = ''.join(targets[0].itertext())
                if not key or not value:
                    raise XliffParseError(
                        f'XLIFF file {original} does not contain full localization data. '
                        'ID or target translation for one of the trans-unit nodes is not present.'
                    )
                messages[key] = value

        files.append(ParsedTranslationFile(
            original_file_path=original,
            language=language.lower(),
            messages=messages,
        ))

    logger.debug("Parsed %d XLIFF file node(s)", len(files))
    return files
