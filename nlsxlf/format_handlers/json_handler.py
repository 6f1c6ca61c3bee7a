#!/usr/bin/env python3
"""
JSON format handler for NLS message bundles.

Three JSON shapes reach the pipeline:

Combined bundle (all sources of a build in one file):
```json
{
  "keys": {"vs/base/common/errors": ["stackTrace.format"]},
  "messages": {"vs/base/common/errors": ["{0}: {1}"]},
  "bundles": {"vs/base/common/errors": ["vs/base/common/errors"]}
}
```

Module bundle (one ``*.nls.json`` per source file):
```json
{
  "keys": ["close", {"key": "open", "comment": ["Opens the file"]}],
  "messages": ["Close", "Open"]
}
```

Package map (``package.nls.json``):
```json
{
  "displayName": "Git",
  "description": {"message": "Git support", "comment": ["Extension description"]}
}
```

decode_nls_json tells them apart, and NlsJsonHandler writes translated
``.i18n.json`` files back out.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .base import Artifact, FormatHandler, TranslationEntry

logger = logging.getLogger(__name__)

NLS_JSON = '.nls.json'
I18N_JSON = '.i18n.json'

I18N_FILE_HEADER = '\n'.join([
    '/*---------------------------------------------------------------------------------------------',
    ' *  Copyright (c) Microsoft Corporation. All rights reserved.',
    ' *  Licensed under the MIT License. See License.txt in the project root for license information.',
    ' *--------------------------------------------------------------------------------------------*/',
    '// Do not edit this file. It is machine generated.',
])


@dataclass
class BundleJson:
    """Combined bundle: keys and messages per source file."""
    keys: dict[str, list]
    messages: dict[str, list[str]]
    bundles: dict[str, Any] = field(default_factory=dict)


@dataclass
class ModuleJson:
    """Bundle of a single source file."""
    keys: list
    messages: list[str]


@dataclass
class PackageJson:
    """Flat key -> message (or {message, comment}) map."""
    entries: dict[str, Any]

    def keys(self) -> list:
        result = []
        for key, value in self.entries.items():
            if isinstance(value, Mapping):
                result.append({'key': key, 'comment': _as_comment_list(value.get('comment'))})
            else:
                result.append(key)
        return result

    def messages(self) -> list[str]:
        return [
            str(value['message']) if isinstance(value, Mapping) else value
            for value in self.entries.values()
        ]


@dataclass
class Unrecognized:
    """JSON that matches none of the known shapes."""
    data: Any


NlsJson = Union[BundleJson, ModuleJson, PackageJson, Unrecognized]


def _as_comment_list(comment: Any) -> list[str]:
    if comment is None:
        return []
    if isinstance(comment, str):
        return [comment]
    return [str(c) for c in comment]


def is_localize_info(value: Any) -> bool:
    """Whether value is a structured key: ``{"key": str, "comment": [str]?}``."""
    if not isinstance(value, Mapping) or not isinstance(value.get('key'), str):
        return False
    comment = value.get('comment')
    return comment is None or (
        isinstance(comment, list) and all(isinstance(c, str) for c in comment)
    )


def _is_bundle(data: Any) -> bool:
    return (
        isinstance(data, Mapping)
        and set(data) == {'keys', 'messages', 'bundles'}
        and isinstance(data['keys'], Mapping)
        and isinstance(data['messages'], Mapping)
        and data['bundles'] is not None
    )


def _is_module(data: Any) -> bool:
    if not isinstance(data, Mapping):
        return False
    keys, messages = data.get('keys'), data.get('messages')
    return (
        isinstance(messages, list) and all(isinstance(m, str) for m in messages)
        and isinstance(keys, list) and all(isinstance(k, str) or is_localize_info(k) for k in keys)
    )


def _is_package(data: Any) -> bool:
    if not isinstance(data, Mapping):
        return False
    return all(
        isinstance(value, str)
        or (isinstance(value, Mapping) and value.get('message') is not None and 'comment' in value)
        for value in data.values()
    )


def decode_nls_json(data: Any) -> NlsJson:
    """
    Decode parsed JSON into one of the known NLS shapes.

    Shapes are tried in priority order: combined bundle, module bundle,
    package map. Anything else is Unrecognized.
    """
    if _is_bundle(data):
        return BundleJson(
            keys=dict(data['keys']),
            messages=dict(data['messages']),
            bundles=data['bundles'],
        )
    if _is_module(data):
        return ModuleJson(keys=list(data['keys']), messages=list(data['messages']))
    if _is_package(data):
        return PackageJson(entries=dict(data))
    return Unrecognized(data)


def bundle_to_key_value_pairs(
    bundle: ModuleJson,
    comment_separator: Optional[str] = None,
) -> dict[str, Any]:
    """
    Flatten a module bundle into a key/value object.

    Keys with comments become ``{"message": ..., "comment": ...}``. The
    comment is joined with ``comment_separator`` if given, otherwise kept as
    a list.
    """
    result = {}
    for key, message in zip(bundle.keys, bundle.messages):
        if isinstance(key, str):
            name, comments = key, []
        else:
            name, comments = key['key'], key.get('comment') or []

        if name in result:
            logger.warning("Duplicate key %r in message bundle, keeping the first", name)
            continue

        if comments:
            comment = comment_separator.join(comments) if comment_separator is not None else list(comments)
            result[name] = {'message': message, 'comment': comment}
        else:
            result[name] = message
    return result


class NlsJsonHandler(FormatHandler):
    """
    Handler for NLS JSON files.

    parse() and validate_content() back the ``validate`` command; the
    aggregator routes the decoded shapes itself. reconstruct() writes a
    translated ``.i18n.json`` file with the machine-generated header.
    """

    @property
    def name(self) -> str:
        return "json"

    @property
    def file_extensions(self) -> list[str]:
        return ["json"]

    def load(self, content: str) -> NlsJson:
        """Parse JSON text and decode its shape."""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}") from e
        return decode_nls_json(data)

    def parse(self, content: str) -> list[TranslationEntry]:
        """
        Parse any recognized NLS JSON shape into translation entries.

        Entries of a combined bundle carry their source file in
        ``metadata['source']``.

        Raises:
            ValueError: Invalid JSON, or a shape that cannot be deduced
        """
        shape = self.load(content)
        if isinstance(shape, BundleJson):
            pairs = [
                (source, keys, shape.messages.get(source) or [])
                for source, keys in shape.keys.items()
            ]
        elif isinstance(shape, ModuleJson):
            pairs = [(None, shape.keys, shape.messages)]
        elif isinstance(shape, PackageJson):
            pairs = [(None, shape.keys(), shape.messages())]
        else:
            raise ValueError("JSON format cannot be deduced")

        entries = []
        for source, keys, messages in pairs:
            for key, message in zip(keys, messages):
                metadata = {'key': key}
                if source is not None:
                    metadata['source'] = source
                if isinstance(key, str):
                    entries.append(TranslationEntry(id=key, text=message, metadata=metadata))
                else:
                    comments = key.get('comment') or []
                    entries.append(TranslationEntry(
                        id=key['key'],
                        text=message,
                        context='\n'.join(comments) or None,
                        metadata=metadata,
                    ))
        return entries

    def reconstruct(
        self,
        entries: list[TranslationEntry],
        translations: dict[str, str],
    ) -> str:
        """
        Render a translated ``.i18n.json`` file.

        The file lists exactly the translated keys; ``entries`` are not
        consulted.

        Returns:
            File header followed by the tab-indented JSON object
        """
        body = json.dumps(dict(translations), indent='\t', ensure_ascii=False)
        return I18N_FILE_HEADER + '\n' + body

    def create_i18n_file(self, base: str, original_path: str, messages: dict[str, str]) -> Artifact:
        """Translated JSON artifact at ``<base>/<original_path>.i18n.json``."""
        content = self.reconstruct([], messages)
        return Artifact(
            path=f"{base}/{original_path}{I18N_JSON}",
            contents=content.encode('utf-8'),
        )

    def validate_content(self, content: str) -> list[str]:
        """Validate that content is JSON of a known NLS shape."""
        try:
            shape = self.load(content)
        except ValueError as e:
            return [str(e)]
        if isinstance(shape, Unrecognized):
            return ["JSON format cannot be deduced"]
        errors = []
        if isinstance(shape, ModuleJson) and len(shape.keys) != len(shape.messages):
            errors.append(
                f"Mismatch between keys ({len(shape.keys)}) and messages ({len(shape.messages)})"
            )
        elif isinstance(shape, BundleJson):
            for source, keys in shape.keys.items():
                messages = shape.messages.get(source)
                if messages is None:
                    errors.append(f"No messages for {source}")
                elif len(keys) != len(messages):
                    errors.append(
                        f"Mismatch between keys ({len(keys)}) and messages ({len(messages)}) in {source}"
                    )
        return errors
