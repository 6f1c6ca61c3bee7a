#!/usr/bin/env python3
"""
Inno Setup message file (.isl) handler and transcoder.

ISL files are INI-style:
```
; *** Inno Setup version 5.5.3+ English messages ***
[LangOptions]
LanguageName=English
LanguageID=$0409
LanguageCodePage=0
[Messages]
SetupAppTitle=Setup
```

Only ``[Messages]`` and ``[CustomMessages]`` hold translatable text.
Translated files are rebuilt from the English template and must be saved
in the language's legacy code page, which Inno Setup expects.
"""

import logging
import re
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from ..languages import Language, UnknownLanguageError, by_code
from .base import Artifact, FormatHandler, TranslationEntry

logger = logging.getLogger(__name__)

MESSAGE_SECTIONS = ('[Messages]', '[CustomMessages]')
METADATA_KEYS = ('LanguageName', 'LanguageID', 'LanguageCodePage')
ENGLISH_BANNER = '; *** Inno Setup version 5.5.3+ English messages ***'
BANNER_TEMPLATE = '; *** Inno Setup version 5.5.3+ {name} messages ***'
LINE_SEPARATOR = '\r\n'

# File name of the product-default messages; every other ISL has an .en.isl template
DEFAULT_ISL = 'Default'
ISL_SOURCE_FILES = ('Default.isl', 'messages.en.isl')

_LINE_BREAK = re.compile(r'\r\n|\r|\n')


class IslEncodingError(ValueError):
    """Raised when translated text cannot be represented in the target code page."""


class IslHandler(FormatHandler):
    """
    Handler for Inno Setup .isl files.

    parse() extracts the message-section entries and remembers the template
    lines; reconstruct() walks those lines again, substituting translations
    and, when the handler has a language, the locale metadata.
    """

    def __init__(self, language: Optional[Language] = None):
        self.language = language
        self._template_lines: list[str] = []

    @property
    def name(self) -> str:
        return "isl"

    @property
    def file_extensions(self) -> list[str]:
        return ["isl"]

    def parse(self, content: str) -> list[TranslationEntry]:
        """
        Parse ISL content into translatable entries.

        Lines outside the message sections are never translatable, even if
        they contain ``=``.
        """
        self._template_lines = _LINE_BREAK.split(content)

        entries = []
        section = None
        for line in self._template_lines:
            if not line or line.startswith(';'):
                continue
            if line.startswith('['):
                section = line if line in MESSAGE_SECTIONS else None
                continue
            if section is None:
                continue

            key, sep, value = line.partition('=')
            if not sep:
                logger.warning("Badly formatted message found: %s", line)
                continue
            if key and value:
                entries.append(TranslationEntry(id=key, text=value, metadata={'section': section}))

        return entries

    def _metadata_value(self, key: str) -> str:
        language = self.language
        if key == 'LanguageName':
            return language.name
        if key == 'LanguageID':
            if language.language_id is None:
                raise UnknownLanguageError(f"No Inno Setup LanguageID for {language.code}")
            return language.language_id
        if language.code_page_number is None:
            raise UnknownLanguageError(f"No code page for {language.code}")
        return language.code_page_number

    def reconstruct(
        self,
        entries: list[TranslationEntry],
        translations: dict[str, str],
    ) -> str:
        """
        Rebuild the parsed template with translations applied.

        Untranslated keys keep their original line. Output lines are joined
        with CRLF.
        """
        lines = []
        for line in self._template_lines:
            if not line or line[0] in '[;':
                if line == ENGLISH_BANNER and self.language is not None:
                    line = BANNER_TEMPLATE.format(name=self.language.name)
                lines.append(line)
                continue

            key = line.split('=', 1)[0]
            if key in METADATA_KEYS and self.language is not None:
                line = f"{key}={self._metadata_value(key)}"
            else:
                translated = translations.get(key)
                if translated:
                    line = f"{key}={translated}"
            lines.append(line)

        return LINE_SEPARATOR.join(lines)

    def encode(self, text: str) -> bytes:
        """
        Encode text into the handler language's code page.

        Raises:
            UnknownLanguageError: The language has no code page
            IslEncodingError: A character is not representable
        """
        if self.language is None or self.language.code_page is None:
            code = self.language.code if self.language else None
            raise UnknownLanguageError(f"No code page for language {code}")
        try:
            return text.encode(self.language.code_page.lower())
        except UnicodeEncodeError as e:
            raise IslEncodingError(
                f"Cannot encode {text[e.start:e.end]!r} in {self.language.code_page} "
                f"for {self.language.name}"
            ) from e

    def validate_content(self, content: str) -> list[str]:
        errors = []
        section = None
        for number, line in enumerate(_LINE_BREAK.split(content), 1):
            if not line or line.startswith(';'):
                continue
            if line.startswith('['):
                section = line if line in MESSAGE_SECTIONS else None
            elif section is not None and '=' not in line:
                errors.append(f"Line {number}: badly formatted message: {line}")
        return errors


def isl_template_path(original_path: str) -> str:
    """Neutral-language template for an ISL original path (without extension)."""
    if PurePosixPath(original_path).name == DEFAULT_ISL:
        return original_path + '.isl'
    return original_path + '.en.isl'


class IslTranscoder:
    """
    Builds translated ISL files from their English templates.

    Args:
        source_root: Directory the template paths are relative to
    """

    def __init__(self, source_root: Union[str, Path] = '.'):
        self.source_root = Path(source_root)

    def transcode(self, template: str, messages: dict[str, str], language: Language) -> bytes:
        """Apply translations and locale metadata to template text and encode it."""
        handler = IslHandler(language)
        entries = handler.parse(template)
        return handler.encode(handler.reconstruct(entries, messages))

    def build_isl(
        self,
        base_path: str,
        original_path: str,
        messages: dict[str, str],
        language: Union[str, Language],
    ) -> Artifact:
        """
        Build the translated ISL artifact for one original file.

        Args:
            base_path: Output directory prefix
            original_path: Logical path without extension (``build/win32/i18n/messages``)
            messages: Translated messages by key
            language: Language or its internal 3-letter code

        Returns:
            Artifact at ``<base>/<dir>/<name>.<tag>.isl``
        """
        if isinstance(language, str):
            language = by_code(language)

        template_file = self.source_root / isl_template_path(original_path)
        template = template_file.read_text(encoding='utf-8-sig')
        contents = self.transcode(template, messages, language)

        original = PurePosixPath(original_path)
        out_path = PurePosixPath(base_path) / original.parent / f"{original.name}.{language.tag}.isl"
        logger.info("Built %s (%s)", out_path, language.code_page)
        return Artifact(path=str(out_path), contents=contents)


def build_isl(
    base_path: str,
    original_path: str,
    messages: dict[str, str],
    language: Union[str, Language],
    source_root: Union[str, Path] = '.',
) -> Artifact:
    """Build one translated ISL artifact. See IslTranscoder.build_isl."""
    return IslTranscoder(source_root).build_isl(base_path, original_path, messages, language)
