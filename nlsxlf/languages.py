#!/usr/bin/env python3
"""
Language table shared by the XLIFF, JSON and ISL code paths.

Three identifiers are in play for every language:

- the internal 3-letter code used for output folders (``chs``, ``kor``)
- the short tag the translation vendor uses (``zh-cn``, ``ko``)
- the legacy Windows code page Inno Setup needs for ISL files (``CP936``)
"""

from dataclasses import dataclass
from typing import Optional


class UnknownLanguageError(ValueError):
    """Raised when a language code or tag is not in the table."""


@dataclass(frozen=True)
class Language:
    """
    One supported language.

    Attributes:
        code: Internal 3-letter code (``chs``)
        tag: Vendor tag, lower-cased (``zh-cn``)
        name: English display name used in ISL files
        language_id: Inno Setup ``LanguageID`` value
        code_page: Legacy code page for ISL output, None if ISL is not produced
    """
    code: str
    tag: str
    name: str
    language_id: Optional[str] = None
    code_page: Optional[str] = None

    @property
    def code_page_number(self) -> Optional[str]:
        """Code page without its ``CP`` prefix, as written to ``LanguageCodePage``."""
        if self.code_page is None:
            return None
        return self.code_page[2:] if self.code_page.upper().startswith('CP') else self.code_page


LANGUAGES = (
    Language('chs', 'zh-cn', 'Simplified Chinese', '$0804', 'CP936'),
    Language('cht', 'zh-tw', 'Traditional Chinese', '$0404', 'CP950'),
    Language('csy', 'cs-cz', 'Czech'),
    Language('deu', 'de', 'German', '$0407', 'CP1252'),
    Language('enu', 'en', 'English', '$0409', 'CP1252'),
    Language('esn', 'es', 'Spanish', '$0C0A', 'CP1252'),
    Language('fra', 'fr', 'French', '$040C', 'CP1252'),
    Language('hun', 'hu', 'Hungarian'),
    Language('ita', 'it', 'Italian', '$0410', 'CP1252'),
    Language('jpn', 'ja', 'Japanese', '$0411', 'CP932'),
    Language('kor', 'ko', 'Korean', '$0412', 'CP949'),
    Language('nld', 'nl', 'Dutch'),
    Language('plk', 'pl', 'Polish'),
    Language('ptb', 'pt-br', 'Brazilian Portuguese'),
    Language('ptg', 'pt', 'Portuguese'),
    Language('rus', 'ru', 'Russian', '$0419', 'CP1251'),
    Language('sve', 'sv-se', 'Swedish'),
    Language('trk', 'tr', 'Turkish'),
)

# Languages the product ships translations for.
CORE_LANGUAGES = ('chs', 'cht', 'jpn', 'kor', 'deu', 'fra', 'esn', 'rus', 'ita')

_BY_CODE = {language.code: language for language in LANGUAGES}
_BY_TAG = {language.tag: language for language in LANGUAGES}


def by_code(code: str) -> Language:
    """Look up a language by its internal 3-letter code."""
    try:
        return _BY_CODE[code.lower()]
    except KeyError:
        raise UnknownLanguageError(f"Unknown language code: {code}") from None


def by_tag(tag: str) -> Language:
    """Look up a language by its vendor tag (case-insensitive)."""
    try:
        return _BY_TAG[tag.lower()]
    except KeyError:
        raise UnknownLanguageError(f"Unknown language tag: {tag}") from None


def list_languages() -> list[dict]:
    """List all languages as plain dicts (for the CLI)."""
    return [
        {
            'code': language.code,
            'tag': language.tag,
            'name': language.name,
            'core': language.code in CORE_LANGUAGES,
            'code_page': language.code_page,
        }
        for language in LANGUAGES
    ]
