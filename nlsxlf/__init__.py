"""
nlsxlf - NLS / ISL <-> XLIFF 1.2 interchange for localization builds

Bundles extracted NLS message files and Inno Setup message files into
XLIFF resources for a translation vendor, and turns translated XLIFF back
into translated JSON and ISL files.

Quick start:
    nls-xlf prepare --root out-vscode --out xlf nls.metadata.json
    nls-xlf apply --out i18n translated.xlf
"""

__version__ = "1.0.0"

from .aggregator import BundleAggregator, BundleGroup, GlobExpectedCount
from .driver import InterchangeDriver, create_key_value_pair_file
from .entities import encode_entities
from .format_handlers import Artifact, IslEncodingError, IslTranscoder, build_isl
from .languages import UnknownLanguageError
from .resources import ClassificationError, Resource, ResourceClassifier, get_resource
from .xliff import ParsedTranslationFile, TranslationItem, XliffDocument, XliffParseError, parse_xliff

__all__ = [
    "Artifact",
    "BundleAggregator",
    "BundleGroup",
    "ClassificationError",
    "GlobExpectedCount",
    "InterchangeDriver",
    "IslEncodingError",
    "IslTranscoder",
    "ParsedTranslationFile",
    "Resource",
    "ResourceClassifier",
    "TranslationItem",
    "UnknownLanguageError",
    "XliffDocument",
    "XliffParseError",
    "build_isl",
    "create_key_value_pair_file",
    "encode_entities",
    "get_resource",
    "parse_xliff",
]
