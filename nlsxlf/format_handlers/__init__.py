#!/usr/bin/env python3
"""
Format handlers for the files that feed the XLIFF pipeline.

Supported formats:
- JSON: NLS message bundles (*.nls.json, package.nls.json, combined bundles)
- ISL: Inno Setup installer message files
"""

from .base import (
    Artifact,
    FormatHandler,
    FormatRegistry,
    TranslationEntry,
)
from .isl import IslEncodingError, IslHandler, IslTranscoder, build_isl
from .json_handler import (
    BundleJson,
    ModuleJson,
    NlsJsonHandler,
    PackageJson,
    Unrecognized,
    decode_nls_json,
)

# Register handlers (order matters for extension conflicts)
FormatRegistry.register(NlsJsonHandler)
FormatRegistry.register(IslHandler)

__all__ = [
    'Artifact',
    'FormatHandler',
    'FormatRegistry',
    'TranslationEntry',
    'NlsJsonHandler',
    'IslHandler',
    'IslTranscoder',
    'IslEncodingError',
    'build_isl',
    'BundleJson',
    'ModuleJson',
    'PackageJson',
    'Unrecognized',
    'decode_nls_json',
]
