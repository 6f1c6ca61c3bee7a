#!/usr/bin/env python3
"""
Interchange driver: the two directions of the XLIFF round trip.

prepare() takes source files (NLS JSON, ISL) and returns the XLIFF
artifacts that became complete. apply() takes a translated XLIFF document
and returns the translated JSON and ISL files it describes.
"""

import json
import logging
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from .aggregator import BundleAggregator
from .format_handlers import FormatRegistry
from .format_handlers.base import Artifact
from .format_handlers.isl import DEFAULT_ISL, IslEncodingError, IslTranscoder
from .format_handlers.json_handler import (
    I18N_JSON,
    NLS_JSON,
    BundleJson,
    ModuleJson,
    NlsJsonHandler,
    PackageJson,
    bundle_to_key_value_pairs,
)
from .languages import UnknownLanguageError, by_tag
from .xliff import parse_xliff

logger = logging.getLogger(__name__)

# ISL sources live in the installer build tree
ISL_BUILD_PREFIX = 'build/'
# The product-default ISL only exists upstream for these; others ship with Inno Setup
DEFAULT_ISL_LANGUAGES = ('zh-cn', 'zh-tw', 'ko')


class InterchangeDriver:
    """
    Dispatches files between the source formats and XLIFF.

    Args:
        aggregator: Aggregator shared by every prepare() call of the run
        project_name: Vendor project for extension resources
        extension_name: Name of an external extension, if preparing one
        source_root: Directory ISL templates are read from
        output_base: Directory prefix of translated ISL artifacts
    """

    def __init__(
        self,
        aggregator: Optional[BundleAggregator] = None,
        project_name: Optional[str] = None,
        extension_name: Optional[str] = None,
        source_root: Union[str, Path] = '.',
        output_base: str = '..',
    ):
        self.aggregator = aggregator or BundleAggregator()
        self.project_name = project_name
        self.extension_name = extension_name
        self.transcoder = IslTranscoder(source_root)
        self.output_base = output_base
        # ISL files the last apply() could not build
        self.failures: list[dict] = []

    def prepare(self, relative_path: str, content: Union[str, bytes]) -> list[Artifact]:
        """
        Feed one source file into the aggregation.

        Unrecognized JSON is logged and skipped. Files of other types are
        ignored.

        Returns:
            XLIFF artifacts completed by this file (usually none or one)
        """
        if isinstance(content, bytes):
            content = content.decode('utf-8-sig')

        if not FormatRegistry.supports(relative_path):
            logger.debug("Ignoring %s: not a JSON or ISL file", relative_path)
            return []

        handler = FormatRegistry.detect_format(relative_path)
        if handler.name == 'isl':
            artifact = self.aggregator.add_isl(relative_path, content)
            return [artifact] if artifact else []

        try:
            shape = handler.load(content)
        except ValueError as e:
            logger.error("Failed to read %s: %s", relative_path, e)
            return []

        if isinstance(shape, BundleJson):
            return self.aggregator.add_bundle_json(relative_path, shape)

        if isinstance(shape, (ModuleJson, PackageJson)):
            if self.project_name is None:
                raise ValueError(f"A project name is required to prepare {relative_path}")
            artifact = self.aggregator.add_module_json(
                relative_path, shape, self.project_name, self.extension_name
            )
            return [artifact] if artifact else []

        logger.error("JSON format cannot be deduced: %s", relative_path)
        return []

    def apply(self, content: Union[str, bytes]) -> list[Artifact]:
        """
        Turn a translated XLIFF document into translated files.

        A file whose ISL cannot be built (a character outside the code page,
        or a language without one) is logged, recorded in ``failures`` and
        skipped; the other files of the document are still produced.

        Raises:
            XliffParseError: The document is malformed (nothing is produced)
            UnknownLanguageError: A file targets an unknown language tag
        """
        if isinstance(content, bytes):
            content = content.decode('utf-8-sig')

        self.failures = []
        artifacts = []
        json_handler = NlsJsonHandler()
        for parsed in parse_xliff(content):
            language = by_tag(parsed.language)
            original = parsed.original_file_path

            if original.startswith(ISL_BUILD_PREFIX):
                if PurePosixPath(original).name == DEFAULT_ISL and parsed.language not in DEFAULT_ISL_LANGUAGES:
                    logger.debug("Skipping %s for %s", original, parsed.language)
                    continue
                try:
                    artifact = self.transcoder.build_isl(
                        self.output_base, original, parsed.messages, language
                    )
                except (IslEncodingError, UnknownLanguageError) as e:
                    logger.error("Failed to build %s for %s: %s", original, parsed.language, e)
                    self.failures.append({
                        'original': original,
                        'language': parsed.language,
                        'error': str(e),
                        'error_type': type(e).__name__,
                    })
                    continue
            else:
                artifact = json_handler.create_i18n_file(language.code, original, parsed.messages)

            artifacts.append(artifact)
        return artifacts


def create_key_value_pair_file(
    relative_path: str,
    content: Union[str, bytes],
    comment_separator: Optional[str] = None,
) -> Optional[Artifact]:
    """
    Create the ``.i18n.json`` key/value file of a ``.nls.json`` module bundle.

    Args:
        relative_path: Path of the bundle file
        content: Bundle JSON
        comment_separator: Join comments into one string with this separator;
            if omitted comments are kept as lists

    Returns:
        The key/value artifact, or None if the file is not a usable bundle
    """
    source = relative_path.replace('\\', '/')
    if not source.endswith(NLS_JSON):
        return None
    if isinstance(content, bytes):
        content = content.decode('utf-8-sig')

    shape = NlsJsonHandler().load(content)
    if not isinstance(shape, ModuleJson):
        logger.error("Not a valid JavaScript message bundle: %s", relative_path)
        return None
    if len(shape.keys) != len(shape.messages):
        logger.warning("Mismatch between keys and messages in %s, skipping", relative_path)
        return None

    pairs = bundle_to_key_value_pairs(shape, comment_separator)
    return Artifact(
        path=source[:-len(NLS_JSON)] + I18N_JSON,
        contents=json.dumps(pairs, indent='\t', ensure_ascii=False).encode('utf-8'),
    )
