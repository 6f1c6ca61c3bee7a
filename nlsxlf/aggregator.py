#!/usr/bin/env python3
"""
Aggregation of source files into per-resource XLIFF documents.

Source files arrive one at a time. Each belongs to a BundleGroup (one vendor
resource); a group's document is emitted once, as soon as the number of
contributions reaches the number of files expected for it. A group whose
expected file never arrives is never emitted: there is no timeout, and a
missing output file is the signal that the inputs and the expected count
disagreed.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from .format_handlers.base import Artifact
from .format_handlers.isl import ISL_SOURCE_FILES, IslHandler
from .format_handlers.json_handler import NLS_JSON, BundleJson, ModuleJson, PackageJson
from .resources import SETUP_RESOURCE, WORKBENCH_PROJECT, ResourceClassifier
from .xliff import XliffDocument

logger = logging.getLogger(__name__)

# (extension_name, external) -> number of *.nls.json files the extension has
ExpectedCount = Callable[[str, bool], int]


class GlobExpectedCount:
    """
    Counts an extension's NLS files on disk.

    In-tree extensions live under ``<root>/extensions/<name>``; an external
    extension is the whole ``root`` tree.
    """

    def __init__(self, root: Union[str, Path] = '.'):
        self.root = Path(root)

    def __call__(self, extension_name: str, external: bool) -> int:
        base = self.root if external else self.root / 'extensions' / extension_name
        return sum(1 for _ in base.glob(f'**/*{NLS_JSON}'))


@dataclass
class BundleGroup:
    """
    Translation items collected for one vendor resource.

    Attributes:
        resource_name: Resource (or extension) name
        project_name: Vendor project
        document: XLIFF document being filled
        output_path: Path the document is emitted at
        expected_input_count: Contributions needed before emission
        received_count: Contributions so far
        emitted: Whether the document has been emitted
    """
    resource_name: str
    project_name: str
    document: XliffDocument
    output_path: str
    expected_input_count: int = 1
    received_count: int = 0
    emitted: bool = False

    @property
    def identity(self) -> str:
        return f"{self.project_name}/{self.resource_name}"


class BundleAggregator:
    """
    Routes source files to BundleGroups and emits finished XLIFF documents.

    One aggregator lives for one build run; groups are never dropped while
    it runs. Call reset() to start over.

    Args:
        expected_count: Callable giving the number of NLS files of an extension
            (defaults to counting files under the current directory)
        classifier: Resource classifier for combined bundles
        isl_sources: ISL file names that make up the setup resource
        isl_project: Vendor project of the setup resource
    """

    def __init__(
        self,
        expected_count: Optional[ExpectedCount] = None,
        classifier: Optional[ResourceClassifier] = None,
        isl_sources: tuple[str, ...] = ISL_SOURCE_FILES,
        isl_project: str = WORKBENCH_PROJECT,
    ):
        self.expected_count = expected_count or GlobExpectedCount()
        self.classifier = classifier or ResourceClassifier()
        self.isl_sources = tuple(isl_sources)
        self.isl_project = isl_project
        self._groups: dict[str, BundleGroup] = {}

    @property
    def groups(self) -> dict[str, BundleGroup]:
        """Groups by identity (``project/resource``), in creation order."""
        return dict(self._groups)

    def reset(self) -> None:
        """Forget all groups."""
        self._groups.clear()

    def _group(
        self,
        project: str,
        resource: str,
        output_path: str,
        expected: Callable[[], int],
    ) -> BundleGroup:
        identity = f"{project}/{resource}"
        group = self._groups.get(identity)
        if group is None:
            group = BundleGroup(
                resource_name=resource,
                project_name=project,
                document=XliffDocument(project),
                output_path=output_path,
                expected_input_count=expected(),
            )
            self._groups[identity] = group
            logger.debug(
                "Created group %s expecting %d input(s)", identity, group.expected_input_count
            )
        return group

    def _accepts(self, group: BundleGroup, source: str) -> bool:
        if group.emitted:
            logger.warning(
                "Ignoring %s: %s was already emitted", source, group.identity
            )
            return False
        return True

    def _contribute(self, group: BundleGroup) -> Optional[Artifact]:
        group.received_count += 1
        if group.received_count != group.expected_input_count:
            return None

        group.emitted = True
        logger.info(
            "Emitting %s (%d file(s))", group.output_path, len(group.document)
        )
        return Artifact(path=group.output_path, contents=group.document.to_bytes())

    def add_bundle_json(self, relative_path: str, bundle: BundleJson) -> list[Artifact]:
        """
        Add a combined bundle.

        A combined bundle holds every source of its resources, so each
        resource it touches is emitted once the whole payload is processed.

        Raises:
            ClassificationError: A source path matches no routing rule
        """
        touched = []
        for source, keys in bundle.keys.items():
            resource = self.classifier.classify(source)
            messages = bundle.messages.get(source)
            if messages is None:
                logger.warning("No messages for %s in %s", source, relative_path)
                messages = []

            group = self._group(
                resource.project,
                resource.name,
                f"{resource.project}/{resource.slug}.xlf",
                lambda: 1,
            )
            if not self._accepts(group, source):
                continue
            group.document.add_file(source, keys, messages)
            if group not in touched:
                touched.append(group)

        artifacts = []
        for group in touched:
            artifact = self._contribute(group)
            if artifact is not None:
                artifacts.append(artifact)
        return artifacts

    def add_module_json(
        self,
        relative_path: str,
        bundle: Union[ModuleJson, PackageJson],
        project_name: str,
        extension_name: Optional[str] = None,
    ) -> Optional[Artifact]:
        """
        Add the bundle of one extension source file.

        Args:
            relative_path: Path of the ``*.nls.json`` file. For in-tree
                extensions it is relative to the extensions folder and starts
                with the extension name.
            bundle: Decoded module bundle or package map
            project_name: Vendor project of the extension resources
            extension_name: Set for an external extension, whose files are
                relative to the extension root

        Returns:
            The extension's XLIFF artifact if this was its last expected file
        """
        source = relative_path.replace('\\', '/')
        stem = source[:-len(NLS_JSON)] if source.endswith(NLS_JSON) else source

        external = extension_name is not None
        if external:
            original = stem
        else:
            extension_name = source.split('/')[0]
            original = f"extensions/{stem}"

        group = self._group(
            project_name,
            extension_name,
            f"{project_name}/{extension_name}.xlf",
            lambda: self.expected_count(extension_name, external),
        )
        if not self._accepts(group, source):
            return None

        if isinstance(bundle, ModuleJson):
            group.document.add_file(original, bundle.keys, bundle.messages)
        else:
            group.document.add_file(original, bundle.keys(), bundle.messages())
        return self._contribute(group)

    def add_isl(self, relative_path: str, content: str) -> Optional[Artifact]:
        """
        Add one ISL source file to the setup resource.

        The original path is the relative path cut at the first ``.`` of the
        file name (``build/win32/i18n/messages.en.isl`` ->
        ``build/win32/i18n/messages``).
        """
        path = PurePosixPath(relative_path.replace('\\', '/'))
        original = str(path.parent / path.name.split('.')[0])

        entries = IslHandler().parse(content)

        group = self._group(
            self.isl_project,
            SETUP_RESOURCE,
            f"{self.isl_project}/{SETUP_RESOURCE}.xlf",
            lambda: len(self.isl_sources),
        )
        if not self._accepts(group, str(path)):
            return None

        group.document.add_file(
            original,
            [entry.id for entry in entries],
            [entry.text for entry in entries],
        )
        return self._contribute(group)
