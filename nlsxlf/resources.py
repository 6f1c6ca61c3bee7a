#!/usr/bin/env python3
"""
Resource classification: which vendor resource a source file belongs to.

Source files are routed by ordered prefix rules over their logical,
forward-slash-delimited path. The first matching rule wins, so more
specific prefixes must come before the prefixes they extend
(``vs/editor/contrib`` before ``vs/editor``).
"""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

logger = logging.getLogger(__name__)

EDITOR_PROJECT = 'vscode-editor'
WORKBENCH_PROJECT = 'vscode-workbench'
EDITOR_WORKBENCH_PROJECT = 'vscode-editor-workbench'
EXTENSIONS_PROJECT = 'vscode-extensions'

SETUP_RESOURCE = 'setup'
METADATA_FILE = 'out-vscode/nls.metadata.json'


class ClassificationError(ValueError):
    """Raised when a source path matches no routing rule."""


@dataclass(frozen=True)
class Resource:
    """A vendor resource: a named bundle inside a vendor project."""
    name: str
    project: str

    @property
    def slug(self) -> str:
        """Vendor-facing identifier (slashes are not allowed in slugs)."""
        return self.name.replace('/', '_')


@dataclass(frozen=True)
class RoutingRule:
    """
    One prefix rule.

    Attributes:
        prefix: Leading path segments to match (``vs/workbench/parts``)
        project: Vendor project the resource lives in
        depth: If set, the resource name is the first ``depth`` segments of
            the source path instead of the prefix itself
    """
    prefix: str
    project: str
    depth: Optional[int] = None

    def matches(self, source: str) -> bool:
        return source == self.prefix or source.startswith(self.prefix + '/')

    def resource_for(self, source: str) -> Resource:
        if self.depth:
            name = '/'.join(source.split('/')[:self.depth])
        else:
            name = self.prefix
        return Resource(name=name, project=self.project)


DEFAULT_RULES = (
    RoutingRule('vs/platform', EDITOR_PROJECT),
    RoutingRule('vs/editor/contrib', EDITOR_PROJECT),
    RoutingRule('vs/editor', EDITOR_PROJECT),
    RoutingRule('vs/base', EDITOR_PROJECT),
    RoutingRule('vs/code', WORKBENCH_PROJECT),
    # One resource per second-level module for the large component trees
    RoutingRule('vs/workbench/parts', WORKBENCH_PROJECT, depth=4),
    RoutingRule('vs/workbench/services', WORKBENCH_PROJECT, depth=4),
    RoutingRule('vs/workbench', WORKBENCH_PROJECT),
)


class ResourceClassifier:
    """Maps source paths to resources using ordered routing rules."""

    def __init__(self, rules: Iterable[RoutingRule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def classify(self, source: str) -> Resource:
        """
        Find the resource a source file belongs to.

        Args:
            source: Logical path such as ``vs/editor/contrib/find/findWidget``

        Returns:
            The matching Resource

        Raises:
            ClassificationError: No rule matches the path
        """
        normalized = source.replace('\\', '/')
        for rule in self.rules:
            if rule.matches(normalized):
                return rule.resource_for(normalized)

        raise ClassificationError(f"Could not identify the XLF bundle for {source}")

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'ResourceClassifier':
        """Create a classifier from a YAML rules file. See load_rules."""
        return cls(load_rules(path))


def get_resource(source: str) -> Resource:
    """Classify a source path with the default rules."""
    return ResourceClassifier().classify(source)


def load_rules(path: Union[str, Path]) -> list[RoutingRule]:
    """
    Load routing rules from a YAML file.

    Expected structure:
    ```yaml
    rules:
      - prefix: vs/platform
        project: vscode-editor
      - prefix: vs/workbench/parts
        project: vscode-workbench
        depth: 4
    ```

    Raises:
        ValueError: The file is not valid YAML or a rule is malformed
    """
    content = Path(path).read_text(encoding='utf-8')
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in rules file {path}: {e}") from e

    if not isinstance(data, Mapping) or not isinstance(data.get('rules'), list):
        raise ValueError(f"Rules file {path} must contain a 'rules' list")

    rules = []
    for i, raw in enumerate(data['rules']):
        if not isinstance(raw, Mapping) or not raw.get('prefix') or not raw.get('project'):
            raise ValueError(f"Rule {i} in {path} needs 'prefix' and 'project'")
        depth = raw.get('depth')
        if depth is not None and (not isinstance(depth, int) or depth < 1):
            raise ValueError(f"Rule {i} in {path} has invalid depth: {depth!r}")
        rules.append(RoutingRule(
            prefix=str(raw['prefix']).rstrip('/'),
            project=str(raw['project']),
            depth=depth,
        ))

    logger.debug("Loaded %d routing rule(s) from %s", len(rules), path)
    return rules


def metadata_resources(
    metadata: Mapping,
    classifier: Optional[ResourceClassifier] = None,
) -> list[Resource]:
    """
    Unique resources of every source listed in a combined bundle.

    Args:
        metadata: Parsed combined bundle (``{"keys": {source: [...]}, ...}``)
        classifier: Classifier to use (default rules if omitted)

    Returns:
        Resources in first-seen order
    """
    classifier = classifier or ResourceClassifier()
    resources = []
    for source in metadata.get('keys', {}):
        resource = classifier.classify(source)
        if resource not in resources:
            resources.append(resource)
    return resources


def extension_names(root: Union[str, Path]) -> list[str]:
    """Names of the extensions under ``<root>/extensions`` that ship NLS files."""
    extensions_dir = Path(root) / 'extensions'
    names = []
    for nls_file in sorted(extensions_dir.glob('**/*.nls.json')):
        name = nls_file.relative_to(extensions_dir).parts[0]
        if name not in names:
            names.append(name)
    return names


def project_resources(
    project_name: str,
    root: Union[str, Path] = '.',
    classifier: Optional[ResourceClassifier] = None,
) -> list[Resource]:
    """
    All vendor resources of a project, as needed to pull its translations.

    Args:
        project_name: ``vscode-editor-workbench`` or ``vscode-extensions``
        root: Repository root to read metadata/extensions from

    Raises:
        ValueError: Unknown project name
    """
    if project_name == EDITOR_WORKBENCH_PROJECT:
        metadata_path = Path(root) / METADATA_FILE
        metadata = json.loads(metadata_path.read_text(encoding='utf-8'))
        resources = metadata_resources(metadata, classifier)
        resources.append(Resource(name=SETUP_RESOURCE, project=WORKBENCH_PROJECT))
        return resources

    if project_name == EXTENSIONS_PROJECT:
        return [Resource(name=name, project=project_name) for name in extension_names(root)]

    raise ValueError(
        f"Unknown project: {project_name}. "
        f"Available: {EDITOR_WORKBENCH_PROJECT}, {EXTENSIONS_PROJECT}"
    )
