#!/usr/bin/env python3
"""
nls-xlf - NLS / ISL <-> XLIFF interchange CLI

Prepares XLIFF resources for the translation vendor from NLS JSON bundles
and Inno Setup message files, and turns translated XLIFF back into
translated JSON and ISL files.

Commands:
    prepare   - Bundle source files into XLIFF resources
    apply     - Write translated files from XLIFF documents
    classify  - Show the resource of source paths
    resources - List the vendor resources of a project
    kvp       - Create key/value .i18n.json files from .nls.json bundles
    validate  - Check source files before preparing them
    languages - List supported languages

Example Workflow:
    1. nls-xlf prepare --root out-vscode --out xlf nls.metadata.json
       -> xlf/vscode-editor/vs_base.xlf, xlf/vscode-workbench/vs_code.xlf, ...

    2. nls-xlf prepare --root extensions --project vscode-extensions --out xlf git/package.nls.json ...
       -> xlf/vscode-extensions/git.xlf once every git NLS file was given

    3. [Push to the vendor, pull translated XLIFF]

    4. nls-xlf apply --out i18n translated/*.xlf
       -> i18n/chs/..., i18n/../build/win32/i18n/messages.zh-cn.isl
"""

import argparse
import codecs
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .aggregator import BundleAggregator, GlobExpectedCount
from .driver import InterchangeDriver, create_key_value_pair_file
from .format_handlers import FormatRegistry
from .format_handlers.base import Artifact
from .languages import list_languages
from .resources import DEFAULT_RULES, ResourceClassifier, load_rules, project_resources

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr, keeping stdout for JSON results."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[i18n] %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _classifier(args) -> ResourceClassifier:
    rules = load_rules(args.rules) if args.rules else DEFAULT_RULES
    return ResourceClassifier(rules)


def _write_artifacts(out_dir: Path, artifacts: list[Artifact]) -> list[str]:
    written = []
    for artifact in artifacts:
        target = out_dir / artifact.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(artifact.contents)
        written.append(str(target))
    return written


def cmd_prepare(args) -> dict:
    """Bundle source files into XLIFF resources."""
    root = Path(args.root)
    aggregator = BundleAggregator(
        expected_count=GlobExpectedCount(args.count_root),
        classifier=_classifier(args),
    )
    driver = InterchangeDriver(
        aggregator=aggregator,
        project_name=args.project,
        extension_name=args.extension,
    )

    artifacts = []
    for name in args.files:
        content = (root / name).read_bytes()
        artifacts.extend(driver.prepare(name, content))

    written = _write_artifacts(Path(args.out), artifacts)
    pending = [
        {
            "resource": group.identity,
            "received": group.received_count,
            "expected": group.expected_input_count,
        }
        for group in aggregator.groups.values()
        if not group.emitted
    ]

    return {
        "status": "ok" if not pending else "incomplete",
        "written": written,
        "pending": pending,
        "summary": f"{len(written)} XLIFF file(s) written, {len(pending)} resource(s) still waiting for input.",
    }


def cmd_apply(args) -> dict:
    """Write translated files from XLIFF documents."""
    driver = InterchangeDriver(source_root=args.source_root, output_base=args.isl_base)

    artifacts = []
    failed = []
    for name in args.files:
        artifacts.extend(driver.apply(Path(name).read_bytes()))
        failed.extend({"file": name, **failure} for failure in driver.failures)

    written = _write_artifacts(Path(args.out), artifacts)
    return {
        "status": "ok" if not failed else "partial",
        "written": written,
        "failed": failed,
        "summary": f"{len(written)} translated file(s) written, {len(failed)} failed.",
    }


def cmd_classify(args) -> dict:
    """Show the resource of each source path."""
    classifier = _classifier(args)
    resources = []
    for source in args.paths:
        resource = classifier.classify(source)
        resources.append({
            "source": source,
            "name": resource.name,
            "project": resource.project,
            "slug": resource.slug,
        })
    return {"status": "ok", "resources": resources}


def cmd_resources(args) -> dict:
    """List the vendor resources of a project."""
    resources = project_resources(args.project, args.root, _classifier(args))
    return {
        "status": "ok",
        "project": args.project,
        "resources": [
            {"name": r.name, "project": r.project, "slug": r.slug} for r in resources
        ],
        "summary": f"{len(resources)} resource(s) in {args.project}",
    }


def cmd_validate(args) -> dict:
    """Check source files before preparing them."""
    root = Path(args.root)
    results = []
    for name in args.files:
        if not FormatRegistry.supports(name):
            results.append({"file": name, "format": None, "entries": 0, "errors": ["Unsupported file type"]})
            continue

        handler = FormatRegistry.detect_format(name)
        content = (root / name).read_bytes().decode('utf-8-sig')
        errors = handler.validate_content(content)
        results.append({
            "file": name,
            "format": handler.name,
            "entries": 0 if errors else len(handler.parse(content)),
            "errors": errors,
        })

    invalid = sum(1 for r in results if r["errors"])
    return {
        "status": "ok" if not invalid else "invalid",
        "files": results,
        "summary": f"{len(results)} file(s) checked, {invalid} invalid.",
    }


def _separator(value: str) -> str:
    """Interpret backslash escapes (``\\n``, ``\\t``) in an ASCII separator."""
    if value.isascii():
        return codecs.decode(value, 'unicode_escape')
    return value


def cmd_kvp(args) -> dict:
    """Create key/value files next to module bundles."""
    root = Path(args.root)
    separator = _separator(args.separator) if args.separator else None

    artifacts = []
    for name in args.files:
        artifact = create_key_value_pair_file(name, (root / name).read_bytes(), separator)
        if artifact is not None:
            artifacts.append(artifact)

    written = _write_artifacts(Path(args.out or root), artifacts)
    return {"status": "ok", "written": written}


def cmd_languages(args) -> dict:
    """List supported languages."""
    languages = list_languages()
    return {
        "status": "ok",
        "languages": languages,
        "summary": f"{len(languages)} languages, {sum(l['core'] for l in languages)} core",
    }


# Non-zero exit codes of results that are not errors but need attention
EXIT_CODES = {
    "partial": 1,
    "invalid": 1,
    "incomplete": 2,
}

COMMANDS = {
    "prepare": cmd_prepare,
    "apply": cmd_apply,
    "classify": cmd_classify,
    "resources": cmd_resources,
    "kvp": cmd_kvp,
    "validate": cmd_validate,
    "languages": cmd_languages,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nls-xlf",
        description="nls-xlf - NLS / ISL <-> XLIFF interchange CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Combined bundle -> one XLIFF per resource
  nls-xlf prepare --root out-vscode --out xlf nls.metadata.json

  # In-tree extension files (paths relative to the extensions folder)
  nls-xlf prepare --root extensions --count-root . --project vscode-extensions --out xlf \\
      git/package.nls.json git/out/main.nls.json

  # Check files first
  nls-xlf validate extensions/git/package.nls.json build/win32/i18n/Default.isl

  # Installer messages
  nls-xlf prepare --out xlf build/win32/i18n/Default.isl build/win32/i18n/messages.en.isl

  # Translated XLIFF -> JSON / ISL
  nls-xlf apply --out i18n vscode-workbench_setup_zh-cn.xlf

  # Custom routing rules
  nls-xlf classify --rules rules.yaml vs/editor/contrib/find/findWidget
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--rules", "-r", help="YAML file with resource routing rules")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    prepare_parser = subparsers.add_parser("prepare", help="Bundle source files into XLIFF")
    prepare_parser.add_argument("files", nargs="+", help="Source files, relative to --root")
    prepare_parser.add_argument("--root", default=".", help="Directory the files are relative to")
    prepare_parser.add_argument("--count-root", default=".", help="Directory extension NLS files are counted in (default: .)")
    prepare_parser.add_argument("--project", "-p", help="Vendor project for extension files")
    prepare_parser.add_argument("--extension", "-e", help="External extension name")
    prepare_parser.add_argument("--out", "-o", default=".", help="Output directory")

    apply_parser = subparsers.add_parser("apply", help="Write translated files from XLIFF")
    apply_parser.add_argument("files", nargs="+", help="Translated XLIFF files")
    apply_parser.add_argument("--out", "-o", default=".", help="Output directory")
    apply_parser.add_argument("--source-root", default=".", help="Directory ISL templates are read from")
    apply_parser.add_argument("--isl-base", default="..", help="Output prefix for ISL files (default: ..)")

    classify_parser = subparsers.add_parser("classify", help="Show the resource of source paths")
    classify_parser.add_argument("paths", nargs="+", help="Logical source paths")

    resources_parser = subparsers.add_parser("resources", help="List the resources of a project")
    resources_parser.add_argument("project", help="vscode-editor-workbench or vscode-extensions")
    resources_parser.add_argument("--root", default=".", help="Repository root")

    kvp_parser = subparsers.add_parser("kvp", help="Create key/value .i18n.json files")
    kvp_parser.add_argument("files", nargs="+", help=".nls.json files, relative to --root")
    kvp_parser.add_argument("--root", default=".", help="Directory the files are relative to")
    kvp_parser.add_argument("--out", "-o", help="Output directory (default: --root)")
    kvp_parser.add_argument("--separator", "-s", help="Join comments with this separator (e.g. '\\n')")

    validate_parser = subparsers.add_parser("validate", help="Check source files before preparing them")
    validate_parser.add_argument("files", nargs="+", help="Source files, relative to --root")
    validate_parser.add_argument("--root", default=".", help="Directory the files are relative to")

    subparsers.add_parser("languages", help="List supported languages")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.verbose)

    try:
        result = COMMANDS[args.command](args)
        print(json.dumps(result, indent=2, ensure_ascii=False))
    except Exception as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(json.dumps({
            "status": "error",
            "error": str(e),
            "error_type": type(e).__name__,
        }), file=sys.stderr)
        sys.exit(1)

    exit_code = EXIT_CODES.get(result.get("status"))
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
