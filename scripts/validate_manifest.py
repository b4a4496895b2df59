#!/usr/bin/env python3
"""Validate bronze load manifest YAML files.

This script loads every manifest in the manifests directory and runs the
same checks the loader runs at startup: well-formed entries, valid
schema/table identifiers, non-empty source paths and no duplicate targets.

Usage:
    python scripts/validate_manifest.py                    # Validate all manifests
    python scripts/validate_manifest.py manifests/bronze.yaml
    python scripts/validate_manifest.py --check-sources    # Also look for the files
"""

import argparse
import sys
from pathlib import Path

import yaml

from bronze_loader.errors import ManifestError
from bronze_loader.manifest import Manifest, load_manifest


def validate_file(path: Path, check_sources: bool) -> tuple[Manifest | None, list[str], list[str]]:
    """Load one manifest.

    Args:
        path: Manifest YAML file
        check_sources: Warn about local source paths that don't exist

    Returns:
        Tuple of (manifest or None, errors, warnings)
    """
    try:
        manifest = load_manifest(str(path))
    except ManifestError as e:
        return None, e.problems, []
    except yaml.YAMLError as e:
        return None, [f"Invalid YAML: {e}"], []

    warnings = []
    if not len(manifest):
        warnings.append("manifest has no entries")

    if check_sources:
        # The engine reads the files, so a missing local path is only a warning
        for entry in manifest:
            if "://" in entry.source_path:
                continue
            if not Path(entry.source_path).exists():
                warnings.append(f"{entry.qualified_name}: {entry.source_path} not found locally")

    return manifest, [], warnings


def main():
    parser = argparse.ArgumentParser(description="Validate bronze load manifest YAML files")
    parser.add_argument(
        "paths",
        nargs="*",
        help="Manifest files to validate (default: every YAML file in --manifest-dir)"
    )
    parser.add_argument(
        "--manifest-dir",
        default="manifests",
        help="Directory containing manifests (default: manifests)"
    )
    parser.add_argument(
        "--check-sources",
        action="store_true",
        help="Warn about source files missing from the local filesystem"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings as errors"
    )
    args = parser.parse_args()

    if args.paths:
        manifest_files = [Path(p) for p in args.paths]
    else:
        manifest_dir = Path(args.manifest_dir)
        if not manifest_dir.exists():
            print(f"❌ Manifest directory not found: {manifest_dir}")
            sys.exit(1)
        manifest_files = sorted(manifest_dir.rglob("*.yaml"))

    if not manifest_files:
        print("❌ No manifest files found")
        sys.exit(1)

    print(f"Validating {len(manifest_files)} manifest(s)...\n")

    all_valid = True
    for manifest_path in manifest_files:
        if not manifest_path.exists():
            all_valid = False
            print(f"❌ {manifest_path}: file not found")
            continue

        manifest, errors, warnings = validate_file(manifest_path, args.check_sources)
        if args.strict:
            errors = errors + warnings

        if errors:
            all_valid = False
            print(f"❌ {manifest_path}")
            for error in errors:
                print(f"   - {error}")
        else:
            print(f"✓ {manifest_path} ({len(manifest)} entries)")
            for warning in warnings:
                print(f"   ⚠ {warning}")

    print()
    if all_valid:
        print("✓ All manifests are valid")
        sys.exit(0)
    else:
        print("❌ Some manifests have errors")
        sys.exit(1)


if __name__ == "__main__":
    main()
