"""
Load manifest for the bronze layer.

A manifest is the fixed, ordered list of (schema, table, source file)
entries that one run loads. It is configuration, not runtime state:
the same manifest produces the same sequence of entries every run.

Manifests can be built three ways:
- The built-in DEFAULT_MANIFEST (the fourteen raw census tables)
- From legacy "schema.table:/path/to/file.csv" strings
- From a YAML file (see load_manifest for the accepted formats)

All of them are validated before a run starts. Malformed entries raise
ManifestError at startup rather than failing mid-run.
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import yaml

from bronze_loader.errors import ManifestError


IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_SOURCE_ROOT = "/tmp/dss_dwh"

# (table, source filename) in load order; every table lives in the bronze schema
_DEFAULT_TABLES = [
    ("individuals", "individual.csv"),
    ("death", "death.csv"),
    ("inmigration", "inmigration.csv"),
    ("location", "location.csv"),
    ("locationhierarchy", "locationhierarchy.csv"),
    ("locationhierarchylevel", "locationhierarchylevel.csv"),
    ("pregnancyoutcome_outcome", "pregnancyoutcome_outcome.csv"),
    ("outmigration", "outmigration.csv"),
    ("pregnancyobservation", "pregnancyobservation.csv"),
    ("pregnancyoutcome", "pregnancyoutcome.csv"),
    ("relationship", "relationship.csv"),
    ("residency", "residency.csv"),
    ("socialgroup", "socialgroup.csv"),
    ("outcome", "outcome.csv"),
]


@dataclass(frozen=True)
class LoadEntry:
    """One unit of work: load source_path into schema.table."""
    schema: str        # Destination namespace (e.g., "bronze")
    table: str         # Destination table (e.g., "location")
    source_path: str   # File location as seen by the storage engine

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table}"


def join_source(root: str | None, source: str) -> str:
    """
    Prefix a relative source location with a root directory or URI.

    Absolute paths and gs:// URIs are returned unchanged.
    """
    if not root or source.startswith("/") or "://" in source:
        return source
    if "://" in root:
        return f"{root.rstrip('/')}/{source}"
    return str(PurePosixPath(root) / source)


def parse_entry(text: str, source_root: str | None = None) -> LoadEntry:
    """
    Parse a legacy "schema.table:path" string into a LoadEntry.

    Only the first colon separates the target from the path, so URIs
    such as "bronze.death:gs://bucket/death.csv" keep their scheme.

    Raises:
        ManifestError: If the string is not of the expected shape
    """
    target, sep, source = text.partition(":")
    if not sep:
        raise ManifestError([f"{text!r}: expected 'schema.table:path'"])

    parts = target.strip().split(".")
    if len(parts) != 2:
        raise ManifestError([f"{text!r}: target must be 'schema.table'"])

    schema, table = parts
    return LoadEntry(
        schema=schema,
        table=table,
        source_path=join_source(source_root, source.strip()),
    )


def validate_manifest(entries: Iterable[LoadEntry]) -> None:
    """
    Check a sequence of entries for configuration errors.

    Checks:
    - schema and table are plain SQL identifiers
    - source_path is not empty
    - no schema.table pair appears twice

    Raises:
        ManifestError: Listing every problem found
    """
    problems = []
    seen = set()

    for position, entry in enumerate(entries, start=1):
        label = f"entry {position} ({entry.qualified_name})"

        for field_name in ("schema", "table"):
            value = getattr(entry, field_name)
            if not isinstance(value, str) or not IDENTIFIER.match(value):
                problems.append(f"{label}: invalid {field_name} {value!r}")

        if not isinstance(entry.source_path, str) or not entry.source_path.strip():
            problems.append(f"{label}: source path is empty")

        key = (entry.schema, entry.table)
        if key in seen:
            problems.append(f"{label}: duplicate target {entry.qualified_name}")
        seen.add(key)

    if problems:
        raise ManifestError(problems)


class Manifest:
    """
    Immutable, validated, ordered sequence of LoadEntry.

    Supports len(), iteration and indexing. Construction validates the
    entries, so a Manifest that exists is always well-formed.
    """

    def __init__(self, entries: Iterable[LoadEntry]):
        entries = tuple(entries)
        validate_manifest(entries)
        self._entries = entries

    @classmethod
    def from_strings(cls, lines: Iterable[str], source_root: str | None = None) -> "Manifest":
        """Build a manifest from legacy "schema.table:path" strings."""
        return cls(parse_entry(line, source_root) for line in lines)

    @classmethod
    def default(cls, source_root: str = DEFAULT_SOURCE_ROOT) -> "Manifest":
        """The bronze census manifest, with sources under source_root."""
        return cls(
            LoadEntry("bronze", table, join_source(source_root, filename))
            for table, filename in _DEFAULT_TABLES
        )

    @property
    def entries(self) -> tuple[LoadEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LoadEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> LoadEntry:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"Manifest({len(self._entries)} entries)"


DEFAULT_MANIFEST = Manifest.default()


def _entry_from_item(item, source_root: str | None, position: int) -> LoadEntry:
    """Convert one YAML list item (string or mapping) into a LoadEntry."""
    if isinstance(item, str):
        return parse_entry(item, source_root)

    if not isinstance(item, dict):
        raise ManifestError([f"entry {position}: expected a string or mapping, got {type(item).__name__}"])

    source = item.get("source", item.get("source_path"))
    missing = [k for k, v in (("schema", item.get("schema")), ("table", item.get("table")), ("source", source)) if v is None]
    if missing:
        raise ManifestError([f"entry {position}: missing {', '.join(missing)}"])

    return LoadEntry(
        schema=str(item["schema"]),
        table=str(item["table"]),
        source_path=join_source(source_root, str(source)),
    )


def load_manifest(path: str) -> Manifest:
    """
    Load and validate a manifest from a YAML file.

    Args:
        path: Path to the manifest YAML file

    Returns:
        Validated Manifest, entries in file order

    Raises:
        ManifestError: If the file is empty, has the wrong shape, or
            contains invalid entries

    Example YAML formats:

        # Plain list of legacy strings
        - bronze.location:/tmp/dss_dwh/location.csv
        - bronze.death:/tmp/dss_dwh/death.csv

        # Mapping with a shared root for relative sources
        source_root: gs://census-landing/bronze
        entries:
          - schema: bronze
            table: location
            source: location.csv
          - bronze.death:death.csv
    """
    raw = yaml.safe_load(Path(path).read_text())

    source_root = None
    if isinstance(raw, dict):
        source_root = raw.get("source_root")
        if source_root is not None and not isinstance(source_root, str):
            raise ManifestError([f"{path}: source_root must be a string"])
        items = raw.get("entries")
    else:
        items = raw

    if items is None:
        items = []
    if not isinstance(items, list):
        raise ManifestError([f"{path}: entries must be a list"])

    return Manifest(
        _entry_from_item(item, source_root, position)
        for position, item in enumerate(items, start=1)
    )
