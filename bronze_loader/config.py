"""
Configuration management for the bronze loader.

This module handles:
- Loading environment variables into a typed Config dataclass
- Resolving which manifest a run uses (YAML file or the built-in one)

The loader itself takes no runtime parameters; tables and source files
belong to the manifest. The environment only selects the backend and
where the log goes.
"""

import os
from dataclasses import dataclass

from bronze_loader.errors import ConfigError
from bronze_loader.manifest import DEFAULT_MANIFEST, Manifest, load_manifest

BACKENDS = ("duckdb", "bigquery")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """
    Application configuration loaded from environment variables.

    Supports two backends:
    - duckdb: Local development and tests
    - bigquery: Production
    """
    backend: str                        # "duckdb" or "bigquery"
    log_table: str                      # Load log table (e.g., "etl_log")
    log_format: str                     # "json" or "console"

    # Manifest
    manifest_path: str | None = None    # YAML manifest; None means the built-in one
    source_root: str | None = None      # Overrides the built-in manifest's /tmp/dss_dwh

    # DuckDB-specific configuration
    duckdb_path: str = "warehouse.duckdb"   # Path to DuckDB database file
    create_tables: bool = False         # Create missing bronze tables before loading

    # BigQuery-specific configuration
    gcp_project: str | None = None      # GCP project ID
    bq_location: str = "EU"             # Location for query and load jobs
    audit_dataset: str = "audit"        # Dataset holding the load log table

    # Metrics
    metrics_endpoint: str | None = None
    metrics_token_path: str | None = None

    @classmethod
    def from_env(cls) -> "Config":
        """
        Load configuration from environment variables.

        Optional:
            LOADER_BACKEND: "duckdb" or "bigquery" (default: duckdb)
            LOG_TABLE: Load log table (default: etl_log)
            LOG_FORMAT: "json" or "console" (default: json)
            MANIFEST_PATH: YAML manifest (default: built-in manifest)
            SOURCE_ROOT: Source directory/URI for the built-in manifest
            DUCKDB_PATH: Path to database file (default: warehouse.duckdb)
            CREATE_TABLES: Create missing bronze tables (default: false)
            GCP_PROJECT: GCP project ID (required for bigquery)
            BQ_LOCATION: BigQuery location (default: EU)
            AUDIT_DATASET: Dataset for the log table (default: audit)
            METRICS_ENDPOINT: Metrics ingest base URL
            METRICS_TOKEN_PATH: File holding the metrics API token

        Raises:
            ConfigError: If the backend is unknown or its settings are missing
        """
        config = cls(
            backend=os.environ.get("LOADER_BACKEND", "duckdb").lower(),
            log_table=os.environ.get("LOG_TABLE", "etl_log"),
            log_format=os.environ.get("LOG_FORMAT", "json").lower(),
            manifest_path=os.environ.get("MANIFEST_PATH") or None,
            source_root=os.environ.get("SOURCE_ROOT") or None,
            duckdb_path=os.environ.get("DUCKDB_PATH", "warehouse.duckdb"),
            create_tables=_env_flag("CREATE_TABLES"),
            gcp_project=os.environ.get("GCP_PROJECT") or None,
            bq_location=os.environ.get("BQ_LOCATION", "EU"),
            audit_dataset=os.environ.get("AUDIT_DATASET", "audit"),
            metrics_endpoint=os.environ.get("METRICS_ENDPOINT") or None,
            metrics_token_path=os.environ.get("METRICS_TOKEN_PATH") or None,
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.backend not in BACKENDS:
            raise ConfigError(f"Unknown LOADER_BACKEND {self.backend!r}; expected one of {BACKENDS}")
        if self.backend == "bigquery" and not self.gcp_project:
            raise ConfigError("GCP_PROJECT is required for the bigquery backend")

    def manifest(self) -> Manifest:
        """
        The manifest this configuration selects.

        Raises:
            ManifestError: If the YAML manifest is malformed
        """
        if self.manifest_path:
            return load_manifest(self.manifest_path)
        if self.source_root:
            return Manifest.default(source_root=self.source_root)
        return DEFAULT_MANIFEST
