"""
Bronze Loader - full-refresh batch loading of raw files into the bronze layer.

Every run clears and reloads each table in the manifest from its source
file and appends one record per table to the load log (etl_log).

Usage:
    python -m bronze_loader

Environment Variables:
    LOADER_BACKEND: "duckdb" or "bigquery" (default: duckdb)
    MANIFEST_PATH: YAML manifest (default: built-in bronze manifest)
    DUCKDB_PATH: DuckDB database file (default: warehouse.duckdb)
    LOG_TABLE: Load log table (default: etl_log)
"""

__version__ = "0.1.0"
