"""
Bronze loader entry point.

Runs one full refresh of the bronze layer:
1. Load configuration and the manifest (startup errors stop here)
2. Connect the bulk-load engine and the load log
3. Load every manifest entry, one log record each
4. Push run metrics

A run in which some entries failed is still a completed run and exits 0;
the failures are in the load log. Exit code 1 means the run itself
could not start or was aborted.
"""

import sys

import structlog

from bronze_loader.audit import BigQueryLogSink, DuckDBLogSink, LogSink
from bronze_loader.batch import BatchLoader
from bronze_loader.config import Config
from bronze_loader.ddl import create_bronze_tables
from bronze_loader.engine import BigQueryEngine, BulkLoadEngine, DuckDBEngine
from bronze_loader.errors import BronzeLoaderError
from bronze_loader.logs import configure_logging
from bronze_loader.metrics import MetricsClient

log = structlog.get_logger()


def create_components(config: Config) -> tuple[BulkLoadEngine, LogSink]:
    """Build the engine and log sink for the configured backend."""
    if config.backend == "bigquery":
        from google.cloud import bigquery

        client = bigquery.Client(project=config.gcp_project, location=config.bq_location)
        engine = BigQueryEngine(config.gcp_project, config.bq_location, client=client)
        sink = BigQueryLogSink(
            client,
            f"{config.gcp_project}.{config.audit_dataset}.{config.log_table}",
        )
        return engine, sink

    engine = DuckDBEngine(config.duckdb_path)
    try:
        if config.create_tables:
            create_bronze_tables(engine.conn)
        sink = DuckDBLogSink(engine.conn, config.log_table)
    except Exception:
        engine.close()
        raise
    return engine, sink


def main() -> int:
    """Run the batch. Takes no arguments; see Config.from_env."""
    try:
        config = Config.from_env()
    except BronzeLoaderError as e:
        configure_logging()
        log.error("load_aborted", stage="config", error=str(e))
        return 1

    configure_logging(config.log_format)

    try:
        manifest = config.manifest()
        engine, sink = create_components(config)
    except Exception as e:
        log.error(
            "load_aborted",
            stage="startup",
            error=str(e),
            error_type=type(e).__name__,
            backend=config.backend,
        )
        return 1

    log.info(
        "configuration_loaded",
        backend=config.backend,
        manifest=config.manifest_path or "built-in",
        entries=len(manifest),
    )

    try:
        summary = BatchLoader(manifest, engine, sink).run()
    except Exception as e:
        log.exception("load_aborted", stage="run", error=str(e), error_type=type(e).__name__)
        return 1
    finally:
        if isinstance(engine, DuckDBEngine):
            engine.close()

    metrics = MetricsClient(config.metrics_endpoint, config.metrics_token_path)
    metrics.record_run(summary)
    metrics.flush()

    return 0


if __name__ == "__main__":
    sys.exit(main())
