"""
Audit trail for bronze loads.

Writers append one etl_log row per load step; nothing here ever updates
or deletes a row. The query helpers read the log back as polars
DataFrames so operators can answer, after a run, which tables loaded,
how many rows, how long each took, and what failed.
"""

from datetime import datetime, timezone
from typing import Any, Protocol

import polars as pl
import structlog

from bronze_loader.engine import current_catalog, qualify
from bronze_loader.errors import AuditWriteError
from bronze_loader.records import LoadLogRecord, LoadStatus

log = structlog.get_logger()


LOG_COLUMNS = [
    "batch_id",
    "schema_name",
    "table_name",
    "file_name",
    "status",
    "message",
    "start_time",
    "end_time",
    "duration",
    "rows_loaded",
]


class LogSink(Protocol):
    """Append-only destination for LoadLogRecord."""

    def append(self, record: LoadLogRecord) -> None:
        """Store one record. Raising aborts the run."""
        ...


def _naive_utc(value: datetime) -> datetime:
    """TIMESTAMP columns hold UTC without an offset."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _table_ref(conn, table: str) -> str:
    """Quote a log table name; schema.table is qualified with the catalog."""
    parts = table.split(".")
    if len(parts) == 2:
        parts.insert(0, current_catalog(conn))
    return qualify(*parts)


class DuckDBLogSink:
    """
    Writes load log records to a DuckDB table.

    Shares the engine's connection. Records are appended after the
    entry's transaction has finished, so an ERROR record survives the
    rollback of the load it describes.
    """

    def __init__(self, conn, table: str = "etl_log"):
        """
        Args:
            conn: Open duckdb connection
            table: Log table name, optionally schema-qualified
        """
        self.conn = conn
        self.table = _table_ref(conn, table)
        self._ensure_log_table()

    def _ensure_log_table(self) -> None:
        """Create the log table if it doesn't exist."""
        self.conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                batch_id VARCHAR NOT NULL,
                schema_name VARCHAR NOT NULL,
                table_name VARCHAR NOT NULL,
                file_name VARCHAR NOT NULL,
                status VARCHAR NOT NULL,
                message VARCHAR,
                start_time TIMESTAMP NOT NULL,
                end_time TIMESTAMP NOT NULL,
                duration INTERVAL NOT NULL,
                rows_loaded BIGINT NOT NULL
            )
        """)

    def append(self, record: LoadLogRecord) -> None:
        row = record.as_row()
        row["start_time"] = _naive_utc(record.start_time)
        row["end_time"] = _naive_utc(record.end_time)

        try:
            self.conn.execute(
                f"""
                INSERT INTO {self.table} ({", ".join(LOG_COLUMNS)})
                VALUES ({", ".join("?" for _ in LOG_COLUMNS)})
                """,
                [row[column] for column in LOG_COLUMNS],
            )
        except Exception as e:
            raise AuditWriteError(f"Failed to write load log record: {e}") from e

        log.debug("log_record_written", table=self.table, batch_id=record.batch_id)


class BigQueryLogSink:
    """
    Writes load log records to a BigQuery table.

    Uses streaming insert for single-row records. Duration is stored as
    float seconds since BigQuery has no interval column for streaming.
    """

    def __init__(self, client, table_id: str, ensure_table: bool = True):
        """
        Args:
            client: bigquery.Client
            table_id: Fully qualified table ID (project.dataset.table)
            ensure_table: Create the table if it doesn't exist
        """
        self.client = client
        self.table_id = table_id
        if ensure_table:
            self._ensure_log_table()

    def _ensure_log_table(self) -> None:
        from google.cloud import bigquery

        schema = [
            bigquery.SchemaField("batch_id", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("schema_name", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("table_name", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("file_name", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("status", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("message", "STRING"),
            bigquery.SchemaField("start_time", "TIMESTAMP", mode="REQUIRED"),
            bigquery.SchemaField("end_time", "TIMESTAMP", mode="REQUIRED"),
            bigquery.SchemaField("duration_seconds", "FLOAT", mode="REQUIRED"),
            bigquery.SchemaField("rows_loaded", "INTEGER", mode="REQUIRED"),
        ]
        table = bigquery.Table(self.table_id, schema=schema)
        self.client.create_table(table, exists_ok=True)

    def append(self, record: LoadLogRecord) -> None:
        row: dict[str, Any] = record.as_row()
        row["start_time"] = record.start_time.isoformat()
        row["end_time"] = record.end_time.isoformat()
        row["duration_seconds"] = record.duration.total_seconds()
        del row["duration"]

        errors = self.client.insert_rows_json(self.table_id, [row])

        if errors:
            raise AuditWriteError(f"Failed to insert load log record: {errors}")

        log.debug("log_record_written", table=self.table_id, batch_id=record.batch_id)


def fetch_batch_log(conn, batch_id: str, table: str = "etl_log") -> pl.DataFrame:
    """
    Read every log row for one batch, in the order they were written.

    Args:
        conn: Open duckdb connection
        batch_id: Batch to read
        table: Log table name

    Returns:
        DataFrame with the etl_log columns; empty if the batch is unknown
    """
    table_ref = _table_ref(conn, table)
    rows = conn.execute(
        f"SELECT {', '.join(LOG_COLUMNS)} FROM {table_ref} WHERE batch_id = ? ORDER BY rowid",
        [batch_id],
    ).fetchall()

    return pl.DataFrame(rows, schema=LOG_COLUMNS, orient="row")


def fetch_latest_batch_id(conn, table: str = "etl_log") -> str | None:
    """Batch ID of the most recently started run, or None if the log is empty."""
    table_ref = _table_ref(conn, table)
    row = conn.execute(
        f"SELECT batch_id FROM {table_ref} ORDER BY start_time DESC, rowid DESC LIMIT 1"
    ).fetchone()
    return row[0] if row else None


def summarise_batch(df: pl.DataFrame) -> dict[str, Any]:
    """
    Aggregate one batch's log rows.

    Returns:
        Dict with keys: entries, succeeded, failed, rows_loaded,
        duration_seconds, failed_tables
    """
    if df.is_empty():
        return {
            "entries": 0,
            "succeeded": 0,
            "failed": 0,
            "rows_loaded": 0,
            "duration_seconds": 0.0,
            "failed_tables": [],
        }

    failures = df.filter(pl.col("status") == LoadStatus.ERROR.value)
    durations = df.get_column("duration").to_list()

    return {
        "entries": df.height,
        "succeeded": df.filter(pl.col("status") == LoadStatus.SUCCESS.value).height,
        "failed": failures.height,
        "rows_loaded": int(df.get_column("rows_loaded").sum()),
        "duration_seconds": sum(d.total_seconds() for d in durations),
        "failed_tables": [
            f"{schema}.{table}"
            for schema, table in failures.select("schema_name", "table_name").iter_rows()
        ],
    }
