"""
Bulk-load engines for the bronze loader.

Provides a unified interface for clearing a destination table and
bulk-loading a delimited text file into it, backed by either DuckDB
(local development, tests) or BigQuery (production).

Both implementations:
- Load through the storage engine's own fast path (COPY / load jobs),
  so the file only has to be reachable by the engine
- Return the number of rows written
- Let engine errors propagate untouched; the batch loader records them
"""

import contextlib
from collections.abc import Iterator
from dataclasses import dataclass
from typing import ContextManager, Protocol


@dataclass(frozen=True)
class CopyOptions:
    """Format of the source files. The defaults are the bronze file format."""
    delimiter: str = ";"    # Field separator
    null: str = "NULL"      # Token that loads as SQL NULL
    header: bool = True     # First line is a header and is skipped


class BulkLoadEngine(Protocol):
    """
    Protocol defining the bulk-load interface.

    Any engine backend must implement these three methods:
    - transaction: Scope one entry's clear and load
    - truncate: Remove every row from a table
    - copy_from: Bulk-load a source file into a table
    """

    def transaction(self) -> ContextManager[None]:
        """Context manager wrapping one truncate + copy_from pair."""
        ...

    def truncate(self, schema: str, table: str) -> None:
        """Remove all rows from schema.table."""
        ...

    def copy_from(self, schema: str, table: str, source_path: str, options: CopyOptions) -> int:
        """Load source_path into schema.table and return the rows written."""
        ...


def quote_identifier(name: str) -> str:
    """Double-quote a SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Single-quote a SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def current_catalog(conn) -> str:
    """Name of the database a duckdb connection is attached to."""
    return conn.execute("SELECT current_database()").fetchone()[0]


def qualify(*parts: str) -> str:
    """Quoted, dot-joined object name."""
    return ".".join(quote_identifier(part) for part in parts)


class DuckDBEngine:
    """
    DuckDB bulk-load engine.

    Used for local development and tests. COPY ... FROM reads the CSV
    inside DuckDB and reports the number of rows it inserted.

    Truncate and copy run inside one transaction, so a failed load
    rolls back to the rows the table held before the entry started.

    DuckDB names the catalog after the file stem, so bronze.duckdb
    attaches as catalog "bronze" and "bronze"."location" becomes
    ambiguous. Tables are therefore always addressed as
    catalog.schema.table.
    """

    def __init__(self, db_path: str = ":memory:"):
        """
        Open the DuckDB database.

        Args:
            db_path: Path to the DuckDB database file, or ":memory:"
        """
        import duckdb
        self.db_path = db_path
        self.conn = duckdb.connect(db_path)
        self.catalog = current_catalog(self.conn)

    def _table_ref(self, schema: str, table: str) -> str:
        return qualify(self.catalog, schema, table)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        self.conn.execute("BEGIN TRANSACTION")
        try:
            yield
        except BaseException:
            self.conn.execute("ROLLBACK")
            raise
        self.conn.execute("COMMIT")

    def truncate(self, schema: str, table: str) -> None:
        self.conn.execute(f"TRUNCATE {self._table_ref(schema, table)}")

    def copy_from(self, schema: str, table: str, source_path: str, options: CopyOptions) -> int:
        """
        Load a delimited file with COPY ... FROM.

        The file format is fixed by options; sniffing is disabled so the
        table's own column types decide how each field is parsed.

        Returns:
            Number of rows COPY inserted
        """
        sql = (
            f"COPY {self._table_ref(schema, table)} "
            f"FROM {quote_literal(source_path)} ("
            f"FORMAT CSV, "
            f"DELIMITER {quote_literal(options.delimiter)}, "
            f"HEADER {'true' if options.header else 'false'}, "
            f"NULLSTR {quote_literal(options.null)}, "
            f"AUTO_DETECT false)"
        )
        row = self.conn.execute(sql).fetchone()
        return int(row[0]) if row else 0

    def close(self) -> None:
        self.conn.close()


class BigQueryEngine:
    """
    BigQuery bulk-load engine.

    Used in production. The manifest schema maps to a BigQuery dataset,
    so bronze.location becomes <project>.bronze.location.

    Sources can be gs:// URIs (loaded server-side with load_table_from_uri)
    or local files (streamed up with load_table_from_file).

    BigQuery load jobs cannot join a multi-statement transaction. Inside
    transaction() the clear is folded into the load job instead: truncate
    only checks that the table exists, and copy_from replaces the table
    with WRITE_TRUNCATE. A failed load job leaves the previous rows in
    place. Outside a transaction, truncate runs TRUNCATE TABLE directly.
    """

    def __init__(self, project: str, location: str | None = None, client=None):
        """
        Initialise the BigQuery client.

        Args:
            project: GCP project ID
            location: BigQuery location for query and load jobs
            client: Existing bigquery.Client to reuse
        """
        if client is None:
            from google.cloud import bigquery
            client = bigquery.Client(project=project, location=location)

        self.client = client
        self.project = project
        self.location = location
        self._in_transaction = False
        self._replacing: set[str] = set()   # Tables whose next load replaces them

    def _table_id(self, schema: str, table: str) -> str:
        return f"{self.project}.{schema}.{table}"

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        self._in_transaction = True
        try:
            yield
        finally:
            self._in_transaction = False
            self._replacing.clear()

    def truncate(self, schema: str, table: str) -> None:
        """Clear the table, or inside a transaction mark it for replacement."""
        table_id = self._table_id(schema, table)

        if self._in_transaction:
            # Raises NotFound for a missing table, so no load is attempted
            self.client.get_table(table_id)
            self._replacing.add(table_id)
            return

        query_job = self.client.query(f"TRUNCATE TABLE `{table_id}`")
        query_job.result()

    def copy_from(self, schema: str, table: str, source_path: str, options: CopyOptions) -> int:
        """
        Run a CSV load job into the table and wait for it.

        Returns:
            The job's output row count
        """
        from google.cloud import bigquery

        table_id = self._table_id(schema, table)
        if table_id in self._replacing:
            write_disposition = bigquery.WriteDisposition.WRITE_TRUNCATE
        else:
            write_disposition = bigquery.WriteDisposition.WRITE_APPEND

        job_config = bigquery.LoadJobConfig(
            source_format=bigquery.SourceFormat.CSV,
            field_delimiter=options.delimiter,
            null_marker=options.null,
            skip_leading_rows=1 if options.header else 0,
            write_disposition=write_disposition,
        )

        if source_path.startswith("gs://"):
            load_job = self.client.load_table_from_uri(source_path, table_id, job_config=job_config)
        else:
            with open(source_path, "rb") as source_file:
                load_job = self.client.load_table_from_file(source_file, table_id, job_config=job_config)

        # Wait for job to complete (raises on error)
        load_job.result()
        return int(load_job.output_rows or 0)
