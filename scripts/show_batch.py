#!/usr/bin/env python3
"""Show the load log of one bronze batch.

Prints every etl_log row of the batch in load order, then a summary of
what succeeded, what failed and how many rows were loaded.

Usage:
    python scripts/show_batch.py                       # Latest batch
    python scripts/show_batch.py --batch-id <uuid>
    python scripts/show_batch.py --db other.duckdb --failed-only
"""

import argparse
import sys

import duckdb
import polars as pl

from bronze_loader.audit import fetch_batch_log, fetch_latest_batch_id, summarise_batch


def main():
    parser = argparse.ArgumentParser(description="Show the load log of one bronze batch")
    parser.add_argument(
        "--db",
        default="warehouse.duckdb",
        help="DuckDB database file (default: warehouse.duckdb)"
    )
    parser.add_argument(
        "--table",
        default="etl_log",
        help="Load log table (default: etl_log)"
    )
    parser.add_argument(
        "--batch-id",
        help="Batch to show (default: the most recent one)"
    )
    parser.add_argument(
        "--failed-only",
        action="store_true",
        help="Only list entries with status ERROR"
    )
    args = parser.parse_args()

    conn = duckdb.connect(args.db, read_only=True)
    try:
        batch_id = args.batch_id or fetch_latest_batch_id(conn, args.table)
        if batch_id is None:
            print(f"❌ No batches in {args.table}")
            sys.exit(1)

        df = fetch_batch_log(conn, batch_id, args.table)
    finally:
        conn.close()

    if df.is_empty():
        print(f"❌ Batch not found: {batch_id}")
        sys.exit(1)

    summary = summarise_batch(df)

    listing = df.select(
        pl.concat_str([pl.col("schema_name"), pl.col("table_name")], separator=".").alias("table"),
        "status",
        "rows_loaded",
        "duration",
        "message",
    )
    if args.failed_only:
        listing = listing.filter(pl.col("status") == "ERROR")

    print(f"Batch {batch_id}\n")
    with pl.Config(tbl_rows=-1, fmt_str_lengths=120):
        print(listing)

    print()
    print(f"  Entries:   {summary['entries']}")
    print(f"  Succeeded: {summary['succeeded']}")
    print(f"  Failed:    {summary['failed']}")
    print(f"  Rows:      {summary['rows_loaded']:,}")
    print(f"  Duration:  {summary['duration_seconds']:.2f}s")
    for table in summary["failed_tables"]:
        print(f"  ❌ {table}")


if __name__ == "__main__":
    main()
