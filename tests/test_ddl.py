import duckdb

from bronze_loader.ddl import BRONZE_TABLES, create_bronze_tables, create_table_sql
from bronze_loader.manifest import DEFAULT_MANIFEST


def test_every_default_entry_has_a_table() -> None:
    assert [entry.table for entry in DEFAULT_MANIFEST] == list(BRONZE_TABLES)


def test_create_table_sql() -> None:
    sql = create_table_sql("bronze", "outcome", BRONZE_TABLES["outcome"][:2])

    assert sql == (
        'CREATE TABLE IF NOT EXISTS "bronze"."outcome" (\n'
        '    "uuid" VARCHAR(200),\n'
        '    "type" VARCHAR(100)\n'
        ")"
    )


def test_create_bronze_tables_is_idempotent() -> None:
    conn = duckdb.connect(":memory:")
    try:
        create_bronze_tables(conn)
        conn.execute("INSERT INTO bronze.outcome (uuid) VALUES ('o-1')")
        create_bronze_tables(conn)

        tables = {
            row[0]
            for row in conn.execute(
                "SELECT table_name FROM information_schema.tables WHERE table_schema = 'bronze'"
            ).fetchall()
        }
        assert tables == set(BRONZE_TABLES)
        assert conn.execute("SELECT count(*) FROM bronze.outcome").fetchone()[0] == 1
    finally:
        conn.close()
