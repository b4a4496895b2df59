"""
Bronze table definitions.

Tables are built for fast raw ingestion: no primary or foreign keys, no
indexes, and loose VARCHAR columns wherever the source is inconsistent
(ages, free-text dates). Existing tables are never altered.
"""

import structlog

from bronze_loader.engine import current_catalog, qualify, quote_identifier

log = structlog.get_logger()


# Column lists in source-file order
BRONZE_TABLES: dict[str, list[tuple[str, str]]] = {
    "individuals": [
        ("uuid", "VARCHAR(100)"),
        ("extId", "VARCHAR(50)"),
        ("dob", "DATE"),
        ("firstName", "VARCHAR(100)"),
        ("middleName", "VARCHAR(100)"),
        ("lastName", "VARCHAR(100)"),
        ("gender", "VARCHAR(10)"),
        ("religion", "VARCHAR(50)"),
        ("father_uuid", "VARCHAR(100)"),
        ("mother_uuid", "VARCHAR(100)"),
        ("insertDate", "DATE"),
    ],
    "death": [
        ("uuid", "VARCHAR(200)"),
        ("insertDate", "DATE"),
        ("ageAtDeath", "VARCHAR(100)"),
        ("deathCause", "VARCHAR(100)"),
        ("deathDate", "VARCHAR(100)"),
        ("deathPlace", "VARCHAR(100)"),
        ("individual_uuid", "VARCHAR(100)"),
        ("visitDeath_uuid", "VARCHAR(100)"),
    ],
    "inmigration": [
        ("uuid", "VARCHAR(100)"),
        ("origin", "VARCHAR(100)"),
        ("migType", "VARCHAR(100)"),
        ("reason", "VARCHAR(100)"),
        ("insertDate", "DATE"),
        ("recordedDate", "DATE"),
        ("individual_uuid", "VARCHAR(100)"),
        ("residency_uuid", "VARCHAR(100)"),
    ],
    "location": [
        ("uuid", "VARCHAR(100)"),
        ("extId", "VARCHAR(100)"),
        ("locationName", "VARCHAR(100)"),
        ("locationtype", "VARCHAR(10)"),
        ("accuracy", "VARCHAR(100)"),
        ("altitude", "VARCHAR(100)"),
        ("latitude", "VARCHAR(100)"),
        ("longitude", "VARCHAR(100)"),
        ("insertDate", "DATE"),
    ],
    "locationhierarchy": [
        ("uuid", "VARCHAR(100)"),
        ("extId", "VARCHAR(100)"),
        ("name", "VARCHAR(100)"),
        ("level_uuid", "VARCHAR(100)"),
        ("parent_uuid", "VARCHAR(100)"),
    ],
    "locationhierarchylevel": [
        ("uuid", "VARCHAR(100)"),
        ("keyIdentifier", "VARCHAR(100)"),
        ("name", "VARCHAR(100)"),
    ],
    "pregnancyoutcome_outcome": [
        ("pregnancyoutcome_uuid", "VARCHAR(200)"),
        ("outcomes_uuid", "VARCHAR(100)"),
    ],
    "outmigration": [
        ("uuid", "VARCHAR(100)"),
        ("destination", "VARCHAR(100)"),
        ("reason", "VARCHAR(100)"),
        ("insertDate", "DATE"),
        ("recordedDate", "DATE"),
        ("individual_uuid", "VARCHAR(100)"),
        ("residency_uuid", "VARCHAR(100)"),
    ],
    "pregnancyobservation": [
        ("uuid", "VARCHAR(100)"),
        ("recordedDate", "DATE"),
        ("expectedDeliveryDate", "DATE"),
        ("insertDate", "DATE"),
        ("mother_uuid", "VARCHAR(100)"),
    ],
    "pregnancyoutcome": [
        ("uuid", "VARCHAR(100)"),
        ("childEverBorn", "VARCHAR(10)"),
        ("numberOfLiveBirths", "VARCHAR(10)"),
        ("outcomeDate", "DATE"),
        ("insertDate", "DATE"),
        ("father_uuid", "VARCHAR(100)"),
        ("mother_uuid", "VARCHAR(100)"),
        ("visit_uuid", "VARCHAR(100)"),
    ],
    "relationship": [
        ("uuid", "VARCHAR(100)"),
        ("aIsTob", "VARCHAR(100)"),
        ("startDate", "DATE"),
        ("endDate", "DATE"),
        ("endType", "VARCHAR(10)"),
        ("insertDate", "DATE"),
        ("individualA_uuid", "VARCHAR(100)"),
        ("individualB_uuid", "VARCHAR(100)"),
    ],
    "residency": [
        ("uuid", "VARCHAR(100)"),
        ("startType", "VARCHAR(10)"),
        ("startDate", "DATE"),
        ("endType", "VARCHAR(10)"),
        ("endDate", "DATE"),
        ("insertDate", "DATE"),
        ("individual_uuid", "VARCHAR(100)"),
        ("location_uuid", "VARCHAR(100)"),
    ],
    "socialgroup": [
        ("uuid", "VARCHAR(100)"),
        ("extId", "VARCHAR(100)"),
        ("groupName", "VARCHAR(100)"),
        ("groupType", "VARCHAR(10)"),
        ("insertDate", "DATE"),
        ("groupHead_uuid", "VARCHAR(100)"),
    ],
    "outcome": [
        ("uuid", "VARCHAR(200)"),
        ("type", "VARCHAR(100)"),
        ("child_uuid", "VARCHAR(100)"),
        ("childMembership_uuid", "VARCHAR(100)"),
        ("childextId", "VARCHAR(100)"),
    ],
}


def create_table_sql(
    schema: str,
    table: str,
    columns: list[tuple[str, str]],
    catalog: str | None = None,
) -> str:
    """CREATE TABLE IF NOT EXISTS statement for one bronze table."""
    column_sql = ",\n    ".join(f"{quote_identifier(name)} {sql_type}" for name, sql_type in columns)
    name = qualify(catalog, schema, table) if catalog else qualify(schema, table)
    return (
        f"CREATE TABLE IF NOT EXISTS {name} (\n"
        f"    {column_sql}\n"
        f")"
    )


def create_bronze_tables(conn, schema: str = "bronze") -> list[str]:
    """
    Create the bronze schema and every bronze table that is missing.

    Names are catalog-qualified so a database file named after the
    schema (bronze.duckdb) still resolves.

    Args:
        conn: Open duckdb connection
        schema: Schema to create the tables in

    Returns:
        Names of the tables, in definition order
    """
    catalog = current_catalog(conn)
    conn.execute(f"CREATE SCHEMA IF NOT EXISTS {qualify(catalog, schema)}")

    for table, columns in BRONZE_TABLES.items():
        conn.execute(create_table_sql(schema, table, columns, catalog=catalog))

    log.info("bronze_tables_ready", schema=schema, tables=len(BRONZE_TABLES))
    return list(BRONZE_TABLES)
