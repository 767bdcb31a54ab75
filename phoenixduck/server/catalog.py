"""SYSTEM.CATALOG emulation on top of DuckDB's information schema.

Phoenix keeps table and column metadata in SYSTEM.CATALOG: one header row
per table (TABLE_TYPE set, COLUMN_NAME NULL) followed by one row per column.
The view below produces the same shape for the tables of the current DuckDB
database. Queries are pointed at it by the dialect rewriter.
"""

from duckdb import DuckDBPyConnection

from .types import AVATICA_TYPES, DUCKDB_TO_AVATICA, OTHER_JDBC_TYPE

CATALOG_SCHEMA = "PHOENIX_SYSTEM"
CATALOG_TABLE = "CATALOG"

HIDDEN_SCHEMAS = ("information_schema", "pg_catalog", CATALOG_SCHEMA)


def _jdbc_type_case(column: str) -> str:
    branches = [
        f"WHEN {column} = '{duck}' THEN {AVATICA_TYPES[avatica][0]}"
        for duck, avatica in DUCKDB_TO_AVATICA.items()
    ]
    branches.append(f"WHEN {column} LIKE 'DECIMAL%' THEN {AVATICA_TYPES['DECIMAL'][0]}")
    return "CASE " + " ".join(branches) + f" ELSE {OTHER_JDBC_TYPE} END"


def catalog_view_sql() -> str:
    hidden = ", ".join(f"'{s}'" for s in HIDDEN_SCHEMAS)
    return f"""
        CREATE OR REPLACE VIEW {CATALOG_SCHEMA}."{CATALOG_TABLE}" AS
        SELECT
            CASE WHEN t.table_schema = 'main' THEN NULL ELSE upper(t.table_schema) END AS TABLE_SCHEM,
            upper(t.table_name) AS TABLE_NAME,
            CAST(NULL AS VARCHAR) AS COLUMN_NAME,
            CASE WHEN t.table_type = 'VIEW' THEN 'v' ELSE 'u' END AS TABLE_TYPE,
            CAST(NULL AS INTEGER) AS DATA_TYPE,
            CAST(NULL AS INTEGER) AS COLUMN_SIZE,
            CAST(NULL AS VARCHAR) AS IS_NULLABLE,
            CAST(NULL AS INTEGER) AS ORDINAL_POSITION
        FROM information_schema.tables t
        WHERE t.table_catalog = current_database()
          AND t.table_schema NOT IN ({hidden})
        UNION ALL
        SELECT
            CASE WHEN c.table_schema = 'main' THEN NULL ELSE upper(c.table_schema) END,
            upper(c.table_name),
            upper(c.column_name),
            CAST(NULL AS VARCHAR),
            {_jdbc_type_case("c.data_type")},
            CAST(COALESCE(c.character_maximum_length, c.numeric_precision) AS INTEGER),
            c.is_nullable,
            CAST(c.ordinal_position AS INTEGER)
        FROM information_schema.columns c
        WHERE c.table_catalog = current_database()
          AND c.table_schema NOT IN ({hidden})
    """


def install_system_catalog(duck_conn: DuckDBPyConnection) -> None:
    """Create the SYSTEM.CATALOG stand-in if it does not exist yet."""
    duck_conn.execute(f"CREATE SCHEMA IF NOT EXISTS {CATALOG_SCHEMA}")
    duck_conn.execute(catalog_view_sql())
