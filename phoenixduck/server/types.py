"""Type conversion utilities for the mock query server.

Maps Arrow result types and DuckDB column types to the Avatica/JDBC type
system for result signatures and SYSTEM.CATALOG rows.
"""

from __future__ import annotations

from typing import Any

import pyarrow as pa

# Avatica type name -> (java.sql.Types code, Avatica rep)
AVATICA_TYPES = {
    "TINYINT": (-6, "PRIMITIVE_BYTE"),
    "SMALLINT": (5, "PRIMITIVE_SHORT"),
    "INTEGER": (4, "PRIMITIVE_INT"),
    "BIGINT": (-5, "PRIMITIVE_LONG"),
    "FLOAT": (6, "PRIMITIVE_FLOAT"),
    "DOUBLE": (8, "PRIMITIVE_DOUBLE"),
    "DECIMAL": (3, "NUMBER"),
    "BOOLEAN": (16, "PRIMITIVE_BOOLEAN"),
    "DATE": (91, "JAVA_SQL_DATE"),
    "TIME": (92, "JAVA_SQL_TIME"),
    "TIMESTAMP": (93, "JAVA_SQL_TIMESTAMP"),
    "VARBINARY": (-3, "BYTE_STRING"),
    "VARCHAR": (12, "STRING"),
}

# DuckDB information_schema data_type -> Avatica type name
DUCKDB_TO_AVATICA = {
    # Signed bytes widen to SMALLINT; clients read TINYINT as unsigned
    "TINYINT": "SMALLINT",
    "UTINYINT": "TINYINT",
    "SMALLINT": "SMALLINT",
    "USMALLINT": "INTEGER",
    "INTEGER": "INTEGER",
    "UINTEGER": "BIGINT",
    "BIGINT": "BIGINT",
    "UBIGINT": "DECIMAL",
    "HUGEINT": "DECIMAL",
    "FLOAT": "FLOAT",
    "DOUBLE": "DOUBLE",
    "DECIMAL": "DECIMAL",
    "BOOLEAN": "BOOLEAN",
    "DATE": "DATE",
    "TIME": "TIME",
    "TIMESTAMP": "TIMESTAMP",
    "TIMESTAMP WITH TIME ZONE": "TIMESTAMP",
    "BLOB": "VARBINARY",
    "VARCHAR": "VARCHAR",
}

OTHER_JDBC_TYPE = 1111


def arrow_type_to_avatica(data_type: pa.DataType) -> str:
    """Convert an Arrow type to an Avatica type name (VARCHAR when unknown)."""
    if pa.types.is_uint8(data_type):
        return "TINYINT"
    if pa.types.is_int8(data_type) or pa.types.is_int16(data_type):
        return "SMALLINT"
    if pa.types.is_int32(data_type) or pa.types.is_uint16(data_type):
        return "INTEGER"
    if pa.types.is_int64(data_type) or pa.types.is_uint32(data_type):
        return "BIGINT"
    if pa.types.is_uint64(data_type) or pa.types.is_decimal(data_type):
        return "DECIMAL"
    if pa.types.is_float32(data_type) or pa.types.is_float16(data_type):
        return "FLOAT"
    if pa.types.is_float64(data_type):
        return "DOUBLE"
    if pa.types.is_boolean(data_type):
        return "BOOLEAN"
    if pa.types.is_date(data_type):
        return "DATE"
    if pa.types.is_timestamp(data_type):
        return "TIMESTAMP"
    if pa.types.is_time(data_type):
        return "TIME"
    if pa.types.is_binary(data_type) or pa.types.is_large_binary(data_type):
        return "VARBINARY"
    return "VARCHAR"


def column_metadata(ordinal: int, field: pa.Field) -> dict[str, Any]:
    """Build Avatica ColumnMetaData for one result field."""
    type_name = arrow_type_to_avatica(field.type)
    type_id, rep = AVATICA_TYPES[type_name]
    precision = 0
    scale = 0
    if pa.types.is_decimal(field.type):
        precision = field.type.precision
        scale = field.type.scale

    return {
        "ordinal": ordinal,
        "autoIncrement": False,
        "caseSensitive": False,
        "searchable": True,
        "currency": False,
        "nullable": 1 if field.nullable else 0,
        "signed": type_name not in ("VARCHAR", "VARBINARY", "BOOLEAN"),
        "displaySize": 40,
        "label": field.name,
        "columnName": field.name,
        "schemaName": "",
        "precision": precision,
        "scale": scale,
        "tableName": "",
        "catalogName": "",
        "type": {"type": "scalar", "id": type_id, "name": type_name, "rep": rep},
        "readOnly": True,
        "writable": False,
        "definitelyWritable": False,
        "columnClassName": "",
    }


def build_signature(schema: pa.Schema, sql: str | None = None) -> dict[str, Any]:
    """Build an Avatica Signature from an Arrow schema."""
    return {
        "columns": [column_metadata(i, schema.field(i)) for i in range(len(schema))],
        "sql": sql,
        "parameters": [],
        "cursorFactory": {"style": "LIST", "clazz": None, "fieldNames": None},
        "statementType": "SELECT",
    }
