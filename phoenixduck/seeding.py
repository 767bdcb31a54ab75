"""Data seeding utilities for phoenixduck - making test data easy!"""
from typing import Any

import pandas as pd

from .client import PhoenixClient


def _column_type(series: pd.Series) -> str:
    if pd.api.types.is_bool_dtype(series):
        return "BOOLEAN"
    if pd.api.types.is_integer_dtype(series):
        return "INTEGER" if series.dtype.itemsize <= 4 else "BIGINT"
    if pd.api.types.is_float_dtype(series):
        return "DOUBLE"
    if pd.api.types.is_datetime64_any_dtype(series):
        return "TIMESTAMP"
    return "VARCHAR"


def _literal(value: Any, column_type: str) -> str:
    if value is None or (not isinstance(value, (list, dict)) and pd.isna(value)):
        return "NULL"
    if column_type == "BOOLEAN":
        return "TRUE" if value else "FALSE"
    if column_type in ("INTEGER", "BIGINT"):
        return str(int(value))
    if column_type == "DOUBLE":
        return repr(float(value))
    if column_type == "TIMESTAMP":
        return f"CAST('{pd.Timestamp(value).strftime('%Y-%m-%d %H:%M:%S')}' AS TIMESTAMP)"
    # String - escape single quotes
    escaped = str(value).replace("'", "''")
    return f"'{escaped}'"


def seed_table(
    client: PhoenixClient,
    table_name: str,
    data: pd.DataFrame | dict[str, list] | list[dict[str, Any]],
    drop_if_exists: bool = True,
) -> int:
    """
    Seed a Phoenix table with data from a pandas DataFrame or dict.

    The first column becomes the primary key, which Phoenix requires. Column
    types are inferred from the DataFrame dtypes.

    Args:
        client: Open PhoenixClient
        table_name: Name of the table to create/populate
        data: Data as pandas DataFrame, dict of lists, or list of dicts
        drop_if_exists: If True, drops existing table first (default: True)

    Returns:
        Number of rows upserted

    Example:
        >>> from phoenixduck import patch_phoenix, seed_table
        >>> from phoenixduck.client import PhoenixClient
        >>>
        >>> with patch_phoenix(), PhoenixClient("http://localhost:8765") as client:
        ...     seed_table(client, 'employees', {
        ...         'id': [1, 2, 3],
        ...         'name': ['Alice', 'Bob', 'Carol'],
        ...         'salary': [95000, 75000, 105000]
        ...     })
        3
    """
    # Convert to DataFrame if needed
    if isinstance(data, (dict, list)):
        df = pd.DataFrame(data)
    else:
        df = data

    if len(df) == 0 or len(df.columns) == 0:
        raise ValueError("Cannot seed table with empty data")

    if drop_if_exists:
        client.execute_non_query(f"DROP TABLE IF EXISTS {table_name}")

    types = [_column_type(df[column]) for column in df.columns]
    definitions = [f"{column} {column_type}" for column, column_type in zip(df.columns, types)]
    definitions[0] += " NOT NULL PRIMARY KEY"
    client.execute_non_query(f"CREATE TABLE IF NOT EXISTS {table_name} ({', '.join(definitions)})")

    columns = ", ".join(str(c) for c in df.columns)
    upserted = 0
    # Phoenix UPSERT VALUES takes a single row
    for row in df.itertuples(index=False, name=None):
        values = ", ".join(_literal(value, column_type) for value, column_type in zip(row, types))
        upserted += client.execute_non_query(f"UPSERT INTO {table_name} ({columns}) VALUES ({values})")

    return upserted
