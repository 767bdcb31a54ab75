"""Conversion of Avatica result sets into ResultTable values.

Wire cells arrive as decoded JSON: ``None``, ``bool``, ``int``, ``Decimal``
(or ``float``), ``str``, ``list`` or ``dict``. Each cell is converted by the
resolved type of its column. A value that cannot be converted fails the
whole result with TypeConversionError; nothing is replaced by a default.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from datetime import datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from ..errors import TypeConversionError
from .protocol import ResultSet, Signature
from .table import ColumnDescriptor, ColumnType, ResultTable

# Mapping from Avatica type names to semantic column types
TYPE_MAP = {
    "INTEGER": ColumnType.INT32,
    "INT": ColumnType.INT32,
    "BIGINT": ColumnType.INT64,
    "SMALLINT": ColumnType.INT16,
    "TINYINT": ColumnType.UINT8,
    "DOUBLE": ColumnType.FLOAT64,
    "FLOAT": ColumnType.FLOAT32,
    "REAL": ColumnType.FLOAT32,
    "DECIMAL": ColumnType.DECIMAL,
    "NUMERIC": ColumnType.DECIMAL,
    "BOOLEAN": ColumnType.BOOLEAN,
    "BIT": ColumnType.BOOLEAN,
    "DATE": ColumnType.DATETIME,
    "TIMESTAMP": ColumnType.DATETIME,
    "TIME": ColumnType.TIME,
    "BINARY": ColumnType.BINARY,
    "VARBINARY": ColumnType.BINARY,
}

INTEGER_RANGES = {
    ColumnType.INT32: (-(2**31), 2**31 - 1),
    ColumnType.INT64: (-(2**63), 2**63 - 1),
    ColumnType.INT16: (-(2**15), 2**15 - 1),
    ColumnType.UINT8: (0, 255),
}

EPOCH = datetime(1970, 1, 1)

_INTEGER_TEXT = re.compile(r"[+-]?\d+")


class _Unconvertible(Exception):
    pass


def resolve_type(type_name: str | None) -> ColumnType:
    """Map an Avatica type name (any case) to a column type; default TEXT."""
    if not type_name:
        return ColumnType.TEXT
    return TYPE_MAP.get(type_name.upper(), ColumnType.TEXT)


def build_columns(signature: Signature | None) -> list[ColumnDescriptor]:
    """Resolve column names and types, keeping names unique."""
    if signature is None:
        return []

    columns: list[ColumnDescriptor] = []
    seen: set[str] = set()
    for column in signature.columns:
        index = len(columns) + 1
        name = column.column_name or column.label or column.name or f"Column{index}"
        while name in seen:
            name = f"{name}_{index}"
        seen.add(name)

        type_name = column.type_name or "VARCHAR"
        columns.append(ColumnDescriptor(name=name, type=resolve_type(type_name), type_name=type_name))
    return columns


def _to_integer(value: Any, column: ColumnDescriptor) -> int:
    if isinstance(value, str):
        text = value.strip()
        if not _INTEGER_TEXT.fullmatch(text):
            raise _Unconvertible
        number = int(text)
    elif isinstance(value, int):
        number = value
    elif isinstance(value, (Decimal, float)):
        try:
            number = int(value)
        except (ValueError, OverflowError):
            raise _Unconvertible from None
        if number != value:
            raise _Unconvertible
    else:
        raise _Unconvertible

    low, high = INTEGER_RANGES[column.type]
    if not low <= number <= high:
        raise _Unconvertible
    return number


def _to_float(value: Any, column: ColumnDescriptor) -> float:
    if isinstance(value, (str, int, Decimal, float)):
        try:
            return float(value)
        except ValueError:
            raise _Unconvertible from None
    raise _Unconvertible


def _to_decimal(value: Any, column: ColumnDescriptor) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            raise _Unconvertible from None
    raise _Unconvertible


def _to_boolean(value: Any, column: ColumnDescriptor) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "false"):
            return text == "true"
    elif isinstance(value, int) and value in (0, 1):
        return value == 1
    raise _Unconvertible


def _to_datetime(value: Any, column: ColumnDescriptor) -> datetime:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            raise _Unconvertible from None
    if isinstance(value, (int, Decimal, float)):
        # Avatica sends DATE as days since the epoch, TIMESTAMP as epoch milliseconds.
        if (column.type_name or "").upper() == "DATE":
            try:
                days = int(value)
            except (ValueError, OverflowError):
                raise _Unconvertible from None
            if days != value:
                raise _Unconvertible
            return EPOCH + timedelta(days=days)
        return EPOCH + timedelta(milliseconds=float(value))
    raise _Unconvertible


def _to_time(value: Any, column: ColumnDescriptor) -> timedelta:
    if isinstance(value, str):
        try:
            parsed = time.fromisoformat(value.strip())
        except ValueError:
            raise _Unconvertible from None
        return timedelta(
            hours=parsed.hour,
            minutes=parsed.minute,
            seconds=parsed.second,
            microseconds=parsed.microsecond,
        )
    if isinstance(value, (int, Decimal, float)):
        return timedelta(milliseconds=float(value))
    raise _Unconvertible


def _to_binary(value: Any, column: ColumnDescriptor) -> bytes:
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise _Unconvertible from None
    raise _Unconvertible


def _to_text(value: Any, column: ColumnDescriptor) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, Decimal, float)):
        return str(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str, separators=(",", ":"))
    raise _Unconvertible


CONVERTERS: dict[ColumnType, Callable[[Any, ColumnDescriptor], Any]] = {
    ColumnType.INT32: _to_integer,
    ColumnType.INT64: _to_integer,
    ColumnType.INT16: _to_integer,
    ColumnType.UINT8: _to_integer,
    ColumnType.FLOAT64: _to_float,
    ColumnType.FLOAT32: _to_float,
    ColumnType.DECIMAL: _to_decimal,
    ColumnType.BOOLEAN: _to_boolean,
    ColumnType.DATETIME: _to_datetime,
    ColumnType.TIME: _to_time,
    ColumnType.BINARY: _to_binary,
    ColumnType.TEXT: _to_text,
}


def convert_value(value: Any, column: ColumnDescriptor) -> Any:
    """Convert one wire cell to the Python type of ``column``.

    Raises:
        TypeConversionError: If the value cannot be represented in the column's type
    """
    if value is None or isinstance(value, bool):
        return value
    try:
        return CONVERTERS[column.type](value, column)
    except (_Unconvertible, OverflowError):
        raise TypeConversionError(column.name, value, column.type_name) from None


def materialize(result: ResultSet) -> ResultTable:
    """Build a ResultTable from the first result set of an execute response."""
    columns = build_columns(result.signature)
    if not columns:
        return ResultTable.empty()

    width = len(columns)
    rows = []
    for raw in result.rows:
        cells = [convert_value(raw[i], columns[i]) for i in range(min(len(raw), width))]
        cells.extend([None] * (width - len(cells)))
        rows.append(tuple(cells))

    return ResultTable(columns=tuple(columns), rows=tuple(rows))
