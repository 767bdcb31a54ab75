"""In-memory result tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    import pandas as pd
    import pyarrow as pa


class ColumnType(Enum):
    """Semantic type of a result column and the Python type of its cells."""

    INT32 = "int32"
    INT64 = "int64"
    INT16 = "int16"
    UINT8 = "uint8"
    FLOAT64 = "float64"
    FLOAT32 = "float32"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    TIME = "time"
    BINARY = "binary"
    TEXT = "text"


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    type: ColumnType
    type_name: str = "VARCHAR"


def _arrow_type(column_type: ColumnType) -> pa.DataType | None:
    import pyarrow as pa

    return {
        ColumnType.INT32: pa.int32(),
        ColumnType.INT64: pa.int64(),
        ColumnType.INT16: pa.int16(),
        ColumnType.UINT8: pa.uint8(),
        ColumnType.FLOAT64: pa.float64(),
        ColumnType.FLOAT32: pa.float32(),
        ColumnType.BOOLEAN: pa.bool_(),
        ColumnType.DATETIME: pa.timestamp("us"),
        ColumnType.TIME: pa.duration("us"),
        ColumnType.BINARY: pa.binary(),
        ColumnType.TEXT: pa.string(),
    }.get(column_type)  # DECIMAL precision and scale are inferred from the values


@dataclass(frozen=True)
class ResultTable:
    """Immutable result of a query.

    Rows are tuples aligned positionally with ``columns``; every row has
    exactly ``len(columns)`` cells and a cell may be ``None``.
    """

    columns: tuple[ColumnDescriptor, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> ResultTable:
        return cls()

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        return iter(self.rows)

    def column(self, name: str) -> list[Any]:
        """Return all values of one column."""
        index = self.column_names.index(name)
        return [row[index] for row in self.rows]

    def to_records(self) -> list[dict[str, Any]]:
        """Return the rows as dictionaries keyed by column name."""
        names = self.column_names
        return [dict(zip(names, row)) for row in self.rows]

    def to_arrow(self) -> pa.Table:
        """Convert to a PyArrow table typed from the column types."""
        import pyarrow as pa

        arrays = []
        for index, column in enumerate(self.columns):
            values = [row[index] for row in self.rows]
            arrays.append(pa.array(values, type=_arrow_type(column.type)))
        return pa.Table.from_arrays(arrays, names=self.column_names)

    def to_pandas(self) -> pd.DataFrame:
        return self.to_arrow().to_pandas()

    def format(self, min_width: int = 15) -> str:
        """Render the table as a text grid with a row count footer."""
        if not self.rows:
            return "No rows returned."

        def cell(value: Any) -> str:
            return "NULL" if value is None else str(value)

        widths = []
        for index, name in enumerate(self.column_names):
            width = max(len(name), min_width)
            for row in self.rows:
                width = max(width, len(cell(row[index])))
            widths.append(width)

        header = "|" + "".join(f" {n.ljust(w)} |" for n, w in zip(self.column_names, widths))
        separator = "|" + "".join(f" {'-' * w} |" for w in widths)
        lines = [header, separator]
        for row in self.rows:
            lines.append("|" + "".join(f" {cell(v).ljust(w)} |" for v, w in zip(row, widths)))
        lines.append("")
        lines.append(f"Total rows: {len(self.rows)}")
        return "\n".join(lines)
