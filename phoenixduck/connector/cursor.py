from collections.abc import Iterator
from types import TracebackType
from typing import TYPE_CHECKING, Any, NamedTuple, Self, Sequence

from ..client.table import ResultTable
from ..errors import InterfaceError, NotSupportedError

if TYPE_CHECKING:
    import pandas as pd
    import pyarrow as pa

    from .connection import Connection


class ResultMetadata(NamedTuple):
    """PEP 249 column description."""

    name: str
    type_code: str
    display_size: int | None = None
    internal_size: int | None = None
    precision: int | None = None
    scale: int | None = None
    is_nullable: bool | None = None


class Cursor:
    def __init__(self, connection: "Connection") -> None:
        self._connection = connection
        self._is_closed = False

        self._last_sql: str | None = None
        self._table: ResultTable | None = None
        self._fetch_index: int = 0
        self._rowcount: int = -1
        self.arraysize: int = 1

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        while (row := self.fetchone()) is not None:
            yield row

    @property
    def connection(self) -> "Connection":
        return self._connection

    @property
    def description(self) -> list[ResultMetadata] | None:
        if self._table is None or not self._table.columns:
            return None
        return [ResultMetadata(name=c.name, type_code=c.type_name) for c in self._table.columns]

    def execute(
        self,
        command: str,
        params: Sequence[Any] | dict[Any, Any] | None = None,
    ) -> Self:
        self._check_open()
        if params:
            # Statements are sent with an empty parameterValues list
            raise NotSupportedError("Bind parameters are not supported")

        self._table = None
        self._fetch_index = 0
        self._rowcount = -1

        outcome = self._connection.client.execute(command)
        self._last_sql = command
        self._table = outcome.table
        if outcome.update_count is not None and outcome.update_count >= 0:
            self._rowcount = outcome.update_count
        else:
            self._rowcount = len(outcome.table)
        return self

    def executemany(self, command: str, seq_of_params: Sequence[Sequence[Any]]) -> Self:
        for params in seq_of_params:
            self.execute(command, params)
        return self

    def _check_open(self) -> None:
        if self._is_closed:
            raise InterfaceError("Cursor is closed")
        if self._connection.is_closed():
            raise InterfaceError("Connection is closed", sqlstate="08003")

    def _result(self) -> ResultTable:
        self._check_open()
        if self._table is None:
            raise InterfaceError("No open result set")
        return self._table

    def fetchone(self) -> tuple[Any, ...] | None:
        result = self.fetchmany(1)
        return result[0] if result else None

    def fetchmany(self, size: int | None = None) -> list[tuple[Any, ...]]:
        table = self._result()
        if size is None:
            size = self.arraysize

        start_index = self._fetch_index
        rows = list(table.rows[start_index : start_index + size])
        self._fetch_index += len(rows)
        return rows

    def fetchall(self) -> list[tuple[Any, ...]]:
        table = self._result()
        # Fetch everything remaining from the current index
        return self.fetchmany(len(table) - self._fetch_index)

    def fetch_arrow_all(self) -> "pa.Table":
        """Fetch all remaining rows as a PyArrow table."""
        table = self._result()
        remaining = ResultTable(columns=table.columns, rows=table.rows[self._fetch_index :])
        self._fetch_index = len(table)
        return remaining.to_arrow()

    def fetch_pandas_all(self) -> "pd.DataFrame":
        """Fetch all remaining rows as a pandas DataFrame."""
        return self.fetch_arrow_all().to_pandas()

    def setinputsizes(self, sizes: Any) -> None:
        pass

    def setoutputsize(self, size: Any, column: int | None = None) -> None:
        pass

    def is_closed(self) -> bool:
        return self._is_closed

    def close(self) -> None:
        self._is_closed = True
        self._table = None
        self._last_sql = None

    @property
    def rowcount(self) -> int:
        return self._rowcount

    @property
    def query(self) -> str | None:
        return self._last_sql
