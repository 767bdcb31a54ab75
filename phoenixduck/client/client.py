"""High level client for Apache Phoenix Query Server."""

from __future__ import annotations

import time
from types import TracebackType
from typing import Any, Callable, Self

import httpx

from ..config import ClientConfig
from .session import SessionManager
from .statement import ExecuteOutcome, StatementExecutor
from .table import ResultTable
from .transport import AvaticaTransport

TABLES_SQL = "SELECT TABLE_NAME, TABLE_TYPE, TABLE_SCHEM FROM SYSTEM.CATALOG"


class PhoenixClient:
    """Phoenix Query Server client speaking the Avatica JSON protocol.

    One client owns one logical session. It is not thread-safe: use one
    instance per worker or serialize calls externally.

    Example:
        >>> with PhoenixClient("http://localhost:8765") as client:
        ...     client.execute_non_query("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        ...     client.execute_non_query("UPSERT INTO t (id) VALUES (1)")
        ...     table = client.execute_query("SELECT * FROM t")
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        config: ClientConfig | None = None,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if config is None:
            config = ClientConfig(url=url) if url else ClientConfig.from_env()
        elif url:
            raise ValueError("Pass either url or config, not both")

        self._config = config
        self._transport = AvaticaTransport(config.url, timeout=config.timeout, http_client=http_client)
        self._session = SessionManager(self._transport, retry=config.retry, sleep=sleep)
        self._executor = StatementExecutor(self._session, self._transport)
        self._disposed = False

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def is_open(self) -> bool:
        return self._session.is_open

    def open(self) -> None:
        """Open the session; a no-op when already open."""
        self._session.open()

    def close(self) -> None:
        """Close the session. Never raises."""
        self._session.close()

    def dispose(self) -> None:
        """Close the session and release the HTTP client. Safe to call twice."""
        if self._disposed:
            return
        self.close()
        self._transport.close()
        self._disposed = True

    def execute(self, sql: str, max_rows: int | None = None) -> ExecuteOutcome:
        """Execute a statement and return both its table and update count."""
        return self._executor.execute(sql, self._config.row_cap if max_rows is None else max_rows)

    def execute_query(self, sql: str) -> ResultTable:
        """Execute a query; results are silently capped at ``config.row_cap`` rows."""
        return self._executor.execute_query(sql, self._config.row_cap)

    def execute_non_query(self, sql: str) -> int:
        """Execute DDL or DML and return the affected row count (0 when unknown)."""
        return self._executor.execute_non_query(sql)

    def execute_query_as_list(self, sql: str) -> list[dict[str, Any]]:
        """Execute a query and return its rows as dictionaries."""
        return self.execute_query(sql).to_records()

    def get_tables(self) -> ResultTable:
        """List tables from SYSTEM.CATALOG.

        Tries user tables first, then tables without a schema, then falls
        back to the first 100 catalog rows.
        """
        tables = self.execute_query(f"{TABLES_SQL} WHERE TABLE_TYPE = 'u' ORDER BY TABLE_NAME")
        if not tables.rows:
            tables = self.execute_query(f"{TABLES_SQL} WHERE TABLE_SCHEM IS NULL ORDER BY TABLE_NAME")
        if not tables.rows:
            tables = self.execute_query(f"{TABLES_SQL} ORDER BY TABLE_NAME LIMIT 100")
        return tables

    def get_columns(self, table_name: str) -> ResultTable:
        """Describe the columns of one table in ordinal order.

        Phoenix table names are case-sensitive; unquoted names are upper case.
        """
        if not table_name:
            raise ValueError("table_name must not be empty")
        quoted = table_name.replace("'", "''")
        return self.execute_query(
            "SELECT COLUMN_NAME, DATA_TYPE, COLUMN_SIZE, IS_NULLABLE "
            "FROM SYSTEM.CATALOG "
            f"WHERE TABLE_NAME = '{quoted}' AND COLUMN_NAME IS NOT NULL "
            "ORDER BY ORDINAL_POSITION"
        )
