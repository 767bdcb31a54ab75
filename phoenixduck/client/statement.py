"""Prepare / execute / close-statement lifecycle for single statements."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

import httpx

from ..config import DEFAULT_ROW_CAP
from ..errors import (
    ExecuteFailedError,
    PrepareFailedError,
    ProtocolError,
    StatementError,
    preview,
)
from .materializer import materialize
from .protocol import (
    close_statement_request,
    execute_request,
    parse_error,
    parse_results,
    parse_statement_id,
    prepare_request,
)
from .session import SessionManager
from .table import ResultTable
from .transport import AvaticaTransport

logger = logging.getLogger(__name__)

STATEMENT_SEPARATOR = ";"


def normalize_sql(sql: str) -> str:
    """Strip trailing whitespace and at most one trailing statement separator.

    The query server rejects statements that end with a separator.
    """
    sql = sql.rstrip()
    if sql.endswith(STATEMENT_SEPARATOR):
        sql = sql[: -len(STATEMENT_SEPARATOR)].rstrip()
    return sql


@dataclass(frozen=True)
class ExecuteOutcome:
    """Table and server-reported update count of one execution."""

    table: ResultTable
    update_count: int | None = None


class StatementExecutor:
    """Runs one SQL statement at a time against an open session.

    Every statement handle obtained from "prepare" receives exactly one
    "closeStatement" attempt, whether "execute" succeeds or fails. Cleanup
    failures are logged and never replace the statement's own outcome.
    """

    def __init__(self, session: SessionManager, transport: AvaticaTransport) -> None:
        self._session = session
        self._transport = transport
        self._sequence = 0

    @property
    def sequence(self) -> int:
        """Number of statements issued through this executor."""
        return self._sequence

    def execute_query(self, sql: str, row_cap: int = DEFAULT_ROW_CAP) -> ResultTable:
        """Execute a query and return at most ``row_cap`` rows.

        Rows beyond the cap are dropped by the server without any signal.
        """
        return self.execute(sql, row_cap).table

    def execute_non_query(self, sql: str) -> int:
        """Execute a DDL/DML statement and return the affected row count (0 if unknown)."""
        outcome = self.execute(sql, 0)
        return outcome.update_count if outcome.update_count is not None else 0

    def execute(self, sql: str, max_rows: int) -> ExecuteOutcome:
        """Prepare, execute and close one statement.

        Raises:
            NotConnectedError: If the session is not open
            PrepareFailedError: If the server rejected the statement
            ProtocolError: If a response lacks a required field
            ExecuteFailedError: If execution failed
            TypeConversionError: If a cell does not fit its column type
        """
        connection_id = self._session.require_token()
        sql = normalize_sql(sql)
        self._sequence += 1
        logger.debug("Statement #%d: %s", self._sequence, sql[:100])

        with self._prepared(connection_id, sql) as statement_id:
            body = self._send(
                execute_request(connection_id, statement_id, max_rows),
                ExecuteFailedError,
            )

        results = parse_results(body)
        if not results:
            logger.debug("No results in execute response: %s", preview(str(body)))
            return ExecuteOutcome(table=ResultTable.empty())

        first = results[0]
        table = materialize(first)
        if not first.done:
            logger.debug("Statement #%d truncated at %d rows", self._sequence, len(table.rows))
        if table.columns and not table.rows:
            logger.debug("Statement #%d returned %d columns but 0 rows", self._sequence, len(table.columns))
        return ExecuteOutcome(table=table, update_count=first.update_count)

    @contextmanager
    def _prepared(self, connection_id: str, sql: str) -> Iterator[int]:
        body = self._send(prepare_request(connection_id, sql), PrepareFailedError)
        statement_id = parse_statement_id(body)
        if statement_id is None:
            raise ProtocolError(
                "Phoenix Query Server did not return a statement handle in prepare response",
                preview(str(body)),
            )
        try:
            yield statement_id
        finally:
            self._close_statement(connection_id, statement_id)

    def _send(self, payload: dict[str, Any], error: type[StatementError]) -> dict[str, Any]:
        try:
            response = self._transport.post(payload)
        except httpx.HTTPError as e:
            raise error(None, reason=f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            try:
                error_message, sqlstate = parse_error(response.json())
            except ValueError:
                error_message, sqlstate = None, None
            raise error(
                response.status_code,
                preview(response.text),
                error_message=error_message,
                sqlstate=sqlstate,
            )
        return self._transport.decode(response)

    def _close_statement(self, connection_id: str, statement_id: int) -> None:
        try:
            response = self._transport.post(close_statement_request(connection_id, statement_id))
            if not response.is_success:
                logger.debug(
                    "closeStatement for statement %d returned HTTP %d", statement_id, response.status_code
                )
        except Exception as e:
            logger.debug("Ignoring error while closing statement %d: %s", statement_id, e)
