"""Avatica request handlers.

Every request is a JSON object POSTed to the same endpoint; the ``request``
field selects the handler:

    openConnection: register a DuckDB cursor for a connection id
    closeConnection: drop the cursor and all statements of the connection
    prepare: translate and register a statement
    execute: run a prepared statement and return its first frame
    closeStatement: drop a prepared statement
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import duckdb
import pyarrow as pa
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from .backend import Backend
from .connection_manager import ConnectionManager
from .dialect import StatementKind, TranslationError, translate
from .serializers import serialize_rows
from .shared import SYNTAX_ERROR, ServerError, rpc_metadata
from .statement_manager import PreparedStatement, StatementManager
from .types import build_signature

if TYPE_CHECKING:
    from starlette.requests import Request

logger = logging.getLogger(__name__)


@dataclass
class ServerState:
    backend: Backend
    connections: ConnectionManager
    statements: StatementManager

    def close(self) -> None:
        self.connections.close_all()
        self.backend.close()


@dataclass
class StatementResult:
    table: pa.Table | None = None
    update_count: int | None = None


def _connection_id(body: dict[str, Any]) -> str:
    connection_id = body.get("connectionId")
    if not isinstance(connection_id, str) or not connection_id:
        raise ServerError(status_code=400, message="connectionId is required")
    return connection_id


def _statement_handle(body: dict[str, Any]) -> tuple[str, int]:
    handle = body.get("statementHandle")
    if not isinstance(handle, dict):
        raise ServerError(status_code=400, message="statementHandle is required")
    statement_id = handle.get("id")
    if not isinstance(statement_id, int) or isinstance(statement_id, bool):
        raise ServerError(status_code=400, message="statementHandle.id must be an integer")
    return _connection_id(handle), statement_id


def _require_connection(state: ServerState, connection_id: str) -> None:
    if not state.connections.connection_exists(connection_id):
        raise ServerError(
            status_code=500,
            message=f"Connection not found: {connection_id}",
            sql_state="08003",
        )


def run_statement(cursor: duckdb.DuckDBPyConnection, stmt: PreparedStatement) -> StatementResult:
    """Run a prepared statement on ``cursor``. Blocking; call from the thread pool."""
    try:
        cursor.execute(stmt.duck_sql)
        if stmt.kind is StatementKind.QUERY:
            return StatementResult(table=cursor.fetch_arrow_table())
        if stmt.kind is StatementKind.DML:
            rows = cursor.fetchall()
            return StatementResult(update_count=int(rows[0][0]) if rows else 0)
        return StatementResult()
    except duckdb.Error as e:
        raise ServerError.from_duckdb(e) from None


async def open_connection(state: ServerState, body: dict[str, Any]) -> dict[str, Any]:
    connection_id = _connection_id(body)
    state.connections.open_connection(connection_id, state.backend.cursor())
    logger.info("Opened connection %s", connection_id)
    return {"response": "openConnection", "rpcMetadata": rpc_metadata()}


async def close_connection(state: ServerState, body: dict[str, Any]) -> dict[str, Any]:
    connection_id = _connection_id(body)
    dropped = state.statements.close_connection_statements(connection_id)
    state.connections.close_connection(connection_id)
    logger.info("Closed connection %s (%d open statements dropped)", connection_id, dropped)
    return {"response": "closeConnection", "rpcMetadata": rpc_metadata()}


async def prepare(state: ServerState, body: dict[str, Any]) -> dict[str, Any]:
    connection_id = _connection_id(body)
    _require_connection(state, connection_id)

    sql = body.get("sql")
    if not isinstance(sql, str):
        raise ServerError(status_code=400, message="sql is required")

    try:
        translation = translate(sql)
    except TranslationError as e:
        code, sql_state = SYNTAX_ERROR
        raise ServerError(status_code=500, message=str(e), error_code=code, sql_state=sql_state) from None

    stmt = state.statements.create_statement(connection_id, sql, translation.sql, translation.kind)
    logger.debug("Prepared statement %d on %s: %s", stmt.id, connection_id, translation.sql)
    return {
        "response": "prepare",
        "statement": {"connectionId": connection_id, "id": stmt.id, "signature": None},
        "rpcMetadata": rpc_metadata(),
    }


async def execute(state: ServerState, body: dict[str, Any]) -> dict[str, Any]:
    connection_id, statement_id = _statement_handle(body)
    _require_connection(state, connection_id)

    stmt = state.statements.get_statement(connection_id, statement_id)
    if stmt is None:
        raise ServerError(
            status_code=500,
            message=f"Statement not found: {statement_id}",
            sql_state="HY000",
        )

    max_row_count = body.get("maxRowCount", -1)
    if not isinstance(max_row_count, int) or isinstance(max_row_count, bool):
        max_row_count = -1

    cursor = state.connections.get_connection(connection_id)
    lock = state.connections.get_lock(connection_id)

    # Acquire lock for this connection to prevent concurrent DuckDB access
    async with lock:
        result = await run_in_threadpool(run_statement, cursor, stmt)

    entry: dict[str, Any] = {
        "response": "resultSet",
        "connectionId": connection_id,
        "statementId": statement_id,
        "ownStatement": True,
        "signature": None,
        "firstFrame": None,
    }
    if result.table is not None:
        table = result.table
        done = True
        if 0 <= max_row_count < table.num_rows:
            table = table.slice(0, max_row_count)
            done = False
        entry["signature"] = build_signature(table.schema, stmt.sql)
        entry["firstFrame"] = {"offset": 0, "done": done, "rows": serialize_rows(table)}
        entry["updateCount"] = -1
    elif result.update_count is not None:
        entry["updateCount"] = result.update_count

    return {
        "response": "executeResults",
        "missingStatement": False,
        "results": [entry],
        "rpcMetadata": rpc_metadata(),
    }


async def close_statement(state: ServerState, body: dict[str, Any]) -> dict[str, Any]:
    connection_id, statement_id = _statement_handle(body)
    if not state.statements.close_statement(connection_id, statement_id):
        logger.debug("closeStatement for unknown statement %d", statement_id)
    return {"response": "closeStatement", "rpcMetadata": rpc_metadata()}


HANDLERS: dict[str, Callable[[ServerState, dict[str, Any]], Awaitable[dict[str, Any]]]] = {
    "openConnection": open_connection,
    "closeConnection": close_connection,
    "prepare": prepare,
    "execute": execute,
    "closeStatement": close_statement,
}


async def avatica_request(request: Request) -> JSONResponse:
    """Dispatch one Avatica JSON request."""
    body = await request.body()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ServerError(status_code=400, message="Request body is not valid JSON") from None
    if not isinstance(payload, dict):
        raise ServerError(status_code=400, message="Request body must be a JSON object")

    kind = payload.get("request")
    handler = HANDLERS.get(kind) if isinstance(kind, str) else None
    if handler is None:
        raise ServerError(status_code=400, message=f"Unsupported request: {kind}")

    return JSONResponse(await handler(request.app.state.phoenix, payload))
