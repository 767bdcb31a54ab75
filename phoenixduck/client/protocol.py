"""Avatica JSON protocol messages.

Request builders produce the exact dictionaries the query server expects;
the parsers turn decoded response bodies into small dataclasses. Parsing is
tolerant: missing optional fields become ``None`` and it is up to the caller
to decide which absences are protocol violations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def open_connection_request(connection_id: str) -> dict[str, Any]:
    return {"request": "openConnection", "connectionId": connection_id, "info": {}}


def close_connection_request(connection_id: str) -> dict[str, Any]:
    return {"request": "closeConnection", "connectionId": connection_id}


def prepare_request(connection_id: str, sql: str) -> dict[str, Any]:
    return {"request": "prepare", "connectionId": connection_id, "sql": sql}


def statement_handle(connection_id: str, statement_id: int) -> dict[str, Any]:
    return {"connectionId": connection_id, "id": statement_id}


def execute_request(
    connection_id: str, statement_id: int, max_row_count: int
) -> dict[str, Any]:
    # parameterValues is required even when empty; only maxRowCount is honoured.
    return {
        "request": "execute",
        "statementHandle": statement_handle(connection_id, statement_id),
        "parameterValues": [],
        "maxRowCount": max_row_count,
    }


def close_statement_request(connection_id: str, statement_id: int) -> dict[str, Any]:
    return {
        "request": "closeStatement",
        "statementHandle": statement_handle(connection_id, statement_id),
    }


@dataclass(frozen=True)
class AvaticaColumn:
    """Column metadata as sent in a result signature."""

    column_name: str | None = None
    label: str | None = None
    name: str | None = None
    type_name: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> AvaticaColumn:
        type_info = data.get("type")
        type_name = type_info.get("name") if isinstance(type_info, dict) else None
        return cls(
            column_name=data.get("columnName"),
            label=data.get("label"),
            name=data.get("name"),
            type_name=type_name,
        )


@dataclass(frozen=True)
class Signature:
    columns: list[AvaticaColumn] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> Signature | None:
        if not isinstance(data, dict):
            return None
        columns = data.get("columns") or []
        return cls(columns=[AvaticaColumn.from_json(c) for c in columns if isinstance(c, dict)])


@dataclass(frozen=True)
class ResultSet:
    """One entry of an execute response's ``results`` array."""

    signature: Signature | None = None
    rows: list[list[Any]] = field(default_factory=list)
    update_count: int | None = None
    done: bool = True

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ResultSet:
        frame = data.get("firstFrame")
        rows: list[list[Any]] = []
        done = True
        if isinstance(frame, dict):
            rows = [row for row in frame.get("rows") or [] if isinstance(row, list)]
            done = bool(frame.get("done", True))

        update_count = data.get("updateCount")
        if not isinstance(update_count, int) or isinstance(update_count, bool):
            update_count = None
        return cls(
            signature=Signature.from_json(data.get("signature")),
            rows=rows,
            update_count=update_count,
            done=done,
        )


def parse_statement_id(body: dict[str, Any]) -> int | None:
    """Return ``statement.id`` from a prepare response, if present."""
    statement = body.get("statement")
    if not isinstance(statement, dict):
        return None
    statement_id = statement.get("id")
    if isinstance(statement_id, bool):
        return None
    if isinstance(statement_id, int):
        return statement_id
    if isinstance(statement_id, str) and statement_id.isdigit():
        return int(statement_id)
    return None


def parse_results(body: dict[str, Any]) -> list[ResultSet]:
    results = body.get("results") or []
    return [ResultSet.from_json(r) for r in results if isinstance(r, dict)]


def parse_error(body: Any) -> tuple[str | None, str | None]:
    """Extract ``(errorMessage, sqlState)`` from an Avatica error response."""
    if not isinstance(body, dict) or body.get("response") != "error":
        return None, None
    return body.get("errorMessage"), body.get("sqlState")
