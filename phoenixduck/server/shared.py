"""Shared utilities for the phoenixduck mock server.

This module contains:
- ServerError exception class
- Avatica error response bodies
- Mapping of DuckDB errors to Phoenix error codes
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import duckdb

SERVER_ADDRESS = "phoenixduck:8765"

# Phoenix SQLExceptionCode values for the errors the mock can produce
SYNTAX_ERROR = (601, "42P00")
TABLE_UNDEFINED = (1012, "42M03")
COLUMN_NOT_FOUND = (504, "42703")
CONSTRAINT_VIOLATION = (218, "23000")
TYPE_MISMATCH = (203, "22005")
UNKNOWN_ERROR = (-1, "00000")


@dataclass
class ServerError(Exception):
    """Exception raised for server errors with HTTP status code and Phoenix error code."""

    status_code: int
    message: str
    error_code: int = UNKNOWN_ERROR[0]
    sql_state: str = UNKNOWN_ERROR[1]

    @classmethod
    def from_duckdb(cls, error: duckdb.Error) -> ServerError:
        if isinstance(error, duckdb.ParserException):
            code = SYNTAX_ERROR
        elif isinstance(error, duckdb.CatalogException):
            code = TABLE_UNDEFINED
        elif isinstance(error, duckdb.BinderException):
            code = COLUMN_NOT_FOUND
        elif isinstance(error, duckdb.ConstraintException):
            code = CONSTRAINT_VIOLATION
        elif isinstance(error, duckdb.ConversionException):
            code = TYPE_MISMATCH
        else:
            code = UNKNOWN_ERROR
        return cls(status_code=500, message=str(error), error_code=code[0], sql_state=code[1])


def rpc_metadata() -> dict[str, Any]:
    return {"response": "rpcMetadata", "serverAddress": SERVER_ADDRESS}


def error_body(error: ServerError) -> dict[str, Any]:
    """Avatica ErrorResponse for ``error``."""
    return {
        "response": "error",
        "exceptions": [],
        "errorMessage": error.message,
        "errorCode": error.error_code,
        "sqlState": error.sql_state,
        "severity": "ERROR",
        "rpcMetadata": rpc_metadata(),
    }
