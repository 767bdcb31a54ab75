"""Phoenix SQL to DuckDB translation for the mock query server.

Phoenix-isms handled here:
    - statements must not end with a separator (Phoenix rejects them)
    - UPSERT INTO becomes INSERT OR REPLACE INTO
    - unquoted identifiers are upper-cased, as Phoenix normalizes them
    - SYSTEM.CATALOG is redirected to the emulated catalog view
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

import sqlglot
from sqlglot import exp

from .catalog import CATALOG_SCHEMA, CATALOG_TABLE

UPSERT_PATTERN = re.compile(r"^\s*UPSERT\s+INTO\b", re.IGNORECASE)


class StatementKind(Enum):
    QUERY = "query"
    DML = "dml"
    DDL = "ddl"


class TranslationError(Exception):
    """SQL the mock server cannot accept, reported as a Phoenix syntax error."""


@dataclass(frozen=True)
class Translation:
    sql: str
    kind: StatementKind


def classify(expression: exp.Expression) -> StatementKind:
    if isinstance(expression, (exp.Query, exp.Describe)):
        return StatementKind.QUERY
    if isinstance(expression, (exp.Insert, exp.Update, exp.Delete, exp.Merge)):
        return StatementKind.DML
    return StatementKind.DDL


def _normalize_identifiers(node: exp.Expression) -> exp.Expression:
    if isinstance(node, exp.Identifier) and not node.quoted:
        return exp.to_identifier(node.name.upper())
    return node


def _redirect_system_catalog(node: exp.Expression) -> exp.Expression:
    if (
        isinstance(node, exp.Table)
        and node.name.upper() == "CATALOG"
        and node.db.upper() == "SYSTEM"
    ):
        table = node.copy()
        table.set("this", exp.to_identifier(CATALOG_TABLE, quoted=True))
        table.set("db", exp.to_identifier(CATALOG_SCHEMA))
        return table
    return node


def translate(sql: str) -> Translation:
    """Translate one Phoenix statement into DuckDB SQL.

    Raises:
        TranslationError: If the statement is empty, ends with a separator,
            contains several statements or does not parse
    """
    if not sql or not sql.strip():
        raise TranslationError("Empty statement")
    if sql.rstrip().endswith(";"):
        raise TranslationError("Syntax error. Unexpected char: ';'")

    sql = UPSERT_PATTERN.sub("INSERT OR REPLACE INTO", sql, count=1)

    try:
        expressions = [e for e in sqlglot.parse(sql, read="duckdb") if e is not None]
    except sqlglot.errors.ParseError as e:
        msg = str(e).replace("\x1b[4m", "").replace("\x1b[0m", "")  # Remove ANSI formatting
        raise TranslationError(msg) from None

    if len(expressions) != 1:
        raise TranslationError("Only one statement can be prepared at a time")

    expression = expressions[0]
    kind = classify(expression)

    expression = expression.transform(_normalize_identifiers)
    expression = expression.transform(_redirect_system_catalog)

    return Translation(sql=expression.sql(dialect="duckdb"), kind=kind)
