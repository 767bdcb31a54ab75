"""Prepared statement registry for the mock query server.

Statements are created by "prepare", looked up by "execute" and dropped by
"closeStatement". The registry is bounded: the oldest statements are evicted
once ``max_statements`` is reached, so clients that never close statements
cannot grow it without limit.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from threading import Lock

from .dialect import StatementKind


@dataclass
class PreparedStatement:
    """A statement prepared on one connection.

    Attributes:
        id: Server-issued statement id
        connection_id: Owning Avatica connection
        sql: Original statement text
        duck_sql: Translated DuckDB statement
        kind: Query, DML or DDL
        created_on: Timestamp when prepared (ms since epoch)
    """

    id: int
    connection_id: str
    sql: str
    duck_sql: str
    kind: StatementKind
    created_on: int = field(default_factory=lambda: int(time.time() * 1000))


class StatementManager:
    """Thread-safe storage of prepared statements with oldest-first eviction."""

    def __init__(self, max_statements: int = 1000) -> None:
        self._statements: dict[int, PreparedStatement] = {}
        self._order: list[int] = []
        self._max_statements = max_statements
        self._next_id = 0
        self._lock = Lock()

    def create_statement(
        self,
        connection_id: str,
        sql: str,
        duck_sql: str,
        kind: StatementKind,
    ) -> PreparedStatement:
        with self._lock:
            self._next_id += 1
            stmt = PreparedStatement(
                id=self._next_id,
                connection_id=connection_id,
                sql=sql,
                duck_sql=duck_sql,
                kind=kind,
            )

            # Evict oldest if at capacity
            while len(self._statements) >= self._max_statements and self._order:
                oldest = self._order.pop(0)
                self._statements.pop(oldest, None)

            self._statements[stmt.id] = stmt
            self._order.append(stmt.id)

        return stmt

    def get_statement(self, connection_id: str, statement_id: int) -> PreparedStatement | None:
        """Get a statement, only if it belongs to ``connection_id``."""
        with self._lock:
            stmt = self._statements.get(statement_id)
        if stmt is None or stmt.connection_id != connection_id:
            return None
        return stmt

    def close_statement(self, connection_id: str, statement_id: int) -> bool:
        """Drop a statement. Returns False if it was unknown."""
        with self._lock:
            stmt = self._statements.get(statement_id)
            if stmt is None or stmt.connection_id != connection_id:
                return False
            del self._statements[statement_id]
            self._order.remove(statement_id)
            return True

    def close_connection_statements(self, connection_id: str) -> int:
        """Drop every statement of a connection and return how many were dropped."""
        with self._lock:
            ids = [i for i, s in self._statements.items() if s.connection_id == connection_id]
            for statement_id in ids:
                del self._statements[statement_id]
                self._order.remove(statement_id)
        return len(ids)

    def __len__(self) -> int:
        with self._lock:
            return len(self._statements)
