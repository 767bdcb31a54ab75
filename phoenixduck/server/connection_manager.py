import asyncio
from typing import Dict

from duckdb import DuckDBPyConnection


class ConnectionManager:
    def __init__(self) -> None:
        self._connections: Dict[str, DuckDBPyConnection] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def open_connection(self, connection_id: str, cursor: DuckDBPyConnection) -> None:
        """Registers a new Avatica connection. Reopening an id keeps the first cursor."""
        if connection_id in self._connections:
            cursor.close()
            return
        self._connections[connection_id] = cursor
        self._locks[connection_id] = asyncio.Lock()

    def get_connection(self, connection_id: str) -> DuckDBPyConnection:
        """Retrieves the cursor of a connection."""
        if connection_id not in self._connections:
            raise KeyError(f"Connection not found: {connection_id}")
        return self._connections[connection_id]

    def close_connection(self, connection_id: str) -> None:
        """Closes a connection and its cursor. Unknown ids are ignored."""
        cursor = self._connections.pop(connection_id, None)
        self._locks.pop(connection_id, None)
        if cursor is not None:
            cursor.close()

    def connection_exists(self, connection_id: str) -> bool:
        """Checks if a connection is open."""
        return connection_id in self._connections

    def get_lock(self, connection_id: str) -> asyncio.Lock:
        """Gets the lock serializing work on a connection."""
        if connection_id not in self._locks:
            raise KeyError(f"Connection not found: {connection_id}")
        return self._locks[connection_id]

    def close_all(self) -> None:
        for connection_id in list(self._connections):
            self.close_connection(connection_id)
