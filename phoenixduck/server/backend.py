import duckdb
from duckdb import DuckDBPyConnection

from .catalog import install_system_catalog


class Backend:
    def __init__(self, timezone: str = "UTC", db_file: str = ":memory:"):
        """
        Initializes the DuckDB database behind the mock query server.

        Args:
            timezone: The default timezone to set for connections.
            db_file: The DuckDB database file to use. Defaults to ':memory:' (transient).
                     Set to a file path to keep tables across server restarts.
        """
        self._timezone = timezone
        self._db_file = db_file

        # All Avatica connections share one database, like clients of one query server
        self._duck_conn: DuckDBPyConnection | None = duckdb.connect(database=self._db_file)
        self._duck_conn.execute(f"SET GLOBAL TimeZone = '{self._timezone}'")

        install_system_catalog(self._duck_conn)

    def cursor(self) -> DuckDBPyConnection:
        """
        Create a cursor for one Avatica connection. Cursors share database state.
        """
        if self._duck_conn is None:
            raise RuntimeError("Backend is closed")
        return self._duck_conn.cursor()

    def close(self) -> None:
        """
        Close the shared DuckDB connection.
        """
        if self._duck_conn:
            self._duck_conn.close()
            self._duck_conn = None
