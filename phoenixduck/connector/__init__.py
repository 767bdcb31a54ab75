"""DB-API 2.0 (PEP 249) interface over PhoenixClient."""

from typing import Any

from ..client import PhoenixClient
from ..errors import (
    DatabaseError,
    DataError,
    Error,
    InterfaceError,
    NotSupportedError,
    OperationalError,
    ProgrammingError,
)
from .connection import Connection
from .cursor import Cursor, ResultMetadata

apilevel = "2.0"
threadsafety = 1
# Phoenix placeholders are "?", but binding is not supported: Cursor.execute
# raises NotSupportedError when parameters are passed
paramstyle = "qmark"


def connect(url: str | None = None, **kwargs: Any) -> Connection:
    """Open a session and return a DB-API connection.

    Keyword arguments are passed to PhoenixClient (``config``,
    ``http_client``, ``sleep``).
    """
    client = PhoenixClient(url, **kwargs)
    try:
        client.open()
    except Error:
        client.dispose()
        raise
    return Connection(client)


__all__ = [
    "apilevel",
    "threadsafety",
    "paramstyle",
    "connect",
    "Connection",
    "Cursor",
    "ResultMetadata",
    "Error",
    "InterfaceError",
    "DatabaseError",
    "OperationalError",
    "ProgrammingError",
    "DataError",
    "NotSupportedError",
]
