"""phoenixduck Server - Phoenix Query Server (Avatica JSON) emulation backed by DuckDB.

Modules:
    server: Application factory and CLI entry point
    handlers: Avatica request handlers
    dialect: Phoenix SQL to DuckDB translation
    catalog: SYSTEM.CATALOG emulation
    middleware: HTTP middleware (error handling)
    shared: ServerError and Avatica error bodies
"""

from .backend import Backend
from .connection_manager import ConnectionManager
from .handlers import ServerState
from .middleware import ErrorHandlingMiddleware
from .server import create_app
from .shared import ServerError
from .statement_manager import PreparedStatement, StatementManager

__all__ = [
    # Application
    "create_app",
    "ServerState",
    "Backend",
    # Middleware
    "ErrorHandlingMiddleware",
    # Managers
    "ConnectionManager",
    "PreparedStatement",
    "StatementManager",
    # Errors
    "ServerError",
]
