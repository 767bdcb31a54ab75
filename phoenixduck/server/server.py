import argparse
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from starlette.applications import Starlette
from starlette.routing import Route
from uvicorn import run

from .backend import Backend
from .connection_manager import ConnectionManager
from .handlers import ServerState, avatica_request
from .middleware import ErrorHandlingMiddleware
from .statement_manager import StatementManager

logger = logging.getLogger(__name__)


def default_db_file() -> str:
    # Use PHOENIXDUCK_DB_PATH for persistence, or in-memory by default
    return os.getenv("PHOENIXDUCK_DB_PATH", ":memory:")


def create_app(db_file: str | None = None, debug: bool = False) -> Starlette:
    """Create a mock Phoenix query server backed by its own DuckDB database.

    Args:
        db_file: DuckDB database file; defaults to ``PHOENIXDUCK_DB_PATH`` or ':memory:'
        debug: Starlette debug mode
    """
    state = ServerState(
        backend=Backend(db_file=db_file or default_db_file()),
        connections=ConnectionManager(),
        statements=StatementManager(),
    )

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        yield
        state.close()

    routes = [
        Route("/", avatica_request, methods=["POST"]),
        Route("/json", avatica_request, methods=["POST"]),
    ]

    app = Starlette(debug=debug, routes=routes, lifespan=lifespan)
    app.add_middleware(ErrorHandlingMiddleware)
    app.state.phoenix = state
    return app


# CLI Entry Point
def main() -> None:
    parser = argparse.ArgumentParser(description="Run the phoenixduck mock query server.")

    parser.add_argument(
        "--host", type=str, default="127.0.0.1", help="Host to run the server on (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", type=int, default=8765, help="Port to run the server on (default: 8765)"
    )

    parser.add_argument(
        "--db-file",
        type=str,
        default=None,
        help="DuckDB database file (default: $PHOENIXDUCK_DB_PATH or in-memory)",
    )

    parser.add_argument(
        "--debug", action="store_true", help="Enable debug mode (default: False)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(db_file=args.db_file, debug=args.debug)
    logger.info("Serving Avatica JSON on http://%s:%d/json", args.host, args.port)

    # Run the server with the provided arguments
    run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
