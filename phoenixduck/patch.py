import atexit
import glob
import os
from contextlib import ExitStack, contextmanager
from typing import Iterator
from unittest.mock import patch as mock_patch

import httpx
from starlette.applications import Starlette
from starlette.testclient import TestClient

from .server import create_app

_patch_ctx = None  # Global variable to track context


@contextmanager
def patch_phoenix(db_file: str = ":memory:", reset: bool = False) -> Iterator[Starlette]:
    """
    Context manager to route PhoenixClient traffic to an in-process mock server.

    Every PhoenixClient created inside the block without an explicit
    ``http_client`` talks to the same DuckDB-backed mock server, whatever url
    it was configured with.

    Args:
        db_file: Path to DuckDB database file. Use ':memory:' for in-memory (default),
                 or provide a file path for persistent storage (e.g., 'test_data.duckdb').
        reset: If True, deletes the database file before starting (default: False).

    Yields:
        The mock server application.
    """
    if reset and db_file != ":memory:":
        # Delete the main file and any related files (.wal, .tmp, etc.)
        for pattern in [db_file, f"{db_file}.wal", f"{db_file}.tmp"]:
            for file in glob.glob(pattern):
                if os.path.exists(file):
                    os.remove(file)

    app = create_app(db_file=db_file)

    def http_client(timeout: float) -> httpx.Client:
        # Requests are served in-process; the timeout does not apply
        return TestClient(app)

    targets = {
        "phoenixduck.client.transport.create_http_client": http_client,
    }

    with ExitStack() as stack:
        for target, mock_func in targets.items():
            p = mock_patch(target, side_effect=mock_func)
            stack.enter_context(p)
        try:
            yield app
        finally:
            app.state.phoenix.close()


def start_patch_phoenix(db_file: str = ":memory:", reset: bool = False) -> None:
    """
    Start the Phoenix patching context and register cleanup.

    Example::

        # In-memory (data lost on exit):
        start_patch_phoenix()

        # Persistent storage (data saved to file):
        start_patch_phoenix(db_file='my_test_data.duckdb')
    """
    global _patch_ctx
    if _patch_ctx is None:  # Ensure we don't register multiple times
        _patch_ctx = patch_phoenix(db_file=db_file, reset=reset)
        _patch_ctx.__enter__()
        atexit.register(stop_patch_phoenix)  # Register cleanup when starting


def stop_patch_phoenix() -> None:
    """Stop the Phoenix patching context."""
    global _patch_ctx
    if _patch_ctx:
        _patch_ctx.__exit__(None, None, None)
        _patch_ctx = None  # Reset for future use
