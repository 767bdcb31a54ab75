import asyncio

import pytest

from phoenixduck.server import ConnectionManager


class MockCursor:
    """Mock class for a DuckDB cursor to use in tests."""

    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def connection_manager():
    """Fixture to create a fresh ConnectionManager instance for each test."""
    return ConnectionManager()


@pytest.fixture
def mock_cursor():
    return MockCursor()


def test_open_connection(connection_manager, mock_cursor):
    """Test registering a new connection."""
    connection_manager.open_connection("conn-1", mock_cursor)
    assert connection_manager.get_connection("conn-1") is mock_cursor
    assert connection_manager.connection_exists("conn-1")


def test_reopen_keeps_first_cursor(connection_manager, mock_cursor):
    """Test that reopening an id keeps the first cursor and closes the new one."""
    second = MockCursor()
    connection_manager.open_connection("conn-1", mock_cursor)
    connection_manager.open_connection("conn-1", second)

    assert connection_manager.get_connection("conn-1") is mock_cursor
    assert second.closed
    assert not mock_cursor.closed


def test_get_connection_not_found(connection_manager):
    """Test retrieving a connection that does not exist."""
    with pytest.raises(KeyError, match="Connection not found"):
        connection_manager.get_connection("missing")


def test_close_connection(connection_manager, mock_cursor):
    """Test closing an open connection closes its cursor."""
    connection_manager.open_connection("conn-1", mock_cursor)
    connection_manager.close_connection("conn-1")

    assert not connection_manager.connection_exists("conn-1")
    assert mock_cursor.closed
    with pytest.raises(KeyError):
        connection_manager.get_lock("conn-1")


def test_close_unknown_connection(connection_manager):
    """Test closing a connection that does not exist."""
    connection_manager.close_connection("missing")  # Should not raise an error
    assert not connection_manager.connection_exists("missing")


def test_each_connection_has_its_own_lock(connection_manager):
    connection_manager.open_connection("a", MockCursor())
    connection_manager.open_connection("b", MockCursor())

    lock_a = connection_manager.get_lock("a")
    assert isinstance(lock_a, asyncio.Lock)
    assert lock_a is not connection_manager.get_lock("b")


def test_close_all(connection_manager):
    cursors = [MockCursor() for _ in range(3)]
    for i, cursor in enumerate(cursors):
        connection_manager.open_connection(f"conn-{i}", cursor)

    connection_manager.close_all()

    assert all(c.closed for c in cursors)
    assert not connection_manager.connection_exists("conn-0")
