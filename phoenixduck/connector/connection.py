from types import TracebackType
from typing import Self

from ..client import PhoenixClient
from ..errors import InterfaceError
from .cursor import Cursor


class Connection:
    def __init__(self, client: PhoenixClient) -> None:
        self._client = client
        self._is_closed = False

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def client(self) -> PhoenixClient:
        return self._client

    def cursor(self) -> Cursor:
        """
        Returns a new Cursor object for executing queries.
        """
        if self._is_closed:
            raise InterfaceError("Connection is closed", sqlstate="08003")
        return Cursor(self)

    def commit(self) -> None:
        # Phoenix Query Server connections autocommit
        pass

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        """
        Closes the session and releases the HTTP client.
        """
        if self._is_closed:
            return
        self._client.dispose()
        self._is_closed = True

    def is_closed(self) -> bool:
        return self._is_closed
