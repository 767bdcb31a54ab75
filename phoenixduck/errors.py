"""Exception hierarchy for phoenixduck.

The base classes follow PEP 249 so the connector layer can be used by code
written against any DB-API driver. The concrete classes below them carry the
context needed to tell "server not ready yet", "malformed SQL" and "protocol
mismatch" apart without reading server logs.
"""

from __future__ import annotations

from typing import Any

PREVIEW_LENGTH = 500


def preview(text: str | bytes | None, limit: int = PREVIEW_LENGTH) -> str:
    """Return at most ``limit`` characters of a response body."""
    if text is None:
        return ""
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    return text[:limit]


class Error(Exception):
    """Base class for all phoenixduck errors."""

    def __init__(self, msg: str, *, sqlstate: str | None = None) -> None:
        self.msg = msg
        self.sqlstate = sqlstate
        super().__init__(msg)


class InterfaceError(Error):
    """Errors related to the driver rather than the database."""


class DatabaseError(Error):
    """Errors reported by, or about, the database server."""


class OperationalError(DatabaseError):
    """The server could not be reached or is not operational."""


class ProgrammingError(DatabaseError):
    """Invalid SQL or misuse of the API."""


class DataError(DatabaseError):
    """A value could not be represented in its declared type."""


class NotSupportedError(DatabaseError):
    """The requested feature is not supported by the server or driver."""


class NotConnectedError(InterfaceError):
    """A statement was issued on a session that is not open."""


class ConnectionUnavailableError(OperationalError):
    """Opening a session failed after every retry attempt."""

    def __init__(
        self,
        url: str,
        attempts: int,
        response_preview: str = "",
        protocol_mismatch: bool = False,
    ) -> None:
        self.url = url
        self.attempts = attempts
        self.response_preview = response_preview
        self.protocol_mismatch = protocol_mismatch

        if protocol_mismatch:
            self.hint = (
                "The server appears to be parsing the JSON request as Protobuf. "
                "The query server is either still initializing or its transport "
                "is not configured for the JSON wire format."
            )
        else:
            self.hint = (
                "The query server may still be initializing; HBase and Phoenix "
                "can take over a minute to become ready after startup."
            )

        msg = (
            f"Failed to connect to Phoenix Query Server at {url} "
            f"after {attempts} attempts. {self.hint}"
        )
        if response_preview:
            msg += f"\n\nServer response: {response_preview}"
        super().__init__(msg, sqlstate="08001")


class StatementError(DatabaseError):
    """The server rejected one phase of a statement's lifecycle."""

    phase = "statement"

    def __init__(
        self,
        status_code: int | None,
        response_preview: str = "",
        error_message: str | None = None,
        sqlstate: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.response_preview = response_preview
        self.error_message = error_message

        if status_code is None:
            detail = reason or "transport failure"
        else:
            detail = f"HTTP {status_code}"
        msg = f"Phoenix Query Server returned error during {self.phase}: {detail}"
        if error_message:
            msg += f" - {error_message}"
        elif response_preview:
            msg += f" - {response_preview}"
        super().__init__(msg, sqlstate=sqlstate)


class PrepareFailedError(StatementError):
    phase = "prepare"


class ExecuteFailedError(StatementError):
    phase = "execute"


class ProtocolError(InterfaceError):
    """A response was missing a field the protocol requires."""

    def __init__(self, msg: str, response_preview: str = "") -> None:
        self.response_preview = response_preview
        if response_preview:
            msg = f"{msg}. Response: {response_preview}"
        super().__init__(msg)


class TypeConversionError(DataError):
    """A cell value could not be coerced to its column's type."""

    def __init__(self, column: str, value: Any, target: str) -> None:
        self.column = column
        self.value = value
        self.target = target
        super().__init__(
            f"Cannot convert value {value!r} in column {column!r} to {target}",
            sqlstate="22018",
        )
