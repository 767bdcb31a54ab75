"""Logical session lifecycle against the query server."""

from __future__ import annotations

import logging
import time
import uuid
from enum import Enum
from typing import Callable

import httpx

from ..config import RetryPolicy
from ..errors import ConnectionUnavailableError, NotConnectedError, preview
from .protocol import close_connection_request, open_connection_request
from .transport import AvaticaTransport

logger = logging.getLogger(__name__)

ATTEMPT_PREVIEW_LENGTH = 200

# Markers of a server that tries to read the JSON body as Protobuf
PROTOCOL_MISMATCH_MARKERS = ("InvalidProtocolBufferException", "InvalidWireTypeException")


class SessionState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class SessionManager:
    """Owns the connection id of one client and its open/close lifecycle.

    State machine: UNOPENED --open--> OPEN --close--> CLOSED. Opening an open
    session is a no-op and CLOSED is terminal; build a new client to reconnect.
    Not thread-safe: callers serialize access to one instance.
    """

    def __init__(
        self,
        transport: AvaticaTransport,
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._retry = retry or RetryPolicy()
        self._sleep = sleep
        self._token: str | None = None
        self._state = SessionState.UNOPENED

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.OPEN

    def require_token(self) -> str:
        """Return the connection id, or raise if the session is not open."""
        if self._state is not SessionState.OPEN or self._token is None:
            raise NotConnectedError("Connection is not open. Call open() first.")
        return self._token

    def open(self) -> None:
        """Open the session, retrying while the server warms up.

        Raises:
            NotConnectedError: If the session was already closed
            ConnectionUnavailableError: If every attempt failed
        """
        if self._state is SessionState.OPEN:
            return
        if self._state is SessionState.CLOSED:
            raise NotConnectedError("Session has been closed. Create a new client to reconnect.")

        token = str(uuid.uuid4())
        request = open_connection_request(token)
        max_attempts = self._retry.max_attempts
        last_body = ""

        for attempt in range(1, max_attempts + 1):
            try:
                response = self._transport.post(request)
            except httpx.HTTPError as e:
                logger.warning(
                    "Connection attempt %d/%d to %s failed: %s",
                    attempt, max_attempts, self._transport.url, e,
                )
            else:
                if response.is_success:
                    self._token = token
                    self._state = SessionState.OPEN
                    logger.info("Connected to Apache Phoenix Query Server at %s", self._transport.url)
                    return
                last_body = response.text
                logger.warning(
                    "Connection attempt %d/%d to %s failed with HTTP %d. Response: %s",
                    attempt, max_attempts, self._transport.url, response.status_code,
                    preview(last_body, ATTEMPT_PREVIEW_LENGTH),
                )

            if attempt < max_attempts:
                logger.info("Retrying in %s seconds...", self._retry.delay)
                self._sleep(self._retry.delay)

        raise ConnectionUnavailableError(
            url=self._transport.url,
            attempts=max_attempts,
            response_preview=preview(last_body),
            protocol_mismatch=any(m in last_body for m in PROTOCOL_MISMATCH_MARKERS),
        )

    def close(self) -> None:
        """Close the session. Best effort: never raises."""
        if self._state is not SessionState.OPEN:
            return

        try:
            response = self._transport.post(close_connection_request(self._token))
            if response.is_success:
                logger.info("Disconnected from Apache Phoenix Query Server")
            else:
                logger.debug(
                    "closeConnection for %s returned HTTP %d", self._token, response.status_code
                )
        except Exception as e:
            logger.debug("Ignoring error while closing connection %s: %s", self._token, e)
        finally:
            self._token = None
            self._state = SessionState.CLOSED
