import logging
import uuid

import httpx
import pytest

from phoenixduck.client.session import SessionManager, SessionState
from phoenixduck.client.transport import AvaticaTransport
from phoenixduck.config import RetryPolicy
from phoenixduck.errors import ConnectionUnavailableError, NotConnectedError

URL = "http://phoenix.test:8765/json"


@pytest.fixture
def transport(http_client):
    return AvaticaTransport(URL, http_client=http_client)


@pytest.fixture
def session(transport, sleeps):
    return SessionManager(transport, retry=RetryPolicy(max_attempts=4, delay=15.0), sleep=sleeps.append)


def fail_times(count: int, status_code: int = 503, text: str = "warming up"):
    """Responder failing ``count`` times before accepting the connection."""
    calls = {"n": 0}

    def responder(payload):
        calls["n"] += 1
        if calls["n"] <= count:
            return httpx.Response(status_code, text=text)
        return {"response": "openConnection"}

    return responder


def test_open_sends_open_connection(session, recorder):
    """Test a successful open on the first attempt."""
    session.open()

    assert session.state is SessionState.OPEN
    assert session.is_open
    (request,) = recorder.requests
    assert request["request"] == "openConnection"
    assert request["info"] == {}
    assert request["connectionId"] == session.token
    uuid.UUID(session.token)


@pytest.mark.parametrize("failures", [1, 2, 3])
def test_open_retries_until_success(session, recorder, sleeps, failures):
    """Test that k failed attempts lead to k + 1 requests and k waits."""
    recorder.on("openConnection", fail_times(failures))

    session.open()

    assert session.is_open
    assert recorder.kinds == ["openConnection"] * (failures + 1)
    assert sleeps == [15.0] * failures


def test_open_uses_one_token_for_all_attempts(session, recorder):
    recorder.on("openConnection", fail_times(2))
    session.open()

    tokens = {r["connectionId"] for r in recorder.requests}
    assert tokens == {session.token}


def test_open_gives_up_after_max_attempts(session, recorder, sleeps):
    """Test exhausting every attempt."""
    recorder.on("openConnection", fail_times(100, text="HBase is not ready"))

    with pytest.raises(ConnectionUnavailableError) as excinfo:
        session.open()

    error = excinfo.value
    assert len(recorder.requests) == 4
    assert sleeps == [15.0] * 3  # no wait after the last attempt
    assert error.attempts == 4
    assert error.url == URL
    assert error.response_preview == "HBase is not ready"
    assert not error.protocol_mismatch
    assert "initializing" in error.hint
    assert error.sqlstate == "08001"

    # A failed open leaves the session retryable
    assert session.state is SessionState.UNOPENED
    assert session.token is None


def test_open_detects_protocol_mismatch(session, recorder):
    body = "com.google.protobuf.InvalidProtocolBufferException: While parsing a protocol message"
    recorder.on("openConnection", fail_times(100, status_code=500, text=body))

    with pytest.raises(ConnectionUnavailableError) as excinfo:
        session.open()

    assert excinfo.value.protocol_mismatch
    assert "Protobuf" in excinfo.value.hint


def test_open_truncates_response_preview(session, recorder):
    recorder.on("openConnection", fail_times(100, text="x" * 2000))

    with pytest.raises(ConnectionUnavailableError) as excinfo:
        session.open()

    assert len(excinfo.value.response_preview) == 500


def test_transport_errors_count_as_failed_attempts(session, recorder, sleeps):
    calls = {"n": 0}

    def responder(payload):
        calls["n"] += 1
        if calls["n"] == 1:
            raise httpx.ConnectError("connection refused")
        return {"response": "openConnection"}

    recorder.on("openConnection", responder)
    session.open()

    assert session.is_open
    assert len(recorder.requests) == 2
    assert sleeps == [15.0]


def test_open_when_open_is_noop(session, recorder):
    session.open()
    token = session.token
    session.open()

    assert session.token == token
    assert len(recorder.requests) == 1


def test_close_sends_close_connection(session, recorder):
    session.open()
    token = session.token
    session.close()

    assert session.state is SessionState.CLOSED
    assert session.token is None
    assert recorder.requests[-1] == {"request": "closeConnection", "connectionId": token}


def test_close_before_open_sends_nothing(session, recorder):
    session.close()
    assert recorder.requests == []
    assert session.state is SessionState.UNOPENED


def test_close_ignores_failures(session, recorder):
    session.open()

    def responder(payload):
        raise httpx.ReadTimeout("timed out")

    recorder.on("closeConnection", responder)
    session.close()  # Should not raise an error

    assert session.state is SessionState.CLOSED


def test_rejected_close_is_not_reported_as_disconnected(session, recorder, caplog):
    session.open()
    recorder.on("closeConnection", lambda payload: httpx.Response(500, text="gone"))

    with caplog.at_level(logging.DEBUG, logger="phoenixduck.client.session"):
        session.close()

    assert session.state is SessionState.CLOSED
    assert "Disconnected" not in caplog.text
    assert "returned HTTP 500" in caplog.text


def test_successful_close_is_logged(session, caplog):
    session.open()

    with caplog.at_level(logging.INFO, logger="phoenixduck.client.session"):
        session.close()

    assert "Disconnected from Apache Phoenix Query Server" in caplog.text


def test_closed_session_is_terminal(session, recorder):
    session.open()
    session.close()

    with pytest.raises(NotConnectedError):
        session.open()
    assert recorder.kinds == ["openConnection", "closeConnection"]


def test_require_token(session):
    with pytest.raises(NotConnectedError):
        session.require_token()
    session.open()
    assert session.require_token() == session.token
