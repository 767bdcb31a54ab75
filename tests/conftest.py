import itertools
import json
import threading
from time import sleep
from typing import Any, Callable, Iterator

import httpx
import pytest
import uvicorn
from starlette.applications import Starlette
from starlette.testclient import TestClient

from phoenixduck.client import PhoenixClient
from phoenixduck.config import ClientConfig, RetryPolicy
from phoenixduck.server import create_app

FAKE_URL = "http://phoenix.test:8765"

Responder = Callable[[dict[str, Any]], Any]


def avatica_column(name: str, type_name: str, **extra: Any) -> dict[str, Any]:
    """Minimal ColumnMetaData as a query server sends it."""
    return {"columnName": name, "label": name, "type": {"name": type_name}, **extra}


def execute_body(
    columns: list[dict[str, Any]] | None = None,
    rows: list[list[Any]] | None = None,
    update_count: int | None = None,
    done: bool = True,
) -> dict[str, Any]:
    result: dict[str, Any] = {"response": "resultSet"}
    if columns is not None:
        result["signature"] = {"columns": columns}
        result["firstFrame"] = {"offset": 0, "done": done, "rows": rows or []}
    if update_count is not None:
        result["updateCount"] = update_count
    return {"response": "executeResults", "results": [result]}


class AvaticaRecorder:
    """Scripted query server for httpx.MockTransport.

    Records every request payload. Responders return a JSON-able body (sent
    with HTTP 200), an ``httpx.Response``, or raise an ``httpx`` exception.
    """

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self._ids = itertools.count(1)
        self.responders: dict[str, Responder] = {
            "openConnection": lambda p: {"response": "openConnection"},
            "closeConnection": lambda p: {"response": "closeConnection"},
            "prepare": lambda p: {"response": "prepare", "statement": {"id": next(self._ids)}},
            "execute": lambda p: {"response": "executeResults", "results": []},
            "closeStatement": lambda p: {"response": "closeStatement"},
        }

    def on(self, kind: str, responder: Responder) -> None:
        self.responders[kind] = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        result = self.responders[payload["request"]](payload)
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)

    @property
    def kinds(self) -> list[str]:
        return [r["request"] for r in self.requests]

    def of_kind(self, kind: str) -> list[dict[str, Any]]:
        return [r for r in self.requests if r["request"] == kind]


@pytest.fixture
def recorder() -> AvaticaRecorder:
    return AvaticaRecorder()


@pytest.fixture
def http_client(recorder: AvaticaRecorder) -> Iterator[httpx.Client]:
    with httpx.Client(transport=httpx.MockTransport(recorder)) as client:
        yield client


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the open retry loop."""
    return []


@pytest.fixture
def fake_client(http_client: httpx.Client, sleeps: list[float]) -> Iterator[PhoenixClient]:
    """PhoenixClient talking to the scripted recorder; not opened yet."""
    config = ClientConfig(url=FAKE_URL, retry=RetryPolicy(max_attempts=3, delay=2.0))
    client = PhoenixClient(config=config, http_client=http_client, sleep=sleeps.append)
    yield client
    client.dispose()


@pytest.fixture
def app() -> Iterator[Starlette]:
    """A fresh in-memory mock query server."""
    app = create_app(db_file=":memory:")
    yield app
    app.state.phoenix.close()


@pytest.fixture
def test_client(app: Starlette) -> Iterator[TestClient]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(test_client: TestClient) -> Iterator[PhoenixClient]:
    """Open PhoenixClient against the in-process mock server."""
    with PhoenixClient("http://localhost:8765", http_client=test_client) as client:
        yield client


@pytest.fixture(scope="session")
def server(unused_tcp_port_factory: Callable[[], int]) -> Iterator[dict]:
    """Start a mock query server for the session and provide connection details."""
    port = unused_tcp_port_factory()
    config = uvicorn.Config(create_app(db_file=":memory:"), port=port, log_level="error")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="Server", daemon=True)

    thread.start()

    # Wait until the server is fully started
    while not server.started:
        sleep(0.1)

    # Provide connection details
    yield {
        "host": "127.0.0.1",
        "port": port,
        "url": f"http://127.0.0.1:{port}",
    }

    # Graceful shutdown
    server.should_exit = True
    thread.join()
