"""Client configuration.

Values come from keyword arguments or from ``PHOENIX_*`` environment
variables:

    PHOENIX_URL               full endpoint url (wins over server/port)
    PHOENIX_SERVER            host name (default: localhost)
    PHOENIX_PORT              port (default: 8765)
    PHOENIX_TIMEOUT           request timeout in seconds (default: 300)
    PHOENIX_ROW_CAP           max rows per query (default: 10000)
    PHOENIX_CONNECT_ATTEMPTS  open retries (default: 10)
    PHOENIX_CONNECT_DELAY     seconds between open retries (default: 15)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_SERVER = "localhost"
DEFAULT_PORT = 8765
DEFAULT_TIMEOUT = 300.0
DEFAULT_ROW_CAP = 10_000
JSON_ENDPOINT = "/json"


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval retry settings for opening a session.

    Attributes:
        max_attempts: Total number of openConnection requests to try
        delay: Seconds to wait between two attempts
    """

    max_attempts: int = 10
    delay: float = 15.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must not be negative")


def normalize_url(url: str) -> str:
    """Make sure the url points at the query server's JSON endpoint."""
    url = url.rstrip("/")
    if not url.endswith(JSON_ENDPOINT):
        url += JSON_ENDPOINT
    return url


@dataclass(frozen=True)
class ClientConfig:
    """Settings for a PhoenixClient.

    Attributes:
        url: Endpoint url, normalized to end with ``/json``
        timeout: Per-request timeout in seconds
        row_cap: maxRowCount sent with query executions
        retry: Retry policy for opening the session
    """

    url: str = f"http://{DEFAULT_SERVER}:{DEFAULT_PORT}{JSON_ENDPOINT}"
    timeout: float = DEFAULT_TIMEOUT
    row_cap: int = DEFAULT_ROW_CAP
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", normalize_url(self.url))

    @classmethod
    def from_server(cls, server: str, port: int | str, **kwargs) -> ClientConfig:
        return cls(url=f"http://{server}:{port}", **kwargs)

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a configuration from ``PHOENIX_*`` environment variables."""
        url = os.getenv("PHOENIX_URL")
        if not url:
            server = os.getenv("PHOENIX_SERVER", DEFAULT_SERVER)
            port = os.getenv("PHOENIX_PORT", str(DEFAULT_PORT))
            url = f"http://{server}:{port}"

        retry = RetryPolicy(
            max_attempts=int(os.getenv("PHOENIX_CONNECT_ATTEMPTS", "10")),
            delay=float(os.getenv("PHOENIX_CONNECT_DELAY", "15")),
        )
        return cls(
            url=url,
            timeout=float(os.getenv("PHOENIX_TIMEOUT", str(DEFAULT_TIMEOUT))),
            row_cap=int(os.getenv("PHOENIX_ROW_CAP", str(DEFAULT_ROW_CAP))),
            retry=retry,
        )
