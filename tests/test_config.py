import pytest

from phoenixduck.config import ClientConfig, RetryPolicy, normalize_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://localhost:8765", "http://localhost:8765/json"),
        ("http://localhost:8765/", "http://localhost:8765/json"),
        ("http://localhost:8765/json", "http://localhost:8765/json"),
        ("http://gateway/phoenix", "http://gateway/phoenix/json"),
    ],
)
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


def test_defaults():
    config = ClientConfig()
    assert config.url == "http://localhost:8765/json"
    assert config.timeout == 300.0
    assert config.row_cap == 10_000
    assert config.retry == RetryPolicy(max_attempts=10, delay=15.0)


def test_from_server():
    config = ClientConfig.from_server("phoenix", 8766, row_cap=50)
    assert config.url == "http://phoenix:8766/json"
    assert config.row_cap == 50


def test_from_env(monkeypatch):
    monkeypatch.delenv("PHOENIX_URL", raising=False)
    monkeypatch.setenv("PHOENIX_SERVER", "db.internal")
    monkeypatch.setenv("PHOENIX_PORT", "9999")
    monkeypatch.setenv("PHOENIX_TIMEOUT", "12.5")
    monkeypatch.setenv("PHOENIX_ROW_CAP", "20")
    monkeypatch.setenv("PHOENIX_CONNECT_ATTEMPTS", "3")
    monkeypatch.setenv("PHOENIX_CONNECT_DELAY", "0.5")

    config = ClientConfig.from_env()

    assert config.url == "http://db.internal:9999/json"
    assert config.timeout == 12.5
    assert config.row_cap == 20
    assert config.retry == RetryPolicy(max_attempts=3, delay=0.5)


def test_url_from_env_wins(monkeypatch):
    monkeypatch.setenv("PHOENIX_URL", "https://phoenix.example.com/json")
    monkeypatch.setenv("PHOENIX_SERVER", "ignored")

    assert ClientConfig.from_env().url == "https://phoenix.example.com/json"


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"delay": -1}])
def test_invalid_retry_policy(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
