"""Tests against the mock query server running under uvicorn."""

from phoenixduck import connector
from phoenixduck.client import PhoenixClient


def test_client_over_http(server):
    with PhoenixClient(server["url"]) as client:
        client.execute_non_query("CREATE TABLE live (id INTEGER PRIMARY KEY, v VARCHAR)")
        assert client.execute_non_query("UPSERT INTO live (id, v) VALUES (1, 'over the wire')") == 1
        assert client.execute_query("SELECT v FROM live").rows == (("over the wire",),)
        client.execute_non_query("DROP TABLE live")


def test_connector_over_http(server):
    with connector.connect(server["url"]) as conn, conn.cursor() as cur:
        cur.execute("SELECT 40 + 2 AS answer")
        assert cur.fetchone() == (42,)
